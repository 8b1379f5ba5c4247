import uuid
from datetime import datetime, timezone

from app.models.ecm import Document
from app.services.legal_hold_criteria import file_extension, has_criteria, matches


def _doc(file_name="Contract_Final.PDF", matter_id=None, created_at=None):
    return Document(
        id=uuid.uuid4(),
        firm_id=uuid.uuid4(),
        matter_id=matter_id,
        file_name=file_name,
        created_at=created_at or datetime(2024, 3, 1, tzinfo=timezone.utc),
    )


class TestHasCriteria:
    def test_none_and_empty(self):
        assert has_criteria(None) is False
        assert has_criteria({}) is False

    def test_only_empty_fields(self):
        assert has_criteria({"keywords": [], "document_types": None}) is False

    def test_custodians_alone_is_not_criteria(self):
        assert has_criteria({"custodians": ["someone"]}) is False

    def test_keywords_present(self):
        assert has_criteria({"keywords": ["contract"]}) is True


class TestFileExtension:
    def test_lowercases_and_strips_dot(self):
        assert file_extension("Report.DOCX") == "docx"

    def test_no_extension(self):
        assert file_extension("README") == ""
        assert file_extension(None) == ""


class TestMatches:
    def test_empty_criteria_matches_nothing(self):
        assert matches(_doc(), {}) is False
        assert matches(_doc(), None) is False

    def test_document_type_case_insensitive(self):
        assert matches(_doc(), {"document_types": ["pdf"]}) is True
        assert matches(_doc(), {"document_types": [".PDF"]}) is True
        assert matches(_doc(), {"document_types": ["docx"]}) is False

    def test_keywords_any_substring_of_file_name(self):
        criteria = {"keywords": ["invoice", "contract"]}
        assert matches(_doc(), criteria) is True
        assert matches(_doc(file_name="memo.pdf"), criteria) is False

    def test_keywords_ignore_title(self):
        doc = _doc(file_name="scan_0001.pdf")
        doc.title = "Merger contract"
        assert matches(doc, {"keywords": ["contract"]}) is False

    def test_custodians_are_not_matched(self):
        doc = _doc()
        doc.created_by = uuid.uuid4()
        assert matches(doc, {"custodians": [str(doc.created_by)]}) is False
        criteria = {"keywords": ["contract"], "custodians": [str(uuid.uuid4())]}
        assert matches(doc, criteria) is True

    def test_fields_are_and_ed(self):
        criteria = {"keywords": ["contract"], "document_types": ["docx"]}
        assert matches(_doc(), criteria) is False

    def test_matter_checked_when_document_has_matter(self):
        matter_id = uuid.uuid4()
        criteria = {"matters": [str(matter_id)]}
        assert matches(_doc(matter_id=matter_id), criteria) is True
        assert matches(_doc(matter_id=uuid.uuid4()), criteria) is False

    def test_matter_ignored_when_document_has_no_matter(self):
        criteria = {"matters": [str(uuid.uuid4())], "keywords": ["contract"]}
        assert matches(_doc(matter_id=None), criteria) is True

    def test_date_range(self):
        criteria = {
            "date_range": {
                "start": "2024-01-01T00:00:00+00:00",
                "end": "2024-12-31T00:00:00+00:00",
            }
        }
        assert matches(_doc(), criteria) is True
        early = _doc(created_at=datetime(2023, 6, 1, tzinfo=timezone.utc))
        assert matches(early, criteria) is False

    def test_naive_created_at_treated_as_utc(self):
        criteria = {"date_range": {"start": "2024-02-29T23:00:00+00:00"}}
        assert matches(_doc(created_at=datetime(2024, 3, 1)), criteria) is True
