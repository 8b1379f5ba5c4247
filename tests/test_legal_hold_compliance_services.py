import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.errors import NotFoundError
from app.models.ecm import (
    CustodianStatus,
    Document,
    LegalHold,
    LegalHoldCustodian,
    LegalHoldStatus,
)
from app.models.person import Person
from app.services.actor import HumanActor
from app.services.legal_hold_compliance import (
    ComplianceStatus,
    classify,
    custodian_compliance,
    detect_violations,
    recommend,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _now():
    return datetime.now(timezone.utc)


def _hold(created_at=NOW - timedelta(days=30)):
    return LegalHold(id=uuid.uuid4(), name="Acme", created_at=created_at)


def _assignment(status, created_at=NOW - timedelta(days=1)):
    return LegalHoldCustodian(
        id=uuid.uuid4(),
        custodian_id=uuid.uuid4(),
        status=status,
        created_at=created_at,
    )


def _document(updated_at=NOW - timedelta(days=60), is_deleted=False, deleted_at=None):
    return Document(
        id=uuid.uuid4(),
        file_name="evidence.pdf",
        updated_at=updated_at,
        is_deleted=is_deleted,
        deleted_at=deleted_at,
    )


class TestCustodianCompliance:
    def test_no_custodians_is_fully_compliant(self):
        summary = custodian_compliance([])
        assert summary["total"] == 0
        assert summary["compliance_rate"] == 100.0

    def test_compliant_counts_as_acknowledged(self):
        summary = custodian_compliance(
            [
                _assignment(CustodianStatus.acknowledged),
                _assignment(CustodianStatus.compliant),
                _assignment(CustodianStatus.pending),
                _assignment(CustodianStatus.non_compliant),
            ]
        )
        assert summary["acknowledged"] == 2
        assert summary["pending"] == 1
        assert summary["non_compliant"] == 1
        assert summary["compliance_rate"] == 50.0


class TestDetectViolations:
    def test_overdue_pending_custodian(self):
        hold = _hold()
        late = _assignment(CustodianStatus.pending, NOW - timedelta(days=10))
        fresh = _assignment(CustodianStatus.pending, NOW - timedelta(days=2))
        (violation,) = detect_violations(hold, [late, fresh], [], NOW)
        assert violation["type"] == "custodian_non_acknowledgment"
        assert violation["severity"] == "medium"
        assert violation["entity_type"] == "custodian"
        assert violation["entity_id"] == str(late.custodian_id)
        assert (
            violation["description"]
            == "Custodian has not acknowledged legal hold for 10 days"
        )

    def test_deletion_after_hold_is_critical(self):
        hold = _hold()
        deleted_at = NOW - timedelta(days=1)
        doc = _document(is_deleted=True, deleted_at=deleted_at)
        (violation,) = detect_violations(hold, [], [doc], NOW)
        assert violation["type"] == "document_deletion"
        assert violation["severity"] == "critical"
        assert violation["detected_at"] == deleted_at

    def test_deletion_before_hold_ignored(self):
        hold = _hold()
        doc = _document(is_deleted=True, deleted_at=NOW - timedelta(days=45))
        assert detect_violations(hold, [], [doc], NOW) == []

    def test_modification_after_hold_is_breach(self):
        hold = _hold()
        doc = _document(updated_at=NOW - timedelta(days=3))
        (violation,) = detect_violations(hold, [], [doc], NOW)
        assert violation["type"] == "hold_breach"
        assert violation["severity"] == "high"

    def test_untouched_document(self):
        assert detect_violations(_hold(), [], [_document()], NOW) == []

    def test_naive_timestamps(self):
        hold = _hold(created_at=datetime(2025, 5, 1))
        doc = _document(updated_at=datetime(2025, 5, 2))
        (violation,) = detect_violations(hold, [], [doc], NOW)
        assert violation["type"] == "hold_breach"


class TestClassifyAndRecommend:
    def _documents(self, deleted=0, at_risk=0):
        return {
            "total_documents": 5,
            "preserved_documents": 5 - deleted,
            "deleted_documents": deleted,
            "at_risk_documents": at_risk,
        }

    def _custodians(self, rate, pending=0):
        return {
            "total": 4,
            "acknowledged": 4 - pending,
            "pending": pending,
            "non_compliant": 0,
            "compliance_rate": rate,
        }

    def test_critical_is_non_compliant(self):
        violations = [{"severity": "critical"}]
        status = classify(violations, self._custodians(100.0), self._documents(1))
        assert status == ComplianceStatus.non_compliant

    def test_high_is_at_risk(self):
        status = classify(
            [{"severity": "high"}], self._custodians(100.0), self._documents()
        )
        assert status == ComplianceStatus.at_risk

    def test_low_rate_is_at_risk(self):
        status = classify([], self._custodians(75.0, pending=1), self._documents())
        assert status == ComplianceStatus.at_risk

    def test_between_thresholds_is_at_risk(self):
        status = classify([], self._custodians(90.0), self._documents())
        assert status == ComplianceStatus.at_risk

    def test_clean_is_compliant(self):
        status = classify([], self._custodians(100.0), self._documents())
        assert status == ComplianceStatus.compliant

    def test_recommendations(self):
        recommendations = recommend(
            [{"severity": "critical"}],
            self._custodians(50.0, pending=2),
            self._documents(deleted=1, at_risk=1),
        )
        assert recommendations == [
            "Send reminders to 2 pending custodians",
            "Escalate non-compliant custodians to management",
            "Investigate document deletions and attempt recovery",
            "Review and verify document modifications are legitimate",
            "Immediately address critical compliance violations",
        ]

    def test_satisfactory(self):
        assert recommend([], self._custodians(100.0), self._documents()) == [
            "Legal hold compliance is satisfactory"
        ]


def _make_person(db_session, firm):
    p = Person(
        first_name="Comp",
        last_name="Liance",
        email=f"comp-{uuid.uuid4().hex[:8]}@test.com",
        firm_id=firm.id,
    )
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p


def _make_hold(db_session, firm, person, **kwargs):
    hold = LegalHold(
        name=f"hold_{uuid.uuid4().hex[:8]}",
        reason="Pending litigation",
        firm_id=firm.id,
        created_by=person.id,
        created_at=_now() - timedelta(days=20),
        **kwargs,
    )
    db_session.add(hold)
    db_session.commit()
    db_session.refresh(hold)
    return hold


def _make_held_document(db_session, firm, hold, **kwargs):
    kwargs.setdefault("updated_at", _now() - timedelta(days=30))
    doc = Document(
        firm_id=firm.id,
        file_name=f"doc_{uuid.uuid4().hex[:6]}.pdf",
        legal_hold=True,
        legal_hold_ref=hold.id,
        **kwargs,
    )
    db_session.add(doc)
    db_session.commit()
    db_session.refresh(doc)
    return doc


class TestComplianceReport:
    def test_clean_hold_report(self, db_session, services, actor, firm, person):
        hold = _make_hold(db_session, firm, person)
        _make_held_document(db_session, firm, hold)

        report = services.compliance.generate_compliance_report(hold.id, actor)
        assert report["legal_hold_id"] == hold.id
        assert report["hold_name"] == hold.name
        assert report["compliance_status"] == "compliant"
        assert report["custodian_compliance"]["compliance_rate"] == 100.0
        assert report["document_compliance"] == {
            "total_documents": 1,
            "preserved_documents": 1,
            "deleted_documents": 0,
            "at_risk_documents": 0,
        }
        assert report["violations"] == []
        assert report["recommendations"] == ["Legal hold compliance is satisfactory"]

    def test_deleted_document_makes_hold_non_compliant(
        self, db_session, services, actor, firm, person
    ):
        hold = _make_hold(db_session, firm, person)
        _make_held_document(
            db_session,
            firm,
            hold,
            is_deleted=True,
            deleted_at=_now() - timedelta(days=1),
        )
        report = services.compliance.generate_compliance_report(hold.id, actor)
        assert report["compliance_status"] == "non_compliant"
        assert report["document_compliance"]["deleted_documents"] == 1
        assert [v["type"] for v in report["violations"]] == ["document_deletion"]

    def test_other_firm_cannot_read_report(
        self, db_session, services, firm, person, other_firm
    ):
        hold = _make_hold(db_session, firm, person)
        outsider = HumanActor.from_person(_make_person(db_session, other_firm))
        with pytest.raises(NotFoundError):
            services.compliance.generate_compliance_report(hold.id, outsider)


class TestSystemComplianceMetrics:
    def test_no_active_holds(self, services):
        metrics = services.compliance.get_system_compliance_metrics()
        assert metrics["total_active_holds"] == 0
        assert metrics["overall_compliance_rate"] == 100.0
        assert metrics["recent_violations"] == []

    def test_aggregates_active_holds(self, db_session, services, firm, person):
        clean = _make_hold(db_session, firm, person)
        _make_held_document(db_session, firm, clean)
        troubled = _make_hold(db_session, firm, person)
        _make_held_document(
            db_session,
            firm,
            troubled,
            is_deleted=True,
            deleted_at=_now() - timedelta(days=2),
        )
        overdue = LegalHoldCustodian(
            legal_hold_id=troubled.id,
            custodian_id=_make_person(db_session, firm).id,
            status=CustodianStatus.pending,
            created_at=_now() - timedelta(days=9),
        )
        db_session.add(overdue)
        _make_hold(db_session, firm, person, status=LegalHoldStatus.released)
        db_session.commit()

        metrics = services.compliance.get_system_compliance_metrics()
        assert metrics["total_active_holds"] == 2
        assert metrics["compliant_holds"] == 1
        assert metrics["non_compliant_holds"] == 1
        assert metrics["overall_compliance_rate"] == 50.0
        assert metrics["total_custodians"] == 1
        assert metrics["pending_custodians"] == 1
        assert metrics["overdue_acknowledgments"] == 1
        assert {v["type"] for v in metrics["recent_violations"]} == {
            "document_deletion",
            "custodian_non_acknowledgment",
        }

    def test_scoped_to_firm(self, db_session, services, firm, person, other_firm):
        _make_hold(db_session, firm, person)
        _make_hold(db_session, other_firm, _make_person(db_session, other_firm))
        metrics = services.compliance.get_system_compliance_metrics(firm.id)
        assert metrics["total_active_holds"] == 1
