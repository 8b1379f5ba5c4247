"""Auto-apply criteria for legal holds.

A criteria mapping may carry ``matters``, ``document_types``, ``keywords`` and
``date_range`` (``{"start": ..., "end": ...}``). Present fields are AND-ed.
A mapping with none of them matches nothing.
"""

import os

from app.models.ecm import Document
from app.services.common import as_utc, parse_datetime

CRITERIA_FIELDS = ("matters", "document_types", "keywords", "date_range")


def has_criteria(criteria: dict | None) -> bool:
    if not criteria:
        return False
    return any(criteria.get(key) for key in CRITERIA_FIELDS)


def file_extension(file_name: str | None) -> str:
    _, ext = os.path.splitext(file_name or "")
    return ext[1:].lower()


def matches(document: Document, criteria: dict | None) -> bool:
    if not has_criteria(criteria):
        return False

    matters = criteria.get("matters")
    if matters and document.matter_id is not None:
        if str(document.matter_id) not in {str(m) for m in matters}:
            return False

    document_types = criteria.get("document_types")
    if document_types:
        allowed = {str(t).lower().lstrip(".") for t in document_types}
        if file_extension(document.file_name) not in allowed:
            return False

    keywords = criteria.get("keywords")
    if keywords:
        name = (document.file_name or "").lower()
        if not any(str(k).lower() in name for k in keywords if k):
            return False

    date_range = criteria.get("date_range")
    if date_range:
        created_at = as_utc(document.created_at)
        start = parse_datetime(date_range.get("start"))
        end = parse_datetime(date_range.get("end"))
        if start and created_at < start:
            return False
        if end and created_at > end:
            return False

    return True
