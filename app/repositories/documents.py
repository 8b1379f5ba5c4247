import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from app.models.ecm import Document, LegalHold


class DocumentRepository:
    """Read access to documents; writes limited to the legal hold link fields."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, document_id: uuid.UUID) -> Document | None:
        return self.db.get(Document, document_id)

    def list_unheld_by_ids(
        self, document_ids: Iterable[uuid.UUID], firm_id: uuid.UUID
    ) -> list[Document]:
        ids = list(document_ids)
        if not ids:
            return []
        stmt = select(Document).where(
            Document.id.in_(ids),
            Document.legal_hold.is_(False),
            Document.firm_id == firm_id,
        )
        return list(self.db.scalars(stmt).all())

    def list_unheld_for_firm(self, firm_id: uuid.UUID) -> list[Document]:
        stmt = select(Document).where(
            Document.firm_id == firm_id,
            Document.legal_hold.is_(False),
            Document.is_deleted.is_(False),
        )
        return list(self.db.scalars(stmt.order_by(Document.created_at)).all())

    def list_recent_unheld(self, since: datetime, limit: int) -> list[Document]:
        stmt = (
            select(Document)
            .where(
                Document.legal_hold.is_(False),
                Document.is_deleted.is_(False),
                Document.created_at >= since,
            )
            .order_by(Document.created_at)
            .limit(limit)
        )
        return list(self.db.scalars(stmt).all())

    def list_linked(self, hold_id: uuid.UUID) -> list[Document]:
        stmt = select(Document).where(Document.legal_hold_ref == hold_id)
        return list(self.db.scalars(stmt.order_by(Document.created_at)).all())

    def count_linked(self, hold_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(Document).where(
            Document.legal_hold_ref == hold_id
        )
        return self.db.scalar(stmt) or 0

    def count_under_hold(self, firm_id: uuid.UUID | None = None) -> int:
        stmt = (
            select(func.count())
            .select_from(Document)
            .where(Document.legal_hold.is_(True))
        )
        if firm_id is not None:
            stmt = stmt.where(Document.firm_id == firm_id)
        return self.db.scalar(stmt) or 0

    def link(
        self,
        documents: list[Document],
        hold: LegalHold,
        set_by: uuid.UUID | None,
        now: datetime,
    ) -> None:
        for document in documents:
            document.legal_hold = True
            document.legal_hold_reason = hold.reason
            document.legal_hold_set_by = set_by
            document.legal_hold_set_at = now
            document.legal_hold_ref = hold.id
        self.db.flush()

    def unlink_all(self, hold_id: uuid.UUID) -> int:
        result = self.db.execute(
            update(Document)
            .where(Document.legal_hold_ref == hold_id)
            .values(
                legal_hold=False,
                legal_hold_reason=None,
                legal_hold_set_by=None,
                legal_hold_set_at=None,
                legal_hold_ref=None,
            )
            .execution_options(synchronize_session="fetch")
        )
        self.db.flush()
        return result.rowcount or 0
