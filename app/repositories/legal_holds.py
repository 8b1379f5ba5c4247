from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import case, func, or_, select
from sqlalchemy.orm import Session

from app.models.ecm import (
    CustodianStatus,
    LegalHold,
    LegalHoldCustodian,
    LegalHoldStatus,
    LegalHoldType,
)
from app.services.common import apply_ordering, apply_pagination


class LegalHoldRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, hold_id: uuid.UUID, firm_id: uuid.UUID | None = None):
        hold = self.db.get(LegalHold, hold_id)
        if hold is None:
            return None
        if firm_id is not None and hold.firm_id != firm_id:
            return None
        return hold

    def list(
        self,
        firm_id: uuid.UUID | None,
        status: LegalHoldStatus | None,
        hold_type: LegalHoldType | None,
        matter_id: uuid.UUID | None,
        search: str | None,
        created_by: uuid.UUID | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[LegalHold]:
        stmt = select(LegalHold)
        if firm_id is not None:
            stmt = stmt.where(LegalHold.firm_id == firm_id)
        if status is not None:
            stmt = stmt.where(LegalHold.status == status)
        if hold_type is not None:
            stmt = stmt.where(LegalHold.type == hold_type)
        if matter_id is not None:
            stmt = stmt.where(LegalHold.matter_id == matter_id)
        if created_by is not None:
            stmt = stmt.where(LegalHold.created_by == created_by)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(LegalHold.name).like(pattern),
                    func.lower(LegalHold.description).like(pattern),
                    func.lower(LegalHold.reason).like(pattern),
                )
            )
        stmt = apply_ordering(
            stmt,
            order_by,
            order_dir,
            {
                "name": LegalHold.name,
                "created_at": LegalHold.created_at,
                "expiry_date": LegalHold.expiry_date,
            },
        )
        return list(self.db.scalars(apply_pagination(stmt, limit, offset)).all())

    def list_active(
        self, firm_id: uuid.UUID | None = None, auto_apply_only: bool = False
    ) -> list[LegalHold]:
        stmt = select(LegalHold).where(LegalHold.status == LegalHoldStatus.active)
        if firm_id is not None:
            stmt = stmt.where(LegalHold.firm_id == firm_id)
        if auto_apply_only:
            stmt = stmt.where(LegalHold.auto_apply_to_new_documents.is_(True))
        return list(self.db.scalars(stmt.order_by(LegalHold.created_at)).all())

    def list_past_expiry(self, now: datetime) -> list[LegalHold]:
        stmt = select(LegalHold).where(
            LegalHold.status == LegalHoldStatus.active,
            LegalHold.expiry_date.is_not(None),
            LegalHold.expiry_date <= now,
        )
        return list(self.db.scalars(stmt).all())

    def list_released_before(self, cutoff: datetime) -> list[LegalHold]:
        stmt = select(LegalHold).where(
            LegalHold.status == LegalHoldStatus.released,
            LegalHold.released_at <= cutoff,
        )
        return list(self.db.scalars(stmt).all())

    def count_by_status(self, firm_id: uuid.UUID | None) -> dict[str, int]:
        stmt = select(LegalHold.status, func.count()).group_by(LegalHold.status)
        if firm_id is not None:
            stmt = stmt.where(LegalHold.firm_id == firm_id)
        return {status.value: count for status, count in self.db.execute(stmt)}

    def count_by_type(self, firm_id: uuid.UUID | None) -> dict[str, int]:
        stmt = select(LegalHold.type, func.count()).group_by(LegalHold.type)
        if firm_id is not None:
            stmt = stmt.where(LegalHold.firm_id == firm_id)
        return {hold_type.value: count for hold_type, count in self.db.execute(stmt)}

    def add(self, hold: LegalHold) -> LegalHold:
        self.db.add(hold)
        self.db.flush()
        self.db.refresh(hold)
        return hold

    def save(self, hold: LegalHold) -> LegalHold:
        self.db.flush()
        self.db.refresh(hold)
        return hold

    def delete(self, hold: LegalHold) -> None:
        self.db.delete(hold)
        self.db.flush()

    def increment_documents(self, hold: LegalHold, amount: int) -> None:
        if amount == 0:
            return
        hold.documents_count = LegalHold.documents_count + amount
        self.db.flush()
        self.db.refresh(hold)

    def increment_custodians(self, hold: LegalHold, amount: int) -> None:
        if amount == 0:
            return
        hold.custodians_count = LegalHold.custodians_count + amount
        self.db.flush()
        self.db.refresh(hold)

    def decrement_custodians(self, hold: LegalHold) -> None:
        hold.custodians_count = case(
            (LegalHold.custodians_count > 0, LegalHold.custodians_count - 1),
            else_=0,
        )
        self.db.flush()
        self.db.refresh(hold)


class CustodianAssignmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, assignment_id: uuid.UUID) -> LegalHoldCustodian | None:
        return self.db.get(LegalHoldCustodian, assignment_id)

    def get_for(
        self, hold_id: uuid.UUID, custodian_id: uuid.UUID
    ) -> LegalHoldCustodian | None:
        stmt = select(LegalHoldCustodian).where(
            LegalHoldCustodian.legal_hold_id == hold_id,
            LegalHoldCustodian.custodian_id == custodian_id,
        )
        return self.db.scalars(stmt).first()

    def list_for_hold(
        self,
        hold_id: uuid.UUID,
        statuses: Iterable[CustodianStatus] | None = None,
    ) -> list[LegalHoldCustodian]:
        stmt = select(LegalHoldCustodian).where(
            LegalHoldCustodian.legal_hold_id == hold_id
        )
        if statuses is not None:
            stmt = stmt.where(LegalHoldCustodian.status.in_(list(statuses)))
        stmt = stmt.order_by(LegalHoldCustodian.created_at.desc())
        return list(self.db.scalars(stmt).all())

    def list_for_custodian(self, custodian_id: uuid.UUID) -> list[LegalHoldCustodian]:
        stmt = (
            select(LegalHoldCustodian)
            .where(LegalHoldCustodian.custodian_id == custodian_id)
            .order_by(LegalHoldCustodian.created_at.desc())
        )
        return list(self.db.scalars(stmt).all())

    def list_pending_created_before(
        self, cutoff: datetime
    ) -> list[LegalHoldCustodian]:
        stmt = (
            select(LegalHoldCustodian)
            .join(LegalHold, LegalHold.id == LegalHoldCustodian.legal_hold_id)
            .where(
                LegalHoldCustodian.status == CustodianStatus.pending,
                LegalHoldCustodian.created_at <= cutoff,
                LegalHold.status == LegalHoldStatus.active,
            )
        )
        return list(self.db.scalars(stmt).all())

    def existing_custodian_ids(
        self, hold_id: uuid.UUID, custodian_ids: Iterable[uuid.UUID]
    ) -> set[uuid.UUID]:
        ids = list(custodian_ids)
        if not ids:
            return set()
        stmt = select(LegalHoldCustodian.custodian_id).where(
            LegalHoldCustodian.legal_hold_id == hold_id,
            LegalHoldCustodian.custodian_id.in_(ids),
        )
        return set(self.db.scalars(stmt).all())

    def add_all(self, assignments: list[LegalHoldCustodian]) -> list[LegalHoldCustodian]:
        self.db.add_all(assignments)
        self.db.flush()
        for assignment in assignments:
            self.db.refresh(assignment)
        return assignments

    def save(self, assignment: LegalHoldCustodian) -> LegalHoldCustodian:
        self.db.flush()
        self.db.refresh(assignment)
        return assignment

    def delete(self, assignment: LegalHoldCustodian) -> None:
        self.db.delete(assignment)
        self.db.flush()

    def count_for_hold(self, hold_id: uuid.UUID) -> int:
        stmt = select(func.count()).select_from(LegalHoldCustodian).where(
            LegalHoldCustodian.legal_hold_id == hold_id
        )
        return self.db.scalar(stmt) or 0

    def count_pending(self, firm_id: uuid.UUID | None = None) -> int:
        stmt = (
            select(func.count())
            .select_from(LegalHoldCustodian)
            .where(LegalHoldCustodian.status == CustodianStatus.pending)
        )
        if firm_id is not None:
            stmt = stmt.join(
                LegalHold, LegalHold.id == LegalHoldCustodian.legal_hold_id
            ).where(LegalHold.firm_id == firm_id)
        return self.db.scalar(stmt) or 0

    def flush(self) -> None:
        self.db.flush()
