from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass

from app.errors import InvalidStateError, NotFoundError, ValidationFailure
from app.metrics import DOCUMENTS_APPLIED
from app.models.audit import AuditRiskLevel
from app.models.ecm import Document, LegalHold, LegalHoldStatus, LegalHoldType
from app.repositories.directory import MatterRepository
from app.repositories.documents import DocumentRepository
from app.repositories.legal_holds import (
    CustodianAssignmentRepository,
    LegalHoldRepository,
)
from app.schemas.ecm_legal_hold import LegalHoldCreate, LegalHoldUpdate
from app.services.actor import Actor, firm_scope
from app.services.audit import AuditTrail
from app.services.common import coerce_uuid, parse_datetime, utcnow
from app.services.event import EventType, publish_event
from app.services.legal_hold_criteria import matches
from app.services.legal_hold_custodians import CustodianTracker
from app.services.response import ListResponseMixin

logger = logging.getLogger(__name__)

HOLD_NOT_FOUND = "Legal hold not found or access denied"
MATTER_NOT_FOUND = "Matter not found or access denied"
HOLD_NOT_ACTIVE = "Legal hold is not active"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def validate_legal_hold_fields(data: dict, creating: bool = False) -> list[FieldError]:
    """Cross-field checks that the request schemas cannot express."""
    errors: list[FieldError] = []
    for key in ("name", "reason"):
        if creating and key not in data:
            errors.append(FieldError(key, f"{key} is required"))
        elif key in data and not str(data[key] or "").strip():
            errors.append(FieldError(key, f"{key} must not be blank"))

    criteria = data.get("search_criteria") or {}
    date_range = criteria.get("date_range") or {}
    start = parse_datetime(date_range.get("start"))
    end = parse_datetime(date_range.get("end"))
    if start and end and start > end:
        errors.append(
            FieldError("search_criteria.date_range", "start must not be after end")
        )

    expiry = parse_datetime(data.get("expiry_date"))
    if creating and expiry and expiry <= utcnow():
        errors.append(FieldError("expiry_date", "expiry_date must be in the future"))

    notification_settings = data.get("notification_settings") or {}
    escalation_days = notification_settings.get("escalation_days")
    if escalation_days is not None and escalation_days < 1:
        errors.append(
            FieldError(
                "notification_settings.escalation_days",
                "escalation_days must be at least 1",
            )
        )
    return errors


def _raise_if_invalid(errors: list[FieldError]) -> None:
    if errors:
        raise ValidationFailure(
            "Invalid legal hold", details=[asdict(error) for error in errors]
        )


def _json_section(model) -> dict | None:
    if model is None:
        return None
    return model.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# LegalHoldManager
# ---------------------------------------------------------------------------


class LegalHoldManager(ListResponseMixin):
    """Lifecycle of legal holds: create, update, release, expire and delete.

    The only writer of hold status and of the document link fields.
    """

    def __init__(
        self,
        holds: LegalHoldRepository,
        assignments: CustodianAssignmentRepository,
        documents: DocumentRepository,
        matters: MatterRepository,
        custodians: CustodianTracker,
        audit: AuditTrail,
    ):
        self.holds = holds
        self.assignments = assignments
        self.documents = documents
        self.matters = matters
        self.custodians = custodians
        self.audit = audit

    def get(self, hold_id, actor: Actor) -> LegalHold:
        hold = self.holds.get(coerce_uuid(hold_id), firm_scope(actor))
        if not hold:
            raise NotFoundError(HOLD_NOT_FOUND)
        return hold

    def list(
        self,
        actor: Actor,
        status: LegalHoldStatus | None = None,
        hold_type: LegalHoldType | None = None,
        matter_id=None,
        search: str | None = None,
        created_by=None,
        order_by: str = "created_at",
        order_dir: str = "desc",
        limit: int = 50,
        offset: int = 0,
    ) -> list[LegalHold]:
        return self.holds.list(
            firm_id=firm_scope(actor),
            status=status,
            hold_type=hold_type,
            matter_id=coerce_uuid(matter_id),
            search=search,
            created_by=coerce_uuid(created_by),
            order_by=order_by,
            order_dir=order_dir,
            limit=limit,
            offset=offset,
        )

    def list_documents(self, hold_id, actor: Actor) -> list[Document]:
        hold = self.get(hold_id, actor)
        return self.documents.list_linked(hold.id)

    def create(self, payload: LegalHoldCreate, actor: Actor) -> LegalHold:
        _raise_if_invalid(
            validate_legal_hold_fields(payload.model_dump(), creating=True)
        )
        if actor.firm_id is None or actor.person_id is None:
            raise ValidationFailure(
                "A firm member is required to create a legal hold",
                details=[{"field": "firm_id", "message": "actor has no firm"}],
            )
        if payload.matter_id:
            self._check_matter(payload.matter_id, actor.firm_id)

        data = payload.model_dump(
            exclude={"search_criteria", "notification_settings"}
        )
        hold = LegalHold(
            **data,
            search_criteria=_json_section(payload.search_criteria),
            notification_settings=_json_section(payload.notification_settings),
            firm_id=actor.firm_id,
            created_by=actor.person_id,
            status=LegalHoldStatus.active,
            documents_count=0,
            custodians_count=0,
        )
        hold = self.holds.add(hold)
        logger.info("Created legal hold %s for firm %s", hold.id, hold.firm_id)

        if hold.auto_apply_to_new_documents and hold.search_criteria:
            self._apply_to_existing_documents(hold, actor)

        self.audit.log(
            actor,
            "legal_hold_created",
            "legal_hold",
            hold.id,
            details={
                "hold_name": hold.name,
                "hold_type": hold.type.value,
                "matter_id": hold.matter_id,
                "auto_apply": hold.auto_apply_to_new_documents,
            },
            firm_id=hold.firm_id,
        )
        publish_event(
            EventType.legal_hold_created,
            "legal_hold",
            hold.id,
            actor_id=actor.person_id,
            payload={"name": hold.name, "documents_count": hold.documents_count},
        )
        return hold

    def update(self, hold_id, payload: LegalHoldUpdate, actor: Actor) -> LegalHold:
        hold = self.get(hold_id, actor)
        data = payload.model_dump(exclude_unset=True)
        _raise_if_invalid(validate_legal_hold_fields(data))
        if data.get("matter_id") and data["matter_id"] != hold.matter_id:
            self._check_matter(data["matter_id"], hold.firm_id)

        previous = {key: getattr(hold, key) for key in data}
        for key, value in data.items():
            if key in ("search_criteria", "notification_settings"):
                value = _json_section(getattr(payload, key))
            setattr(hold, key, value)
        hold = self.holds.save(hold)

        self.audit.log(
            actor,
            "legal_hold_updated",
            "legal_hold",
            hold.id,
            details={"changes": data, "previous_values": previous},
            firm_id=hold.firm_id,
        )
        logger.info("Updated legal hold %s", hold.id)
        return hold

    def release(self, hold_id, reason: str, actor: Actor) -> LegalHold:
        if not (reason or "").strip():
            raise ValidationFailure(
                "Release reason is required",
                details=[{"field": "reason", "message": "reason must not be blank"}],
            )
        hold = self.get(hold_id, actor)
        if hold.status != LegalHoldStatus.active:
            raise InvalidStateError(HOLD_NOT_ACTIVE)

        documents_released = hold.documents_count
        hold.status = LegalHoldStatus.released
        hold.released_by = actor.person_id
        hold.released_at = utcnow()
        hold.release_reason = reason
        hold = self.holds.save(hold)

        unlinked = self.documents.unlink_all(hold.id)
        released = self.custodians.release_all(hold)

        self.audit.log(
            actor,
            "legal_hold_released",
            "legal_hold",
            hold.id,
            details={
                "release_reason": reason,
                "documents_released": documents_released,
                "documents_unlinked": unlinked,
                "custodians_released": released["released"],
            },
            firm_id=hold.firm_id,
        )
        publish_event(
            EventType.legal_hold_released,
            "legal_hold",
            hold.id,
            actor_id=actor.person_id,
            payload={"documents_unlinked": unlinked},
        )
        logger.info(
            "Released legal hold %s (%d documents unlinked)", hold.id, unlinked
        )
        return hold

    def expire(self, hold: LegalHold, actor: Actor, cascade: bool = True) -> LegalHold:
        """Flip an active hold past its expiry date to ``expired``.

        With ``cascade`` the document links are cleared and custodians
        released the way ``release`` does it, minus releaser and reason.
        """
        if hold.status != LegalHoldStatus.active:
            raise InvalidStateError(HOLD_NOT_ACTIVE)

        hold.status = LegalHoldStatus.expired
        hold = self.holds.save(hold)
        unlinked = 0
        if cascade:
            unlinked = self.documents.unlink_all(hold.id)
            self.custodians.release_all(hold)

        self.audit.log(
            actor,
            "legal_hold_expired",
            "legal_hold",
            hold.id,
            details={
                "expiry_date": hold.expiry_date,
                "documents_unlinked": unlinked,
                "cascade": cascade,
            },
            firm_id=hold.firm_id,
        )
        publish_event(
            EventType.legal_hold_expired,
            "legal_hold",
            hold.id,
            payload={"documents_unlinked": unlinked},
        )
        logger.info("Expired legal hold %s", hold.id)
        return hold

    def apply_to_documents(self, hold_id, document_ids, actor: Actor) -> dict:
        hold = self.get(hold_id, actor)
        if hold.status != LegalHoldStatus.active:
            raise InvalidStateError(HOLD_NOT_ACTIVE)

        requested = list(dict.fromkeys(coerce_uuid(d) for d in document_ids))
        documents = self.documents.list_unheld_by_ids(requested, hold.firm_id)
        applied = len(documents)
        skipped = len(requested) - applied

        if documents:
            self.documents.link(documents, hold, actor.person_id, utcnow())
            self.holds.increment_documents(hold, applied)
            DOCUMENTS_APPLIED.inc(applied)
            for document in documents:
                publish_event(
                    EventType.legal_hold_document_added,
                    "legal_hold",
                    hold.id,
                    actor_id=actor.person_id,
                    document_id=document.id,
                )

        self.audit.log(
            actor,
            "legal_hold_applied_to_documents",
            "legal_hold",
            hold.id,
            details={
                "document_ids": requested,
                "applied_count": applied,
                "skipped_count": skipped,
            },
            firm_id=hold.firm_id,
        )
        logger.info(
            "Applied legal hold %s to %d documents (%d skipped)",
            hold.id,
            applied,
            skipped,
        )
        return {"applied": applied, "skipped": skipped}

    def remove(self, hold_id, actor: Actor) -> None:
        hold = self.get(hold_id, actor)
        if hold.status == LegalHoldStatus.active:
            raise InvalidStateError("Cannot delete active legal hold. Release it first.")

        details = {
            "hold_name": hold.name,
            "hold_type": hold.type.value,
            "final_status": hold.status.value,
        }
        hold_id, firm_id = hold.id, hold.firm_id
        # Expired holds without the unlink cascade can still be referenced
        self.documents.unlink_all(hold_id)
        self.holds.delete(hold)

        self.audit.log(
            actor,
            "legal_hold_deleted",
            "legal_hold",
            hold_id,
            details=details,
            risk_level=AuditRiskLevel.medium,
            firm_id=firm_id,
        )
        logger.info("Deleted legal hold %s", hold_id)

    def get_statistics(self, actor: Actor) -> dict:
        firm_id = firm_scope(actor)
        by_status = self.holds.count_by_status(firm_id)
        return {
            "total_holds": sum(by_status.values()),
            "active_holds": by_status.get(LegalHoldStatus.active.value, 0),
            "released_holds": by_status.get(LegalHoldStatus.released.value, 0),
            "expired_holds": by_status.get(LegalHoldStatus.expired.value, 0),
            "total_documents_on_hold": self.documents.count_under_hold(firm_id),
            "holds_by_type": self.holds.count_by_type(firm_id),
        }

    def reconcile_counters(self, hold_id=None, actor: Actor | None = None) -> list[dict]:
        """Recompute the cached counters from linked rows.

        Returns one entry per corrected hold. Drift is logged, never hidden.
        """
        if hold_id is not None:
            if actor is not None:
                targets = [self.get(hold_id, actor)]
            else:
                hold = self.holds.get(coerce_uuid(hold_id))
                if not hold:
                    raise NotFoundError(HOLD_NOT_FOUND)
                targets = [hold]
        else:
            firm_id = firm_scope(actor) if actor is not None else None
            targets = self.holds.list_active(firm_id)

        corrections = []
        for hold in targets:
            documents = self.documents.count_linked(hold.id)
            custodians = self.assignments.count_for_hold(hold.id)
            if (documents, custodians) == (hold.documents_count, hold.custodians_count):
                continue
            logger.warning(
                "Counter drift on legal hold %s: documents %d->%d, custodians %d->%d",
                hold.id,
                hold.documents_count,
                documents,
                hold.custodians_count,
                custodians,
            )
            corrections.append(
                {
                    "hold_id": str(hold.id),
                    "documents_count": {"was": hold.documents_count, "now": documents},
                    "custodians_count": {
                        "was": hold.custodians_count,
                        "now": custodians,
                    },
                }
            )
            hold.documents_count = documents
            hold.custodians_count = custodians
            self.holds.save(hold)
        return corrections

    def _apply_to_existing_documents(self, hold: LegalHold, actor: Actor) -> None:
        candidates = self.documents.list_unheld_for_firm(hold.firm_id)
        matched = [doc.id for doc in candidates if matches(doc, hold.search_criteria)]
        if matched:
            self.apply_to_documents(hold.id, matched, actor)

    def _check_matter(self, matter_id: uuid.UUID, firm_id: uuid.UUID) -> None:
        if not self.matters.get(coerce_uuid(matter_id), firm_id):
            raise NotFoundError(MATTER_NOT_FOUND)
