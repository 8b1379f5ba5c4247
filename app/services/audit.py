import logging
import uuid

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.models.audit import AuditEvent, AuditOutcome, AuditRiskLevel
from app.services.actor import Actor

logger = logging.getLogger(__name__)

_ELEVATED_RISK = {AuditRiskLevel.high, AuditRiskLevel.critical}


class AuditTrail:
    """Audit sink bound to the caller's unit of work.

    Entries are added to the session and persisted with the operation that
    produced them. Failures building an entry are logged and swallowed: an
    audit problem must never fail the triggering operation.
    """

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        actor: Actor,
        action: str,
        resource_type: str,
        resource_id: str | uuid.UUID | None,
        details: dict | None = None,
        risk_level: AuditRiskLevel = AuditRiskLevel.low,
        outcome: AuditOutcome = AuditOutcome.success,
        firm_id: uuid.UUID | None = None,
    ) -> AuditEvent | None:
        try:
            event = AuditEvent(
                actor_type=actor.actor_type,
                actor_id=actor.person_id,
                firm_id=firm_id or actor.firm_id,
                action=action,
                resource_type=resource_type,
                resource_id=str(resource_id) if resource_id else None,
                details=jsonable_encoder(details or {}),
                risk_level=risk_level,
                outcome=outcome,
            )
            self.db.add(event)
        except Exception as e:
            logger.exception(
                "Failed to record audit event %s on %s/%s: %s",
                action,
                resource_type,
                resource_id,
                e,
            )
            return None

        if risk_level in _ELEVATED_RISK:
            logger.warning(
                "High-risk activity: %s on %s:%s by %s (%s)",
                action,
                resource_type,
                resource_id,
                actor.person_id or "system",
                risk_level.value,
            )
        return event
