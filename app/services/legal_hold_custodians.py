import logging
from datetime import datetime, timedelta

from app.errors import InvalidStateError, NotFoundError, ValidationFailure
from app.models.audit import AuditOutcome, AuditRiskLevel
from app.models.ecm import (
    CustodianStatus,
    LegalHold,
    LegalHoldCustodian,
    LegalHoldStatus,
)
from app.repositories.directory import PersonRepository
from app.repositories.legal_holds import (
    CustodianAssignmentRepository,
    LegalHoldRepository,
)
from app.services.actor import SYSTEM_ACTOR, Actor, firm_scope
from app.services.audit import AuditTrail
from app.services.common import as_utc, coerce_uuid, utcnow
from app.services.event import EventType, publish_event
from app.services.notification import (
    LegalHoldNotifier,
    NotificationKind,
    custodian_emails_enabled,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[CustodianStatus, set[CustodianStatus]] = {
    CustodianStatus.pending: {
        CustodianStatus.acknowledged,
        CustodianStatus.non_compliant,
        CustodianStatus.released,
    },
    CustodianStatus.acknowledged: {
        CustodianStatus.compliant,
        CustodianStatus.non_compliant,
        CustodianStatus.released,
    },
    CustodianStatus.non_compliant: {
        CustodianStatus.acknowledged,
        CustodianStatus.compliant,
        CustodianStatus.released,
    },
    CustodianStatus.compliant: {
        CustodianStatus.non_compliant,
        CustodianStatus.released,
    },
    CustodianStatus.released: set(),
}

REMINDER_INTERVALS = {
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
    "quarterly": timedelta(days=90),
}

OVERDUE_REASON = "Acknowledgment overdue"


def can_transition(current: CustodianStatus, target: CustodianStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _reminder_interval(hold: LegalHold) -> timedelta:
    frequency = (hold.notification_settings or {}).get("reminder_frequency")
    return REMINDER_INTERVALS.get(frequency, REMINDER_INTERVALS["weekly"])


class CustodianTracker:
    """Custodian assignments and their acknowledgment/compliance state."""

    def __init__(
        self,
        holds: LegalHoldRepository,
        assignments: CustodianAssignmentRepository,
        people: PersonRepository,
        notifier: LegalHoldNotifier,
        audit: AuditTrail,
    ):
        self.holds = holds
        self.assignments = assignments
        self.people = people
        self.notifier = notifier
        self.audit = audit

    def _get_hold(self, hold_id, actor: Actor) -> LegalHold:
        hold = self.holds.get(coerce_uuid(hold_id), firm_scope(actor))
        if not hold:
            raise NotFoundError("Legal hold not found or access denied")
        return hold

    def _get_assignment(self, hold_id, custodian_id) -> LegalHoldCustodian:
        assignment = self.assignments.get_for(
            coerce_uuid(hold_id), coerce_uuid(custodian_id)
        )
        if not assignment:
            raise NotFoundError("Custodian assignment not found")
        return assignment

    def list_custodians(self, hold_id, actor: Actor) -> list[LegalHoldCustodian]:
        hold = self._get_hold(hold_id, actor)
        return self.assignments.list_for_hold(hold.id)

    def assign_custodians(
        self,
        hold_id,
        custodian_ids,
        actor: Actor,
        instructions: str | None = None,
        notify: bool = True,
    ) -> dict:
        hold = self._get_hold(hold_id, actor)
        if hold.status != LegalHoldStatus.active:
            raise InvalidStateError("Cannot assign custodians to inactive legal hold")

        requested = list(dict.fromkeys(coerce_uuid(c) for c in custodian_ids))
        existing = self.assignments.existing_custodian_ids(hold.id, requested)
        new_ids = [c for c in requested if c not in existing]

        people = self.people.list_active(new_ids, hold.firm_id)
        found = {person.id for person in people}
        missing = [c for c in new_ids if c not in found]
        if missing:
            raise ValidationFailure(
                "Some custodians were not found or are inactive",
                details=[
                    {"field": "custodian_ids", "message": f"unknown custodian {c}"}
                    for c in missing
                ],
            )

        created = []
        if new_ids:
            created = self.assignments.add_all(
                [
                    LegalHoldCustodian(
                        legal_hold_id=hold.id,
                        custodian_id=custodian_id,
                        status=CustodianStatus.pending,
                        assigned_by=actor.person_id,
                        metadata_={"instructions": instructions},
                    )
                    for custodian_id in new_ids
                ]
            )
            self.holds.increment_custodians(hold, len(created))

        notify = notify and custodian_emails_enabled(hold)
        notified = failed = 0
        if notify and created:
            now = utcnow()
            for assignment in created:
                result = self.notifier.send(NotificationKind.notice, assignment)
                if result.success:
                    assignment.notice_sent_at = now
                    notified += 1
                else:
                    failed += 1
                    logger.warning(
                        "Legal hold notice to %s failed: %s",
                        assignment.custodian_id,
                        result.error,
                    )
            self.assignments.flush()

        for assignment in created:
            publish_event(
                EventType.legal_hold_custodian_assigned,
                "legal_hold",
                hold.id,
                actor_id=actor.person_id,
                payload={"custodian_id": str(assignment.custodian_id)},
            )

        all_assignments = self.assignments.list_for_hold(hold.id)
        self.audit.log(
            actor,
            "legal_hold_custodians_assigned",
            "legal_hold",
            hold.id,
            details={
                "assigned_custodians": new_ids,
                "notification_sent": notify,
                "notices_failed": failed,
                "total_custodians": len(all_assignments),
            },
            outcome=AuditOutcome.partial if failed else AuditOutcome.success,
            firm_id=hold.firm_id,
        )
        logger.info(
            "Assigned %d custodians to legal hold %s (%d already assigned)",
            len(created),
            hold.id,
            len(existing),
        )
        return {
            "assigned": len(created),
            "already_assigned": len(existing),
            "notices_sent": notified,
            "notices_failed": failed,
            "custodians": all_assignments,
        }

    def acknowledge(
        self,
        hold_id,
        actor: Actor,
        method: str = "portal",
        notes: str | None = None,
    ) -> LegalHoldCustodian:
        assignment = self._get_assignment(hold_id, actor.person_id)
        if assignment.status in (
            CustodianStatus.acknowledged,
            CustodianStatus.compliant,
        ):
            raise InvalidStateError("Legal hold already acknowledged")
        if not can_transition(assignment.status, CustodianStatus.acknowledged):
            raise InvalidStateError("Custodian assignment has been released")

        assignment.status = CustodianStatus.acknowledged
        assignment.acknowledged_at = utcnow()
        assignment.acknowledgment_method = method
        if notes:
            assignment.metadata_ = {
                **(assignment.metadata_ or {}),
                "acknowledgment_notes": notes,
            }
        assignment = self.assignments.save(assignment)

        self.audit.log(
            actor,
            "legal_hold_acknowledged",
            "legal_hold",
            assignment.legal_hold_id,
            details={
                "custodian_id": actor.person_id,
                "acknowledgment_method": method,
                "notes": notes,
            },
        )
        publish_event(
            EventType.legal_hold_acknowledged,
            "legal_hold",
            assignment.legal_hold_id,
            actor_id=actor.person_id,
        )
        logger.info(
            "Custodian %s acknowledged legal hold %s",
            actor.person_id,
            assignment.legal_hold_id,
        )
        return assignment

    def evaluate_compliance(
        self,
        hold_id,
        custodian_id,
        compliant: bool,
        actor: Actor,
        reason: str | None = None,
    ) -> LegalHoldCustodian:
        hold = self._get_hold(hold_id, actor)
        assignment = self._get_assignment(hold.id, custodian_id)
        target = (
            CustodianStatus.compliant if compliant else CustodianStatus.non_compliant
        )
        if not can_transition(assignment.status, target):
            raise InvalidStateError(
                f"Cannot move custodian from {assignment.status.value} to {target.value}"
            )

        previous = assignment.status
        assignment.status = target
        assignment.compliance_checked_at = utcnow()
        assignment.non_compliance_reason = None if compliant else reason
        assignment = self.assignments.save(assignment)

        self.audit.log(
            actor,
            "legal_hold_compliance_evaluated",
            "legal_hold",
            hold.id,
            details={
                "custodian_id": assignment.custodian_id,
                "previous_status": previous.value,
                "status": target.value,
                "reason": reason,
            },
            risk_level=AuditRiskLevel.low if compliant else AuditRiskLevel.medium,
            firm_id=hold.firm_id,
        )
        return assignment

    def remove_custodian(self, hold_id, custodian_id, actor: Actor) -> None:
        hold = self._get_hold(hold_id, actor)
        assignment = self._get_assignment(hold.id, custodian_id)
        status = assignment.status

        self.assignments.delete(assignment)
        self.holds.decrement_custodians(hold)

        self.audit.log(
            actor,
            "legal_hold_custodian_removed",
            "legal_hold",
            hold.id,
            details={
                "removed_custodian": coerce_uuid(custodian_id),
                "custodian_status": status.value,
            },
            firm_id=hold.firm_id,
        )
        logger.info("Removed custodian %s from legal hold %s", custodian_id, hold.id)

    def send_compliance_reminders(self, hold_id, actor: Actor) -> dict:
        hold = self._get_hold(hold_id, actor)
        targets = self.assignments.list_for_hold(
            hold.id,
            statuses=[CustodianStatus.pending, CustodianStatus.non_compliant],
        )
        if not targets or not custodian_emails_enabled(hold):
            return {"sent": 0, "failed": 0}

        sent = failed = 0
        now = utcnow()
        for assignment in targets:
            result = self.notifier.send(NotificationKind.reminder, assignment)
            if result.success:
                sent += 1
                self._stamp_reminder(assignment, now)
            else:
                failed += 1

        hold.last_notification_sent = now
        self.holds.save(hold)

        self.audit.log(
            actor,
            "legal_hold_compliance_reminders_sent",
            "legal_hold",
            hold.id,
            details={"reminders_sent": sent, "reminders_failed": failed},
            outcome=AuditOutcome.partial if failed else AuditOutcome.success,
            firm_id=hold.firm_id,
        )
        logger.info(
            "Sent %d compliance reminders for legal hold %s (%d failed)",
            sent,
            hold.id,
            failed,
        )
        return {"sent": sent, "failed": failed}

    def get_compliance_status_for_user(self, user_id) -> dict:
        assignments = self.assignments.list_for_custodian(coerce_uuid(user_id))
        counts = {status: 0 for status in CustodianStatus}
        for assignment in assignments:
            counts[assignment.status] += 1
        return {
            "total_assignments": len(assignments),
            "pending": counts[CustodianStatus.pending],
            "acknowledged": counts[CustodianStatus.acknowledged],
            "compliant": counts[CustodianStatus.compliant],
            "non_compliant": counts[CustodianStatus.non_compliant],
            "released": counts[CustodianStatus.released],
            "assignments": assignments,
        }

    def release_all(self, hold: LegalHold) -> dict:
        """Release every open assignment on a hold that has left ``active``."""
        now = utcnow()
        notify = custodian_emails_enabled(hold)
        released = sent = failed = 0
        for assignment in self.assignments.list_for_hold(hold.id):
            if assignment.status == CustodianStatus.released:
                continue
            assignment.status = CustodianStatus.released
            assignment.released_at = now
            released += 1
            if not notify:
                continue
            result = self.notifier.send(NotificationKind.release, assignment)
            if result.success:
                sent += 1
            else:
                failed += 1
        self.assignments.flush()
        return {"released": released, "sent": sent, "failed": failed}

    def remind_if_due(self, assignment: LegalHoldCustodian, now: datetime) -> str:
        """Send one overdue-acknowledgment reminder unless one went out within
        the hold's reminder interval. Returns ``sent``, ``failed`` or ``skipped``."""
        if assignment.status != CustodianStatus.pending:
            return "skipped"
        if not custodian_emails_enabled(assignment.legal_hold):
            return "skipped"
        last = (assignment.metadata_ or {}).get("last_reminder_at")
        interval = _reminder_interval(assignment.legal_hold)
        if last and as_utc(datetime.fromisoformat(last)) > now - interval:
            return "skipped"

        result = self.notifier.send(NotificationKind.reminder, assignment)
        if not result.success:
            return "failed"
        self._stamp_reminder(assignment, now)
        self.assignments.flush()
        return "sent"

    def escalate_if_overdue(
        self, assignment: LegalHoldCustodian, hold: LegalHold, now: datetime
    ) -> bool:
        """Mark a pending custodian non-compliant once the hold's
        ``escalation_days`` have passed without acknowledgment."""
        days = (hold.notification_settings or {}).get("escalation_days")
        if not days or assignment.status != CustodianStatus.pending:
            return False
        if as_utc(assignment.created_at) > now - timedelta(days=days):
            return False

        assignment.status = CustodianStatus.non_compliant
        assignment.compliance_checked_at = now
        assignment.non_compliance_reason = OVERDUE_REASON
        self.assignments.save(assignment)
        self.audit.log(
            SYSTEM_ACTOR,
            "legal_hold_custodian_escalated",
            "legal_hold",
            hold.id,
            details={
                "custodian_id": assignment.custodian_id,
                "escalation_days": days,
            },
            risk_level=AuditRiskLevel.medium,
            firm_id=hold.firm_id,
        )
        logger.info(
            "Escalated custodian %s on legal hold %s", assignment.custodian_id, hold.id
        )
        return True

    @staticmethod
    def _stamp_reminder(assignment: LegalHoldCustodian, now: datetime) -> None:
        assignment.metadata_ = {
            **(assignment.metadata_ or {}),
            "last_reminder_at": now.isoformat(),
        }
