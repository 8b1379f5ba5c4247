import logging
from datetime import timedelta

from sqlalchemy.orm import Session

from app.config import settings
from app.metrics import (
    ACTIVE_HOLDS,
    DELETIONS_BLOCKED,
    DOCUMENTS_UNDER_HOLD,
    PENDING_CUSTODIANS,
)
from app.models.audit import AuditOutcome, AuditRiskLevel
from app.models.ecm import CustodianStatus, Document, LegalHold, LegalHoldStatus
from app.repositories.directory import PersonRepository
from app.repositories.documents import DocumentRepository
from app.repositories.legal_holds import (
    CustodianAssignmentRepository,
    LegalHoldRepository,
)
from app.services.actor import SYSTEM_ACTOR
from app.services.audit import AuditTrail
from app.services.common import as_utc, coerce_uuid, utcnow
from app.services.ecm_legal_hold import LegalHoldManager
from app.services.legal_hold_compliance import ComplianceAnalyzer
from app.services.legal_hold_criteria import matches
from app.services.legal_hold_custodians import CustodianTracker
from app.services.notification import (
    LegalHoldNotifier,
    NotificationKind,
    custodian_emails_enabled,
    legal_team_emails_enabled,
)

logger = logging.getLogger(__name__)


def _result(
    success: bool = True,
    actions_taken: list[str] | None = None,
    documents_affected: int = 0,
    custodians_notified: int = 0,
    errors: list[str] | None = None,
) -> dict:
    return {
        "success": success,
        "actions_taken": actions_taken or [],
        "documents_affected": documents_affected,
        "custodians_notified": custodians_notified,
        "errors": errors or [],
    }


class EnforcementEngine:
    """Reacts to document events and runs the periodic legal hold sweeps.

    Every entry point acts as ``SYSTEM_ACTOR``. Batch work collects per-item
    errors and keeps going.
    """

    def __init__(
        self,
        db: Session,
        holds: LegalHoldRepository,
        assignments: CustodianAssignmentRepository,
        documents: DocumentRepository,
        people: PersonRepository,
        manager: LegalHoldManager,
        custodians: CustodianTracker,
        analyzer: ComplianceAnalyzer,
        notifier: LegalHoldNotifier,
        audit: AuditTrail,
    ):
        self.db = db
        self.holds = holds
        self.assignments = assignments
        self.documents = documents
        self.people = people
        self.manager = manager
        self.custodians = custodians
        self.analyzer = analyzer
        self.notifier = notifier
        self.audit = audit

    # ------------------------------------------------------------------
    # Document events
    # ------------------------------------------------------------------

    def enforce_holds_on_document(self, document_id) -> dict:
        document = self.documents.get(coerce_uuid(document_id))
        if not document:
            return _result(success=False, errors=["Document not found"])
        if document.legal_hold:
            return _result(actions_taken=["Document already under legal hold"])

        candidates = self.holds.list_active(document.firm_id, auto_apply_only=True)
        applicable = [h for h in candidates if matches(document, h.search_criteria)]

        actions: list[str] = []
        errors: list[str] = []
        notified = 0
        applied_any = False
        for hold in applicable:
            try:
                outcome = self.manager.apply_to_documents(
                    hold.id, [document.id], SYSTEM_ACTOR
                )
                if outcome["applied"] != 1:
                    actions.append(f"Skipped legal hold: {hold.name}")
                    continue
                applied_any = True
                actions.append(f"Applied legal hold: {hold.name}")
                sent = self._notify_document_added(hold, document)
                if sent:
                    notified += sent
                    actions.append(f"Notified {sent} custodians")
            except Exception as e:
                logger.warning(
                    "Failed to apply hold %s to document %s: %s",
                    hold.id,
                    document.id,
                    e,
                )
                errors.append(f"Failed to apply hold {hold.name}: {e}")

        self.audit.log(
            SYSTEM_ACTOR,
            "automated_hold_enforcement",
            "document",
            document.id,
            details={
                "applicable_holds": len(applicable),
                "actions_taken": actions,
                "errors": errors,
            },
            outcome=AuditOutcome.partial if errors else AuditOutcome.success,
            firm_id=document.firm_id,
        )
        return _result(
            success=not errors,
            actions_taken=actions,
            documents_affected=1 if applied_any else 0,
            custodians_notified=notified,
            errors=errors,
        )

    def check_document_modification_compliance(self, document_id) -> dict:
        document = self.documents.get(coerce_uuid(document_id))
        if not document or not document.legal_hold:
            return _result(actions_taken=["Document not under legal hold"])

        hold = document.hold
        if not hold or hold.status != LegalHoldStatus.active:
            return _result(actions_taken=["Legal hold not active"])

        self.audit.log(
            SYSTEM_ACTOR,
            "potential_hold_violation",
            "document",
            document.id,
            details={
                "legal_hold_id": hold.id,
                "legal_hold_name": hold.name,
                "modification_time": utcnow(),
                "document_filename": document.file_name,
            },
            risk_level=AuditRiskLevel.high,
            firm_id=document.firm_id,
        )
        actions = ["Logged potential hold violation"]

        notified = 0
        if legal_team_emails_enabled(hold):
            legal_team = self.people.list_legal_team(
                document.firm_id, settings.legal_team_role
            )
            for person in legal_team:
                if self.notifier.alert(person, hold, document).success:
                    notified += 1
            if legal_team:
                actions.append(f"Notified {notified} legal team members")
        logger.warning(
            "Document under hold modified: %s (hold %s)", document.file_name, hold.name
        )
        return _result(
            actions_taken=actions, documents_affected=1, custodians_notified=notified
        )

    def prevent_document_deletion(self, document_id) -> dict:
        document = self.documents.get(coerce_uuid(document_id))
        if not document:
            return {"allowed": False, "reason": "Document not found"}
        if not document.legal_hold:
            return {"allowed": True}
        hold = document.hold
        if not hold or hold.status != LegalHoldStatus.active:
            return {"allowed": True}

        self.audit.log(
            SYSTEM_ACTOR,
            "blocked_document_deletion",
            "document",
            document.id,
            details={
                "legal_hold_id": hold.id,
                "legal_hold_name": hold.name,
                "attempted_deletion_time": utcnow(),
                "document_filename": document.file_name,
            },
            risk_level=AuditRiskLevel.high,
            outcome=AuditOutcome.failure,
            firm_id=document.firm_id,
        )
        DELETIONS_BLOCKED.inc()
        return {
            "allowed": False,
            "reason": (
                f"Document is under active legal hold: {hold.name}. "
                "Deletion is not permitted."
            ),
        }

    # ------------------------------------------------------------------
    # Sweeps
    # ------------------------------------------------------------------

    def _checkpoint(self) -> None:
        self.db.commit()

    def scan_new_documents(self, now=None) -> dict:
        now = now or utcnow()
        since = now - timedelta(minutes=settings.new_document_lookback_minutes)
        document_ids = [
            d.id
            for d in self.documents.list_recent_unheld(
                since, settings.new_document_batch_size
            )
        ]
        processed = affected = 0
        errors: list[str] = []
        for document_id in document_ids:
            try:
                result = self.enforce_holds_on_document(document_id)
                self._checkpoint()
                processed += 1
                affected += result["documents_affected"]
                errors.extend(result["errors"])
            except Exception as e:
                self.db.rollback()
                logger.warning("Enforcement on document %s failed: %s", document_id, e)
                errors.append(f"{document_id}: {e}")
        if processed:
            logger.info(
                "Processed %d new documents for legal hold enforcement", processed
            )
        return {"processed": processed, "documents_affected": affected, "errors": errors}

    def expire_holds(self, now=None) -> dict:
        now = now or utcnow()
        expired = 0
        errors: list[str] = []
        for hold_id in [h.id for h in self.holds.list_past_expiry(now)]:
            try:
                hold = self.holds.get(hold_id)
                self.manager.expire(
                    hold, SYSTEM_ACTOR, cascade=settings.expiry_unlinks_documents
                )
                self._checkpoint()
                expired += 1
            except Exception as e:
                self.db.rollback()
                logger.warning("Failed to expire legal hold %s: %s", hold_id, e)
                errors.append(f"{hold_id}: {e}")
        return {"expired": expired, "errors": errors}

    def send_overdue_reminders(self, now=None) -> dict:
        """Remind custodians pending longer than the acknowledgment window."""
        now = now or utcnow()
        cutoff = now - timedelta(days=settings.ack_overdue_days)
        counts = {"sent": 0, "failed": 0, "skipped": 0}
        errors: list[str] = []
        for assignment_id in [
            a.id for a in self.assignments.list_pending_created_before(cutoff)
        ]:
            try:
                assignment = self.assignments.get(assignment_id)
                counts[self.custodians.remind_if_due(assignment, now)] += 1
                self._checkpoint()
            except Exception as e:
                self.db.rollback()
                logger.warning(
                    "Overdue reminder for assignment %s failed: %s", assignment_id, e
                )
                errors.append(f"{assignment_id}: {e}")
        if counts["sent"] or counts["failed"]:
            logger.info(
                "Sent overdue reminders to %d custodians (%d failed)",
                counts["sent"],
                counts["failed"],
            )
        return {**counts, "errors": errors}

    def escalate_overdue(self, now=None) -> dict:
        now = now or utcnow()
        escalated = 0
        errors: list[str] = []
        for hold in self.holds.list_active():
            if not (hold.notification_settings or {}).get("escalation_days"):
                continue
            for assignment_id in [
                a.id
                for a in self.assignments.list_for_hold(
                    hold.id, statuses=[CustodianStatus.pending]
                )
            ]:
                try:
                    assignment = self.assignments.get(assignment_id)
                    if self.custodians.escalate_if_overdue(assignment, hold, now):
                        escalated += 1
                    self._checkpoint()
                except Exception as e:
                    self.db.rollback()
                    logger.warning(
                        "Escalation of assignment %s failed: %s", assignment_id, e
                    )
                    errors.append(f"{assignment_id}: {e}")
        return {"escalated": escalated, "errors": errors}

    def run_hourly_sweep(self, now=None) -> dict:
        """New-document scan, expiry, overdue reminders and escalation."""
        now = now or utcnow()
        documents = self.scan_new_documents(now)
        expiry = self.expire_holds(now)
        reminders = self.send_overdue_reminders(now)
        escalation = self.escalate_overdue(now)
        errors = (
            documents["errors"]
            + expiry["errors"]
            + reminders["errors"]
            + escalation["errors"]
        )
        logger.info(
            "Hourly legal hold sweep: %d documents, %d expired, %d reminders, "
            "%d escalated, %d errors",
            documents["processed"],
            expiry["expired"],
            reminders["sent"],
            escalation["escalated"],
            len(errors),
        )
        return {
            "documents_processed": documents["processed"],
            "documents_affected": documents["documents_affected"],
            "holds_expired": expiry["expired"],
            "reminders_sent": reminders["sent"],
            "reminders_failed": reminders["failed"],
            "custodians_escalated": escalation["escalated"],
            "errors": errors,
        }

    def cleanup_released_holds(self, now=None) -> dict:
        """Repair links left behind by holds released long ago."""
        now = now or utcnow()
        cutoff = now - timedelta(days=settings.released_retention_days)
        hold_ids = [h.id for h in self.holds.list_released_before(cutoff)]
        open_statuses = [s for s in CustodianStatus if s != CustodianStatus.released]
        repaired = 0
        errors: list[str] = []
        for hold_id in hold_ids:
            try:
                hold = self.holds.get(hold_id)
                unlinked = self.documents.unlink_all(hold.id)
                lingering = self.assignments.list_for_hold(
                    hold.id, statuses=open_statuses
                )
                if unlinked or lingering:
                    self.custodians.release_all(hold)
                    repaired += 1
                    logger.warning(
                        "Released legal hold %s still had %d documents and %d "
                        "open custodians",
                        hold.id,
                        unlinked,
                        len(lingering),
                    )
                self._checkpoint()
            except Exception as e:
                self.db.rollback()
                logger.warning("Cleanup of legal hold %s failed: %s", hold_id, e)
                errors.append(f"{hold_id}: {e}")
        logger.info(
            "Found %d old released holds, repaired %d", len(hold_ids), repaired
        )
        return {"released_holds": len(hold_ids), "repaired": repaired, "errors": errors}

    def publish_gauges(self) -> dict:
        metrics = {
            "active_holds": len(self.holds.list_active()),
            "documents_under_hold": self.documents.count_under_hold(),
            "pending_custodians": self.assignments.count_pending(),
        }
        ACTIVE_HOLDS.set(metrics["active_holds"])
        DOCUMENTS_UNDER_HOLD.set(metrics["documents_under_hold"])
        PENDING_CUSTODIANS.set(metrics["pending_custodians"])
        logger.info("Daily enforcement metrics: %s", metrics)
        return metrics

    def check_compliance(self, now=None) -> dict:
        """Regenerate reports for active holds; surface fresh critical violations."""
        now = now or utcnow()
        since = now - timedelta(days=1)
        checked = critical = 0
        errors: list[str] = []
        for hold in self.holds.list_active():
            try:
                report = self.analyzer.build_report(hold, now)
                checked += 1
            except Exception as e:
                logger.warning("Compliance check of hold %s failed: %s", hold.id, e)
                errors.append(f"{hold.id}: {e}")
                continue
            recent = [
                v
                for v in report["violations"]
                if v["severity"] == "critical" and as_utc(v["detected_at"]) >= since
            ]
            if recent:
                critical += len(recent)
                logger.warning(
                    "Legal hold %s (%s) has %d new critical violations",
                    hold.id,
                    hold.name,
                    len(recent),
                )
        return {"holds_checked": checked, "critical_violations": critical, "errors": errors}

    def run_daily_sweep(self, now=None) -> dict:
        """Housekeeping, counter reconciliation, gauges and compliance check."""
        now = now or utcnow()
        cleanup = self.cleanup_released_holds(now)
        corrections = self.manager.reconcile_counters()
        self._checkpoint()
        metrics = self.publish_gauges()
        compliance = self.check_compliance(now)
        return {
            "released_holds_checked": cleanup["released_holds"],
            "released_holds_repaired": cleanup["repaired"],
            "counter_corrections": len(corrections),
            "metrics": metrics,
            "holds_checked": compliance["holds_checked"],
            "critical_violations": compliance["critical_violations"],
            "errors": cleanup["errors"] + compliance["errors"],
        }

    def _notify_document_added(self, hold: LegalHold, document: Document) -> int:
        if not custodian_emails_enabled(hold):
            return 0
        sent = 0
        for assignment in self.assignments.list_for_hold(hold.id):
            if assignment.status == CustodianStatus.released:
                continue
            result = self.notifier.send(
                NotificationKind.document_added, assignment, document
            )
            if result.success:
                sent += 1
        return sent
