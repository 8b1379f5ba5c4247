"""Compliance reports for legal holds.

Reports and violations are derived from current custodian and document state
on every call and never stored. System metrics regenerate one report per
active hold, so their cost grows linearly with the number of active holds.
"""

import enum
import logging
from datetime import datetime, timedelta

from app.config import settings
from app.errors import NotFoundError
from app.models.ecm import CustodianStatus, Document, LegalHold, LegalHoldCustodian
from app.repositories.documents import DocumentRepository
from app.repositories.legal_holds import (
    CustodianAssignmentRepository,
    LegalHoldRepository,
)
from app.services.actor import Actor, firm_scope
from app.services.common import as_utc, coerce_uuid, utcnow

logger = logging.getLogger(__name__)


class ViolationType(enum.Enum):
    custodian_non_acknowledgment = "custodian_non_acknowledgment"
    document_deletion = "document_deletion"
    hold_breach = "hold_breach"
    missing_preservation = "missing_preservation"


class Severity(enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class ComplianceStatus(enum.Enum):
    compliant = "compliant"
    at_risk = "at_risk"
    non_compliant = "non_compliant"


_ACKNOWLEDGED = {CustodianStatus.acknowledged, CustodianStatus.compliant}


def _violation(
    violation_type: ViolationType,
    severity: Severity,
    description: str,
    hold: LegalHold,
    entity_type: str,
    entity_id,
    detected_at: datetime,
) -> dict:
    return {
        "type": violation_type.value,
        "severity": severity.value,
        "description": description,
        "legal_hold_id": hold.id,
        "entity_type": entity_type,
        "entity_id": str(entity_id),
        "detected_at": detected_at,
    }


def custodian_compliance(assignments: list[LegalHoldCustodian]) -> dict:
    total = len(assignments)
    acknowledged = sum(1 for a in assignments if a.status in _ACKNOWLEDGED)
    pending = sum(1 for a in assignments if a.status == CustodianStatus.pending)
    non_compliant = sum(
        1 for a in assignments if a.status == CustodianStatus.non_compliant
    )
    return {
        "total": total,
        "acknowledged": acknowledged,
        "pending": pending,
        "non_compliant": non_compliant,
        "compliance_rate": (acknowledged / total) * 100 if total else 100.0,
    }


def _modified_after_hold(document: Document, hold: LegalHold) -> bool:
    return as_utc(document.updated_at) > as_utc(hold.created_at)


def document_compliance(documents: list[Document], hold: LegalHold) -> dict:
    deleted = sum(1 for d in documents if d.is_deleted)
    at_risk = sum(
        1 for d in documents if not d.is_deleted and _modified_after_hold(d, hold)
    )
    return {
        "total_documents": len(documents),
        "preserved_documents": len(documents) - deleted,
        "deleted_documents": deleted,
        "at_risk_documents": at_risk,
    }


def detect_violations(
    hold: LegalHold,
    assignments: list[LegalHoldCustodian],
    documents: list[Document],
    now: datetime,
) -> list[dict]:
    violations = []
    overdue_cutoff = now - timedelta(days=settings.ack_overdue_days)
    for assignment in assignments:
        created = as_utc(assignment.created_at)
        if assignment.status != CustodianStatus.pending or created > overdue_cutoff:
            continue
        days = (now - created).days
        violations.append(
            _violation(
                ViolationType.custodian_non_acknowledgment,
                Severity.medium,
                f"Custodian has not acknowledged legal hold for {days} days",
                hold,
                "custodian",
                assignment.custodian_id,
                now,
            )
        )

    hold_created = as_utc(hold.created_at)
    for document in documents:
        if document.is_deleted:
            deleted_at = as_utc(document.deleted_at)
            if deleted_at and deleted_at > hold_created:
                violations.append(
                    _violation(
                        ViolationType.document_deletion,
                        Severity.critical,
                        "Document was deleted after legal hold was placed",
                        hold,
                        "document",
                        document.id,
                        deleted_at,
                    )
                )
        elif _modified_after_hold(document, hold):
            violations.append(
                _violation(
                    ViolationType.hold_breach,
                    Severity.high,
                    "Document was modified after legal hold was placed",
                    hold,
                    "document",
                    document.id,
                    as_utc(document.updated_at),
                )
            )
    return violations


def classify(
    violations: list[dict], custodians: dict, documents: dict
) -> ComplianceStatus:
    severities = {v["severity"] for v in violations}
    rate = custodians["compliance_rate"]
    if Severity.critical.value in severities:
        return ComplianceStatus.non_compliant
    if Severity.high.value in severities or rate < 80:
        return ComplianceStatus.at_risk
    if rate >= 95 and documents["deleted_documents"] == 0:
        return ComplianceStatus.compliant
    return ComplianceStatus.at_risk


def recommend(violations: list[dict], custodians: dict, documents: dict) -> list[str]:
    recommendations = []
    if custodians["pending"] > 0:
        recommendations.append(
            f"Send reminders to {custodians['pending']} pending custodians"
        )
    if custodians["compliance_rate"] < 90:
        recommendations.append("Escalate non-compliant custodians to management")
    if documents["deleted_documents"] > 0:
        recommendations.append("Investigate document deletions and attempt recovery")
    if documents["at_risk_documents"] > 0:
        recommendations.append(
            "Review and verify document modifications are legitimate"
        )
    if any(v["severity"] == Severity.critical.value for v in violations):
        recommendations.append("Immediately address critical compliance violations")
    if not recommendations:
        recommendations.append("Legal hold compliance is satisfactory")
    return recommendations


class ComplianceAnalyzer:
    def __init__(
        self,
        holds: LegalHoldRepository,
        assignments: CustodianAssignmentRepository,
        documents: DocumentRepository,
    ):
        self.holds = holds
        self.assignments = assignments
        self.documents = documents

    def generate_compliance_report(self, hold_id, actor: Actor | None = None) -> dict:
        firm_id = firm_scope(actor) if actor is not None else None
        hold = self.holds.get(coerce_uuid(hold_id), firm_id)
        if not hold:
            raise NotFoundError("Legal hold not found or access denied")
        return self.build_report(hold)

    def build_report(self, hold: LegalHold, now: datetime | None = None) -> dict:
        now = now or utcnow()
        assignments = self.assignments.list_for_hold(hold.id)
        documents = self.documents.list_linked(hold.id)

        custodians = custodian_compliance(assignments)
        document_state = document_compliance(documents, hold)
        violations = detect_violations(hold, assignments, documents, now)
        status = classify(violations, custodians, document_state)
        return {
            "legal_hold_id": hold.id,
            "hold_name": hold.name,
            "compliance_status": status.value,
            "custodian_compliance": custodians,
            "document_compliance": document_state,
            "violations": violations,
            "recommendations": recommend(violations, custodians, document_state),
            "generated_at": now,
        }

    def get_system_compliance_metrics(self, firm_id=None) -> dict:
        now = utcnow()
        window_start = now - timedelta(days=settings.violation_window_days)
        overdue_cutoff = now - timedelta(days=settings.ack_overdue_days)
        active = self.holds.list_active(coerce_uuid(firm_id))

        by_status = {status: 0 for status in ComplianceStatus}
        total = acknowledged = pending = overdue = 0
        recent: list[dict] = []
        for hold in active:
            report = self.build_report(hold, now)
            by_status[ComplianceStatus(report["compliance_status"])] += 1
            custodians = report["custodian_compliance"]
            total += custodians["total"]
            acknowledged += custodians["acknowledged"]
            pending += custodians["pending"]
            overdue += sum(
                1
                for a in self.assignments.list_for_hold(
                    hold.id, statuses=[CustodianStatus.pending]
                )
                if as_utc(a.created_at) <= overdue_cutoff
            )
            recent.extend(
                v for v in report["violations"] if as_utc(v["detected_at"]) >= window_start
            )

        compliant = by_status[ComplianceStatus.compliant]
        return {
            "total_active_holds": len(active),
            "compliant_holds": compliant,
            "non_compliant_holds": by_status[ComplianceStatus.non_compliant],
            "at_risk_holds": by_status[ComplianceStatus.at_risk],
            "overall_compliance_rate": (compliant / len(active)) * 100
            if active
            else 100.0,
            "total_custodians": total,
            "acknowledged_custodians": acknowledged,
            "pending_custodians": pending,
            "overdue_acknowledgments": overdue,
            "recent_violations": recent,
        }
