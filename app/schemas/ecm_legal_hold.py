from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.ecm import CustodianStatus, LegalHoldStatus, LegalHoldType


# ---------------------------------------------------------------------------
# Criteria & settings
# ---------------------------------------------------------------------------


class DateRange(BaseModel):
    start: datetime | None = None
    end: datetime | None = None


class SearchCriteria(BaseModel):
    keywords: list[str] | None = None
    date_range: DateRange | None = None
    document_types: list[str] | None = None
    custodians: list[str] | None = None
    matters: list[UUID] | None = None


class NotificationSettings(BaseModel):
    email_custodians: bool = True
    email_legal_team: bool = True
    reminder_frequency: Literal["weekly", "monthly", "quarterly"] = "weekly"
    escalation_days: int | None = Field(default=None, ge=1)


# ---------------------------------------------------------------------------
# LegalHold
# ---------------------------------------------------------------------------


class LegalHoldBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    reason: str = Field(min_length=1)
    type: LegalHoldType = LegalHoldType.litigation
    matter_id: UUID | None = None
    expiry_date: datetime | None = None
    auto_apply_to_new_documents: bool = True
    custodian_instructions: str | None = None


class LegalHoldCreate(LegalHoldBase):
    notification_settings: NotificationSettings | None = None
    search_criteria: SearchCriteria | None = None


class LegalHoldUpdate(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    description: str | None = None
    reason: str | None = None
    type: LegalHoldType | None = None
    matter_id: UUID | None = None
    expiry_date: datetime | None = None
    auto_apply_to_new_documents: bool | None = None
    custodian_instructions: str | None = None
    notification_settings: NotificationSettings | None = None
    search_criteria: SearchCriteria | None = None


class LegalHoldRelease(BaseModel):
    reason: str = Field(min_length=1)


class LegalHoldRead(LegalHoldBase):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: LegalHoldStatus
    firm_id: UUID
    created_by: UUID
    released_by: UUID | None = None
    released_at: datetime | None = None
    release_reason: str | None = None
    notification_settings: dict | None = None
    search_criteria: dict | None = None
    documents_count: int
    custodians_count: int
    last_notification_sent: datetime | None = None
    created_at: datetime
    updated_at: datetime


class LegalHoldStatistics(BaseModel):
    total_holds: int
    active_holds: int
    released_holds: int
    expired_holds: int
    total_documents_on_hold: int
    holds_by_type: dict[str, int]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class ApplyToDocuments(BaseModel):
    document_ids: list[UUID] = Field(min_length=1)


class ApplyToDocumentsResult(BaseModel):
    applied: int
    skipped: int


class HeldDocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    firm_id: UUID
    matter_id: UUID | None = None
    title: str | None = None
    file_name: str
    mime_type: str | None = None
    is_deleted: bool
    deleted_at: datetime | None = None
    legal_hold: bool
    legal_hold_reason: str | None = None
    legal_hold_set_by: UUID | None = None
    legal_hold_set_at: datetime | None = None
    legal_hold_ref: UUID | None = None
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Custodians
# ---------------------------------------------------------------------------


class AssignCustodians(BaseModel):
    custodian_ids: list[UUID] = Field(min_length=1)
    instructions: str | None = None
    send_notification: bool = True


class AcknowledgeHold(BaseModel):
    acknowledgment_method: Literal["email", "portal", "phone", "in_person"] = "portal"
    notes: str | None = None


class EvaluateCompliance(BaseModel):
    compliant: bool
    reason: str | None = None


class CustodianRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    legal_hold_id: UUID
    custodian_id: UUID
    status: CustodianStatus
    notice_sent_at: datetime | None = None
    acknowledged_at: datetime | None = None
    compliance_checked_at: datetime | None = None
    released_at: datetime | None = None
    acknowledgment_method: str | None = None
    non_compliance_reason: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="metadata_")
    assigned_by: UUID | None = None
    created_at: datetime
    updated_at: datetime


class AssignCustodiansResult(BaseModel):
    assigned: int
    already_assigned: int
    notices_sent: int
    notices_failed: int
    custodians: list[CustodianRead]


class ReminderResult(BaseModel):
    sent: int
    failed: int


class UserComplianceStatus(BaseModel):
    total_assignments: int
    pending: int
    acknowledged: int
    compliant: int
    non_compliant: int
    released: int
    assignments: list[CustodianRead]


# ---------------------------------------------------------------------------
# Compliance
# ---------------------------------------------------------------------------


class ViolationRead(BaseModel):
    type: str
    severity: str
    description: str
    legal_hold_id: UUID
    entity_type: str
    entity_id: str
    detected_at: datetime


class CustodianCompliance(BaseModel):
    total: int
    acknowledged: int
    pending: int
    non_compliant: int
    compliance_rate: float


class DocumentCompliance(BaseModel):
    total_documents: int
    preserved_documents: int
    deleted_documents: int
    at_risk_documents: int


class ComplianceReport(BaseModel):
    legal_hold_id: UUID
    hold_name: str
    compliance_status: str
    custodian_compliance: CustodianCompliance
    document_compliance: DocumentCompliance
    violations: list[ViolationRead]
    recommendations: list[str]
    generated_at: datetime


class SystemComplianceMetrics(BaseModel):
    total_active_holds: int
    compliant_holds: int
    non_compliant_holds: int
    at_risk_holds: int
    overall_compliance_rate: float
    total_custodians: int
    acknowledged_custodians: int
    pending_custodians: int
    overdue_acknowledgments: int
    recent_violations: list[ViolationRead]


# ---------------------------------------------------------------------------
# Enforcement
# ---------------------------------------------------------------------------


class EnforcementResult(BaseModel):
    success: bool
    actions_taken: list[str]
    documents_affected: int
    custodians_notified: int
    errors: list[str]


class DeletionCheck(BaseModel):
    allowed: bool
    reason: str | None = None


class CounterValue(BaseModel):
    was: int
    now: int


class CounterCorrection(BaseModel):
    hold_id: UUID
    documents_count: CounterValue
    custodians_count: CounterValue
