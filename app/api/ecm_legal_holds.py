from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_actor, get_legal_hold_services
from app.models.ecm import LegalHoldStatus, LegalHoldType
from app.schemas.common import ListResponse
from app.schemas.ecm_legal_hold import (
    AcknowledgeHold,
    ApplyToDocuments,
    ApplyToDocumentsResult,
    AssignCustodians,
    AssignCustodiansResult,
    ComplianceReport,
    CounterCorrection,
    CustodianRead,
    DeletionCheck,
    EnforcementResult,
    EvaluateCompliance,
    HeldDocumentRead,
    LegalHoldCreate,
    LegalHoldRead,
    LegalHoldRelease,
    LegalHoldStatistics,
    LegalHoldUpdate,
    ReminderResult,
    SystemComplianceMetrics,
    UserComplianceStatus,
)
from app.services.actor import HumanActor, firm_scope
from app.services.legal_hold_container import LegalHoldServices

router = APIRouter(prefix="/ecm", tags=["ecm-legal-holds"])


# ------------------------------------------------------------------
# Collection-level reads
# ------------------------------------------------------------------


@router.get(
    "/legal-holds/statistics",
    response_model=LegalHoldStatistics,
)
def get_legal_hold_statistics(
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.manager.get_statistics(actor)


@router.get(
    "/legal-holds/my-assignments",
    response_model=UserComplianceStatus,
)
def get_my_assignments(
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.custodians.get_compliance_status_for_user(actor.person_id)


@router.get(
    "/legal-holds/compliance/system-metrics",
    response_model=SystemComplianceMetrics,
)
def get_system_compliance_metrics(
    firm_id: UUID | None = None,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    scope = firm_scope(actor)
    return services.compliance.get_system_compliance_metrics(
        scope if scope is not None else firm_id
    )


@router.post(
    "/legal-holds/reconcile",
    response_model=list[CounterCorrection],
)
def reconcile_legal_hold_counters(
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> list[dict]:
    return services.manager.reconcile_counters(actor=actor)


# ------------------------------------------------------------------
# Enforcement checks
# ------------------------------------------------------------------


@router.post(
    "/legal-holds/enforcement/check-document/{document_id}",
    response_model=EnforcementResult,
)
def enforce_holds_on_document(
    document_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.enforcement.enforce_holds_on_document(document_id)


@router.post(
    "/legal-holds/enforcement/check-modification/{document_id}",
    response_model=EnforcementResult,
)
def check_document_modification(
    document_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.enforcement.check_document_modification_compliance(document_id)


@router.get(
    "/legal-holds/enforcement/deletion-check/{document_id}",
    response_model=DeletionCheck,
)
def check_document_deletion(
    document_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.enforcement.prevent_document_deletion(document_id)


# ------------------------------------------------------------------
# LegalHold lifecycle
# ------------------------------------------------------------------


@router.post(
    "/legal-holds",
    response_model=LegalHoldRead,
    status_code=status.HTTP_201_CREATED,
)
def create_legal_hold(
    payload: LegalHoldCreate,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> LegalHoldRead:
    return services.manager.create(payload, actor)


@router.get(
    "/legal-holds",
    response_model=ListResponse[LegalHoldRead],
)
def list_legal_holds(
    status_filter: LegalHoldStatus | None = Query(default=None, alias="status"),
    hold_type: LegalHoldType | None = Query(default=None, alias="type"),
    matter_id: UUID | None = None,
    search: str | None = None,
    created_by: UUID | None = None,
    order_by: str = Query(default="created_at"),
    order_dir: str = Query(default="desc", pattern="^(asc|desc)$"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.manager.list_response(
        actor,
        status=status_filter,
        hold_type=hold_type,
        matter_id=matter_id,
        search=search,
        created_by=created_by,
        order_by=order_by,
        order_dir=order_dir,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/legal-holds/{hold_id}",
    response_model=LegalHoldRead,
)
def get_legal_hold(
    hold_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> LegalHoldRead:
    return services.manager.get(hold_id, actor)


@router.patch(
    "/legal-holds/{hold_id}",
    response_model=LegalHoldRead,
)
def update_legal_hold(
    hold_id: UUID,
    payload: LegalHoldUpdate,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> LegalHoldRead:
    return services.manager.update(hold_id, payload, actor)


@router.post(
    "/legal-holds/{hold_id}/release",
    response_model=LegalHoldRead,
)
def release_legal_hold(
    hold_id: UUID,
    payload: LegalHoldRelease,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> LegalHoldRead:
    return services.manager.release(hold_id, payload.reason, actor)


@router.delete(
    "/legal-holds/{hold_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def delete_legal_hold(
    hold_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> None:
    services.manager.remove(hold_id, actor)


@router.post(
    "/legal-holds/{hold_id}/reconcile",
    response_model=list[CounterCorrection],
)
def reconcile_legal_hold(
    hold_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> list[dict]:
    return services.manager.reconcile_counters(hold_id, actor)


# ------------------------------------------------------------------
# Documents under hold
# ------------------------------------------------------------------


@router.post(
    "/legal-holds/{hold_id}/apply-to-documents",
    response_model=ApplyToDocumentsResult,
)
def apply_legal_hold_to_documents(
    hold_id: UUID,
    payload: ApplyToDocuments,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.manager.apply_to_documents(hold_id, payload.document_ids, actor)


@router.get(
    "/legal-holds/{hold_id}/documents",
    response_model=list[HeldDocumentRead],
)
def list_legal_hold_documents(
    hold_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> list:
    return services.manager.list_documents(hold_id, actor)


# ------------------------------------------------------------------
# Custodians
# ------------------------------------------------------------------


@router.post(
    "/legal-holds/{hold_id}/custodians",
    response_model=AssignCustodiansResult,
)
def assign_legal_hold_custodians(
    hold_id: UUID,
    payload: AssignCustodians,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.custodians.assign_custodians(
        hold_id,
        payload.custodian_ids,
        actor,
        instructions=payload.instructions,
        notify=payload.send_notification,
    )


@router.get(
    "/legal-holds/{hold_id}/custodians",
    response_model=list[CustodianRead],
)
def list_legal_hold_custodians(
    hold_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> list:
    return services.custodians.list_custodians(hold_id, actor)


@router.delete(
    "/legal-holds/{hold_id}/custodians/{custodian_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
def remove_legal_hold_custodian(
    hold_id: UUID,
    custodian_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> None:
    services.custodians.remove_custodian(hold_id, custodian_id, actor)


@router.patch(
    "/legal-holds/{hold_id}/custodians/{custodian_id}/compliance",
    response_model=CustodianRead,
)
def evaluate_custodian_compliance(
    hold_id: UUID,
    custodian_id: UUID,
    payload: EvaluateCompliance,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> CustodianRead:
    return services.custodians.evaluate_compliance(
        hold_id, custodian_id, payload.compliant, actor, reason=payload.reason
    )


@router.post(
    "/legal-holds/{hold_id}/acknowledge",
    response_model=CustodianRead,
)
def acknowledge_legal_hold(
    hold_id: UUID,
    payload: AcknowledgeHold,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> CustodianRead:
    return services.custodians.acknowledge(
        hold_id, actor, method=payload.acknowledgment_method, notes=payload.notes
    )


@router.post(
    "/legal-holds/{hold_id}/send-reminders",
    response_model=ReminderResult,
)
def send_legal_hold_reminders(
    hold_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.custodians.send_compliance_reminders(hold_id, actor)


# ------------------------------------------------------------------
# Compliance reporting
# ------------------------------------------------------------------


@router.get(
    "/legal-holds/{hold_id}/compliance-report",
    response_model=ComplianceReport,
)
def get_legal_hold_compliance_report(
    hold_id: UUID,
    actor: HumanActor = Depends(get_current_actor),
    services: LegalHoldServices = Depends(get_legal_hold_services),
) -> dict:
    return services.compliance.generate_compliance_report(hold_id, actor)
