from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.repositories.directory import MatterRepository, PersonRepository
from app.repositories.documents import DocumentRepository
from app.repositories.legal_holds import (
    CustodianAssignmentRepository,
    LegalHoldRepository,
)
from app.services.audit import AuditTrail
from app.services.ecm_legal_hold import LegalHoldManager
from app.services.legal_hold_compliance import ComplianceAnalyzer
from app.services.legal_hold_custodians import CustodianTracker
from app.services.legal_hold_enforcement import EnforcementEngine
from app.services.notification import LegalHoldNotifier


@dataclass
class LegalHoldServices:
    manager: LegalHoldManager
    custodians: CustodianTracker
    enforcement: EnforcementEngine
    compliance: ComplianceAnalyzer


def build_legal_hold_services(db: Session) -> LegalHoldServices:
    """Wire every legal hold service onto one session."""
    holds = LegalHoldRepository(db)
    assignments = CustodianAssignmentRepository(db)
    documents = DocumentRepository(db)
    people = PersonRepository(db)
    audit = AuditTrail(db)
    notifier = LegalHoldNotifier(db)

    custodians = CustodianTracker(holds, assignments, people, notifier, audit)
    manager = LegalHoldManager(
        holds, assignments, documents, MatterRepository(db), custodians, audit
    )
    compliance = ComplianceAnalyzer(holds, assignments, documents)
    enforcement = EnforcementEngine(
        db,
        holds,
        assignments,
        documents,
        people,
        manager,
        custodians,
        compliance,
        notifier,
        audit,
    )
    return LegalHoldServices(
        manager=manager,
        custodians=custodians,
        enforcement=enforcement,
        compliance=compliance,
    )
