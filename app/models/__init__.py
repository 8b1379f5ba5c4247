from app.models.audit import (  # noqa: F401
    AuditActorType,
    AuditEvent,
    AuditOutcome,
    AuditRiskLevel,
)
from app.models.firm import Firm, Matter  # noqa: F401
from app.models.person import Person  # noqa: F401
from app.models.ecm import (  # noqa: F401
    CustodianStatus,
    Document,
    LegalHold,
    LegalHoldCustodian,
    LegalHoldStatus,
    LegalHoldType,
    Notification,
)
