from prometheus_client import Counter, Gauge

ACTIVE_HOLDS = Gauge(
    "legal_hold_active_holds",
    "Legal holds currently in the active state",
)
DOCUMENTS_UNDER_HOLD = Gauge(
    "legal_hold_documents_under_hold",
    "Documents currently linked to a legal hold",
)
PENDING_CUSTODIANS = Gauge(
    "legal_hold_pending_custodians",
    "Custodian assignments awaiting acknowledgment",
)

DOCUMENTS_APPLIED = Counter(
    "legal_hold_documents_applied_total",
    "Documents placed under a legal hold",
)
DELETIONS_BLOCKED = Counter(
    "legal_hold_deletions_blocked_total",
    "Document deletions refused because of an active legal hold",
)
NOTIFICATIONS = Counter(
    "legal_hold_notifications_total",
    "Legal hold notifications by kind and outcome",
    ["kind", "outcome"],
)
SWEEP_FAILURES = Counter(
    "legal_hold_sweep_failures_total",
    "Scheduled legal hold sweeps aborted by a systemic failure",
    ["sweep"],
)
