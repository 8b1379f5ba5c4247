import enum
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.metrics import NOTIFICATIONS
from app.models.ecm import Document, LegalHold, LegalHoldCustodian, Notification
from app.models.person import Person

logger = logging.getLogger(__name__)


class NotificationKind(enum.Enum):
    notice = "notice"
    release = "release"
    reminder = "reminder"
    document_added = "document_added"
    modification_alert = "modification_alert"


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    error: str | None = None


_PRESERVE_LIST = (
    "- Emails, text messages, and instant messages\n"
    "- Documents, spreadsheets, presentations\n"
    "- Electronic files on computers, mobile devices, and cloud storage\n"
    "- Voicemails and recorded conversations"
)


def _setting_enabled(hold: LegalHold, key: str) -> bool:
    return (hold.notification_settings or {}).get(key, True) is not False


def custodian_emails_enabled(hold: LegalHold) -> bool:
    """Notice, reminder, document-added and release emails to custodians."""
    return _setting_enabled(hold, "email_custodians")


def legal_team_emails_enabled(hold: LegalHold) -> bool:
    """Modification alerts to the firm's legal team."""
    return _setting_enabled(hold, "email_legal_team")


def _hold_type(hold: LegalHold) -> str:
    return hold.type.value if hold.type else "other"


def render(
    kind: NotificationKind,
    person: Person,
    hold: LegalHold,
    document: Document | None = None,
) -> tuple[str, str]:
    """Return (title, body) for a legal hold message."""
    greeting = f"Dear {person.display_name},"
    if kind == NotificationKind.notice:
        title = f"Legal Hold Notice: {hold.name}"
        body = (
            f"{greeting}\n\n"
            "A legal hold has been placed on documents and communications "
            "related to the following matter:\n\n"
            f"Legal Hold Name: {hold.name}\n"
            f"Description: {hold.description or ''}\n"
            f"Reason: {hold.reason}\n"
            f"Type: {_hold_type(hold)}\n\n"
            "You are required to preserve all documents, electronic files, and "
            "communications related to this matter, including:\n"
            f"{_PRESERVE_LIST}\n\n"
            "Please acknowledge receipt of this notice in the document "
            "management system.\n\n"
            f"{hold.custodian_instructions or ''}"
        ).rstrip()
    elif kind == NotificationKind.release:
        title = f"Legal Hold Released: {hold.name}"
        body = (
            f"{greeting}\n\n"
            f'The legal hold "{hold.name}" has been released. You are no longer '
            "required to preserve materials solely because of this hold; "
            "normal retention policies apply again.\n\n"
            f"Release reason: {hold.release_reason or 'Hold expired'}"
        )
    elif kind == NotificationKind.reminder:
        title = f"Compliance Reminder: Legal Hold {hold.name}"
        body = (
            f"{greeting}\n\n"
            f'This is a reminder regarding the active legal hold "{hold.name}".\n\n'
            "Please continue to preserve all documents and communications related "
            "to this matter. If you have not yet acknowledged this legal hold, "
            "please do so immediately.\n\n"
            f"- Name: {hold.name}\n"
            f"- Type: {_hold_type(hold)}\n"
            f"- Created: {hold.created_at:%Y-%m-%d}"
        )
    elif kind == NotificationKind.document_added:
        file_name = document.file_name if document else "unknown"
        title = f"New Document Under Legal Hold: {hold.name}"
        body = (
            f"{greeting}\n\n"
            f'The document "{file_name}" has been placed under the legal hold '
            f'"{hold.name}". Preserve it together with the other materials '
            "covered by this hold."
        )
    else:
        file_name = document.file_name if document else "unknown"
        title = f"Document Under Legal Hold Modified: {file_name}"
        body = (
            f"{greeting}\n\n"
            f'The document "{file_name}" was modified while under the active '
            f'legal hold "{hold.name}". Review the change for a potential '
            "preservation violation."
        )
    return title, body


class LegalHoldNotifier:
    """Notification sink for legal hold messages.

    Each delivery creates an in-app ``Notification`` row and queues an email.
    A failed delivery is reported in the result and never raised.
    """

    def __init__(self, db: Session):
        self.db = db

    def send(
        self,
        kind: NotificationKind,
        assignment: LegalHoldCustodian,
        document: Document | None = None,
    ) -> NotificationResult:
        return self._deliver(
            kind, assignment.custodian, assignment.legal_hold, document
        )

    def alert(
        self, person: Person, hold: LegalHold, document: Document | None = None
    ) -> NotificationResult:
        return self._deliver(
            NotificationKind.modification_alert, person, hold, document
        )

    def _deliver(
        self,
        kind: NotificationKind,
        person: Person | None,
        hold: LegalHold,
        document: Document | None,
    ) -> NotificationResult:
        if person is None or not person.is_active:
            return self._failed(kind, "Recipient not found or inactive")
        if not person.email:
            return self._failed(kind, "Recipient has no email address")

        title, body = render(kind, person, hold, document)
        try:
            from app.tasks.notifications import send_notification_email

            send_notification_email.delay(
                person_id=str(person.id),
                email=person.email,
                title=title,
                body=body,
            )
        except Exception as e:
            logger.warning(
                "Failed to queue %s email for person %s on hold %s: %s",
                kind.value,
                person.id,
                hold.id,
                e,
            )
            return self._failed(kind, str(e))

        self.db.add(
            Notification(
                person_id=person.id,
                title=title,
                body=body,
                event_type=f"legal_hold.{kind.value}",
                entity_type="legal_hold",
                entity_id=str(hold.id),
                metadata_={"document_id": str(document.id)} if document else None,
            )
        )
        NOTIFICATIONS.labels(kind=kind.value, outcome="success").inc()
        logger.info("Sent legal hold %s to person %s", kind.value, person.id)
        return NotificationResult(success=True)

    @staticmethod
    def _failed(kind: NotificationKind, error: str) -> NotificationResult:
        NOTIFICATIONS.labels(kind=kind.value, outcome="failure").inc()
        return NotificationResult(success=False, error=error)
