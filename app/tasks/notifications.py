import logging

from app.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.tasks.notifications.send_notification_email", ignore_result=True
)
def send_notification_email(
    person_id: str,
    email: str,
    title: str,
    body: str,
) -> None:
    """Send a legal hold email to a person.

    Delivery goes through the log until an email backend is configured.
    """
    logger.info(
        "Would send email to person %s <%s>: %s (%d chars)",
        person_id,
        email,
        title,
        len(body),
    )
