import logging

from app.celery_app import celery_app
from app.services.event import EventType

logger = logging.getLogger(__name__)


@celery_app.task(name="app.tasks.events.process_event", ignore_result=True)
def process_event(
    event_type: str,
    entity_type: str,
    entity_id: str,
    actor_id: str | None = None,
    document_id: str | None = None,
    payload: dict | None = None,
) -> None:
    """Central fan-out task for document and legal hold events.

    Document creation triggers hold enforcement and document updates trigger
    the modification check. Legal hold events are recorded in the log only.
    Each fan-out is wrapped so one failure doesn't block others.
    """
    logger.info("Processing event %s for %s/%s", event_type, entity_type, entity_id)

    target = document_id or (entity_id if entity_type == "document" else None)
    if event_type == EventType.document_created.value and target:
        _fanout_enforcement(target)
    elif event_type == EventType.document_updated.value and target:
        _fanout_modification_check(target)
    elif event_type.startswith("legal_hold."):
        logger.info(
            "Legal hold event %s on %s by %s: %s",
            event_type,
            entity_id,
            actor_id or "system",
            payload or {},
        )


def _fanout_enforcement(document_id: str) -> None:
    try:
        from app.tasks.legal_holds import enforce_holds_on_document

        enforce_holds_on_document.delay(document_id=document_id)
    except Exception as e:
        logger.exception("Failed to fan-out hold enforcement: %s", e)


def _fanout_modification_check(document_id: str) -> None:
    try:
        from app.tasks.legal_holds import check_document_modification

        check_document_modification.delay(document_id=document_id)
    except Exception as e:
        logger.exception("Failed to fan-out modification check: %s", e)
