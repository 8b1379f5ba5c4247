import logging

from app.celery_app import celery_app
from app.metrics import SWEEP_FAILURES

logger = logging.getLogger(__name__)


@celery_app.task(
    name="app.tasks.legal_holds.enforce_holds_on_document", ignore_result=True
)
def enforce_holds_on_document(document_id: str) -> None:
    """Apply every matching auto-apply hold to a newly created document."""
    from app.db import SessionLocal
    from app.services.legal_hold_container import build_legal_hold_services

    db = SessionLocal()
    try:
        services = build_legal_hold_services(db)
        result = services.enforcement.enforce_holds_on_document(document_id)
        db.commit()
        if result["errors"]:
            logger.warning(
                "Hold enforcement on document %s finished with errors: %s",
                document_id,
                result["errors"],
            )
    except Exception as e:
        db.rollback()
        logger.exception("Failed to enforce holds on document %s: %s", document_id, e)
    finally:
        db.close()


@celery_app.task(
    name="app.tasks.legal_holds.check_document_modification", ignore_result=True
)
def check_document_modification(document_id: str) -> None:
    from app.db import SessionLocal
    from app.services.legal_hold_container import build_legal_hold_services

    db = SessionLocal()
    try:
        services = build_legal_hold_services(db)
        services.enforcement.check_document_modification_compliance(document_id)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception(
            "Failed to check modification of document %s: %s", document_id, e
        )
    finally:
        db.close()


@celery_app.task(name="app.tasks.legal_holds.run_hourly_sweep", ignore_result=True)
def run_hourly_sweep() -> None:
    """Hourly enforcement: new documents, expiry, reminders and escalation.

    Items are committed one at a time; a failing item is rolled back and
    reported without stopping the rest of the sweep.
    """
    from app.db import SessionLocal
    from app.services.legal_hold_container import build_legal_hold_services

    db = SessionLocal()
    try:
        services = build_legal_hold_services(db)
        summary = services.enforcement.run_hourly_sweep()
        db.commit()
        if summary["errors"]:
            logger.warning(
                "Hourly legal hold sweep had %d failures", len(summary["errors"])
            )
    except Exception as e:
        db.rollback()
        SWEEP_FAILURES.labels(sweep="hourly").inc()
        logger.exception("Hourly legal hold sweep aborted: %s", e)
    finally:
        db.close()


@celery_app.task(name="app.tasks.legal_holds.run_daily_sweep", ignore_result=True)
def run_daily_sweep() -> None:
    """Released-hold housekeeping, counter reconciliation, gauges and the
    daily compliance check."""
    from app.db import SessionLocal
    from app.services.legal_hold_container import build_legal_hold_services

    db = SessionLocal()
    try:
        services = build_legal_hold_services(db)
        summary = services.enforcement.run_daily_sweep()
        db.commit()
        logger.info(
            "Daily legal hold sweep: %d counter corrections, %d critical violations",
            summary["counter_corrections"],
            summary["critical_violations"],
        )
    except Exception as e:
        db.rollback()
        SWEEP_FAILURES.labels(sweep="daily").inc()
        logger.exception("Daily legal hold sweep aborted: %s", e)
    finally:
        db.close()


@celery_app.task(
    name="app.tasks.legal_holds.log_system_compliance_metrics", ignore_result=True
)
def log_system_compliance_metrics() -> None:
    from app.db import SessionLocal
    from app.services.legal_hold_container import build_legal_hold_services

    db = SessionLocal()
    try:
        services = build_legal_hold_services(db)
        metrics = services.compliance.get_system_compliance_metrics()
        logger.info(
            "Weekly compliance summary: rate=%.1f%% active=%d recent_violations=%d",
            metrics["overall_compliance_rate"],
            metrics["total_active_holds"],
            len(metrics["recent_violations"]),
        )
    except Exception as e:
        SWEEP_FAILURES.labels(sweep="weekly").inc()
        logger.exception("Failed to build weekly compliance summary: %s", e)
    finally:
        db.close()
