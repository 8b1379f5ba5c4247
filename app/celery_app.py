from dataclasses import dataclass
from datetime import timedelta

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from app.config import settings


@dataclass(frozen=True)
class ScheduledTask:
    """A task name plus the interval or crontab it runs on."""

    name: str
    task: str
    schedule: timedelta | crontab


SCHEDULED_TASKS: list[ScheduledTask] = [
    ScheduledTask(
        name="legal-holds-hourly-sweep",
        task="app.tasks.legal_holds.run_hourly_sweep",
        schedule=timedelta(hours=1),
    ),
    ScheduledTask(
        name="legal-holds-daily-sweep",
        task="app.tasks.legal_holds.run_daily_sweep",
        schedule=crontab(hour=0, minute=0),
    ),
    ScheduledTask(
        name="legal-holds-weekly-compliance-summary",
        task="app.tasks.legal_holds.log_system_compliance_metrics",
        schedule=crontab(hour=2, minute=0, day_of_week="mon"),
    ),
]


def build_beat_schedule(tasks: list[ScheduledTask]) -> dict:
    return {t.name: {"task": t.task, "schedule": t.schedule} for t in tasks}


celery_app = Celery(
    "legal_holds",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.tasks.events",
        "app.tasks.legal_holds",
        "app.tasks.notifications",
    ],
)
celery_app.conf.update(
    task_always_eager=settings.celery_task_always_eager,
    task_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    beat_schedule=build_beat_schedule(SCHEDULED_TASKS),
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    from app.logging import configure_logging

    configure_logging()
