import logging
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

from prometheus_client import REGISTRY
from sqlalchemy import select

from app.celery_app import SCHEDULED_TASKS, celery_app
from app.models.audit import AuditEvent
from app.models.ecm import Document, LegalHold, LegalHoldStatus


def _make_hold(db_session, firm, person, **kwargs):
    hold = LegalHold(
        name=f"hold_{uuid.uuid4().hex[:8]}",
        reason="Pending litigation",
        firm_id=firm.id,
        created_by=person.id,
        search_criteria={"document_types": ["pdf"]},
        **kwargs,
    )
    db_session.add(hold)
    db_session.commit()
    db_session.refresh(hold)
    return hold


def _sweep_failures(sweep):
    return (
        REGISTRY.get_sample_value(
            "legal_hold_sweep_failures_total", {"sweep": sweep}
        )
        or 0.0
    )


class TestEnforceHoldsOnDocumentTask:
    def test_applies_hold(self, db_session, firm, person, document) -> None:
        hold = _make_hold(db_session, firm, person)

        from app.tasks.legal_holds import enforce_holds_on_document

        with (
            patch("app.db.SessionLocal", return_value=db_session),
            patch.object(db_session, "close"),
        ):
            enforce_holds_on_document(str(document.id))

        db_session.refresh(document)
        assert document.legal_hold_ref == hold.id

    def test_unknown_document_is_logged(self, db_session, caplog) -> None:
        from app.tasks.legal_holds import enforce_holds_on_document

        with (
            patch("app.db.SessionLocal", return_value=db_session),
            patch.object(db_session, "close"),
            caplog.at_level(logging.WARNING, logger="app.tasks.legal_holds"),
        ):
            enforce_holds_on_document(str(uuid.uuid4()))

        assert "Document not found" in caplog.text


class TestCheckDocumentModificationTask:
    def test_records_potential_violation(
        self, db_session, firm, person
    ) -> None:
        hold = _make_hold(db_session, firm, person)
        doc = Document(
            firm_id=firm.id,
            file_name="evidence.pdf",
            legal_hold=True,
            legal_hold_ref=hold.id,
        )
        db_session.add(doc)
        db_session.commit()

        from app.tasks.legal_holds import check_document_modification

        with (
            patch("app.db.SessionLocal", return_value=db_session),
            patch.object(db_session, "close"),
        ):
            check_document_modification(str(doc.id))

        actions = db_session.scalars(select(AuditEvent.action)).all()
        assert "potential_hold_violation" in actions


class TestSweepTasks:
    def test_hourly_sweep_expires_holds(self, db_session, firm, person) -> None:
        hold = _make_hold(
            db_session,
            firm,
            person,
            expiry_date=datetime.now(timezone.utc) - timedelta(hours=1),
        )

        from app.tasks.legal_holds import run_hourly_sweep

        with (
            patch("app.db.SessionLocal", return_value=db_session),
            patch.object(db_session, "close"),
        ):
            run_hourly_sweep()

        db_session.refresh(hold)
        assert hold.status == LegalHoldStatus.expired

    def test_daily_sweep_reconciles(self, db_session, firm, person) -> None:
        hold = _make_hold(db_session, firm, person, documents_count=7)

        from app.tasks.legal_holds import run_daily_sweep

        with (
            patch("app.db.SessionLocal", return_value=db_session),
            patch.object(db_session, "close"),
        ):
            run_daily_sweep()

        db_session.refresh(hold)
        assert hold.documents_count == 0

    def test_aborted_sweep_is_counted_not_raised(self, db_session) -> None:
        from app.tasks.legal_holds import run_hourly_sweep

        before = _sweep_failures("hourly")
        with (
            patch("app.db.SessionLocal", return_value=db_session),
            patch.object(db_session, "close") as mock_close,
            patch(
                "app.services.legal_hold_container.build_legal_hold_services",
                side_effect=RuntimeError("db down"),
            ),
        ):
            run_hourly_sweep()

        assert _sweep_failures("hourly") == before + 1
        mock_close.assert_called_once()

    def test_weekly_summary(self, db_session, firm, person, caplog) -> None:
        _make_hold(db_session, firm, person)

        from app.tasks.legal_holds import log_system_compliance_metrics

        with (
            patch("app.db.SessionLocal", return_value=db_session),
            patch.object(db_session, "close"),
            caplog.at_level(logging.INFO, logger="app.tasks.legal_holds"),
        ):
            log_system_compliance_metrics()

        assert "Weekly compliance summary" in caplog.text


class TestBeatSchedule:
    def test_sweeps_are_scheduled(self) -> None:
        scheduled = {t.task for t in SCHEDULED_TASKS}
        assert scheduled == {
            "app.tasks.legal_holds.run_hourly_sweep",
            "app.tasks.legal_holds.run_daily_sweep",
            "app.tasks.legal_holds.log_system_compliance_metrics",
        }
        for task in SCHEDULED_TASKS:
            assert celery_app.conf.beat_schedule[task.name]["task"] == task.task

    def test_tasks_registered(self) -> None:
        import app.tasks.legal_holds  # noqa: F401

        assert "app.tasks.legal_holds.enforce_holds_on_document" in celery_app.tasks
