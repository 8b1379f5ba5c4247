import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")

import uuid  # noqa: E402
from unittest.mock import patch  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import models  # noqa: E402,F401
from app.api.deps import get_db  # noqa: E402
from app.db import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.ecm import Document  # noqa: E402
from app.models.firm import Firm, Matter  # noqa: E402
from app.models.person import Person  # noqa: E402
from app.services.actor import HumanActor  # noqa: E402
from app.services.legal_hold_container import build_legal_hold_services  # noqa: E402


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def queued_emails():
    with patch(
        "app.tasks.notifications.send_notification_email.delay"
    ) as mock_delay:
        yield mock_delay


@pytest.fixture(autouse=True)
def published_events():
    with patch("app.tasks.events.process_event.delay") as mock_delay:
        yield mock_delay


def _make_firm(db_session, name=None):
    firm = Firm(name=name or f"firm_{uuid.uuid4().hex[:8]}")
    db_session.add(firm)
    db_session.commit()
    db_session.refresh(firm)
    return firm


def _make_person(db_session, firm, roles=None, is_active=True, email=None):
    p = Person(
        first_name="Test",
        last_name=f"User{uuid.uuid4().hex[:4]}",
        email=email or f"person-{uuid.uuid4().hex[:8]}@example.com",
        firm_id=firm.id if firm else None,
        roles=roles or ["attorney"],
        is_active=is_active,
    )
    db_session.add(p)
    db_session.commit()
    db_session.refresh(p)
    return p


def _make_document(db_session, firm, file_name="contract.pdf", matter=None, **kwargs):
    doc = Document(
        firm_id=firm.id,
        matter_id=matter.id if matter else None,
        title=file_name,
        file_name=file_name,
        file_size=1024,
        mime_type="application/pdf",
        **kwargs,
    )
    db_session.add(doc)
    db_session.commit()
    db_session.refresh(doc)
    return doc


@pytest.fixture()
def firm(db_session):
    return _make_firm(db_session)


@pytest.fixture()
def other_firm(db_session):
    return _make_firm(db_session)


@pytest.fixture()
def person(db_session, firm):
    return _make_person(db_session, firm)


@pytest.fixture()
def legal_person(db_session, firm):
    return _make_person(db_session, firm, roles=["legal_counsel"])


@pytest.fixture()
def admin_person(db_session, other_firm):
    return _make_person(db_session, other_firm, roles=["super_admin"])


@pytest.fixture()
def matter(db_session, firm):
    m = Matter(firm_id=firm.id, name=f"matter_{uuid.uuid4().hex[:8]}")
    db_session.add(m)
    db_session.commit()
    db_session.refresh(m)
    return m


@pytest.fixture()
def document(db_session, firm):
    return _make_document(db_session, firm)


@pytest.fixture()
def actor(person):
    return HumanActor.from_person(person)


@pytest.fixture()
def services(db_session):
    return build_legal_hold_services(db_session)


@pytest.fixture()
def client(db_session):
    def _get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(person):
    return {"X-Person-Id": str(person.id)}


@pytest.fixture()
def failing_emails(queued_emails):
    queued_emails.side_effect = RuntimeError("mail queue down")
    return queued_emails
