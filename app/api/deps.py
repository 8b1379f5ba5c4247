from collections.abc import Generator

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.db import SessionLocal
from app.models.person import Person
from app.services.actor import HumanActor
from app.services.common import coerce_uuid
from app.services.legal_hold_container import (
    LegalHoldServices,
    build_legal_hold_services,
)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_current_actor(
    x_person_id: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> HumanActor:
    """Resolve the caller from the ``X-Person-Id`` header set by the gateway."""
    if not x_person_id:
        raise HTTPException(status_code=401, detail="Missing X-Person-Id header")
    try:
        person_id = coerce_uuid(x_person_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-Person-Id header")
    person = db.get(Person, person_id)
    if not person or not person.is_active:
        raise HTTPException(status_code=401, detail="Unknown or inactive person")
    return HumanActor.from_person(person)


def get_legal_hold_services(db: Session = Depends(get_db)) -> LegalHoldServices:
    return build_legal_hold_services(db)
