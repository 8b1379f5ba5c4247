import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.firm import Matter
from app.models.person import Person


class PersonRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, person_id: uuid.UUID) -> Person | None:
        return self.db.get(Person, person_id)

    def list_active(
        self, person_ids: Iterable[uuid.UUID], firm_id: uuid.UUID | None
    ) -> list[Person]:
        ids = list(person_ids)
        if not ids:
            return []
        stmt = select(Person).where(Person.id.in_(ids), Person.is_active.is_(True))
        if firm_id is not None:
            stmt = stmt.where(Person.firm_id == firm_id)
        return list(self.db.scalars(stmt).all())

    def list_legal_team(self, firm_id: uuid.UUID, role_marker: str) -> list[Person]:
        # roles is a JSON list; match in Python so the query stays portable
        stmt = select(Person).where(
            Person.firm_id == firm_id, Person.is_active.is_(True)
        )
        return [
            person
            for person in self.db.scalars(stmt).all()
            if any(role_marker in str(role) for role in (person.roles or []))
        ]


class MatterRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(
        self, matter_id: uuid.UUID, firm_id: uuid.UUID | None = None
    ) -> Matter | None:
        matter = self.db.get(Matter, matter_id)
        if matter is None:
            return None
        if firm_id is not None and matter.firm_id != firm_id:
            return None
        return matter
