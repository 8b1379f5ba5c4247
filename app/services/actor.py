"""Who is performing a legal hold operation.

Enforcement sweeps act as ``SYSTEM_ACTOR``; everything arriving through the
API acts as a ``HumanActor`` resolved from a ``Person`` row.
"""

import uuid
from dataclasses import dataclass, field

from app.config import settings
from app.models.audit import AuditActorType


@dataclass(frozen=True)
class HumanActor:
    id: uuid.UUID
    firm_id: uuid.UUID | None
    roles: tuple[str, ...] = field(default_factory=tuple)

    actor_type = AuditActorType.person

    @property
    def person_id(self) -> uuid.UUID:
        return self.id

    @property
    def is_cross_firm(self) -> bool:
        return settings.cross_firm_role in self.roles

    @classmethod
    def from_person(cls, person) -> "HumanActor":
        return cls(
            id=person.id,
            firm_id=person.firm_id,
            roles=tuple(person.roles or ()),
        )


@dataclass(frozen=True)
class SystemActor:
    name: str = "system"

    actor_type = AuditActorType.system
    firm_id = None
    roles = ("system",)

    @property
    def person_id(self) -> None:
        return None

    @property
    def is_cross_firm(self) -> bool:
        return True


Actor = HumanActor | SystemActor

SYSTEM_ACTOR = SystemActor()


def firm_scope(actor: Actor) -> uuid.UUID | None:
    """Firm id the actor is confined to, or None for unrestricted actors."""
    if actor.is_cross_firm:
        return None
    return actor.firm_id
