import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class LegalHoldStatus(enum.Enum):
    active = "active"
    released = "released"
    expired = "expired"


class LegalHoldType(enum.Enum):
    litigation = "litigation"
    investigation = "investigation"
    audit = "audit"
    regulatory = "regulatory"
    other = "other"


class CustodianStatus(enum.Enum):
    pending = "pending"
    acknowledged = "acknowledged"
    compliant = "compliant"
    non_compliant = "non_compliant"
    released = "released"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_firm_id", "firm_id"),
        Index("ix_documents_matter_id", "matter_id"),
        Index("ix_documents_legal_hold_ref", "legal_hold_ref"),
        Index("ix_documents_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    firm_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("firms.id"), nullable=False
    )
    matter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("matters.id")
    )
    title: Mapped[str | None] = mapped_column(String(500))
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    mime_type: Mapped[str | None] = mapped_column(String(255))
    created_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Legal hold link; written only by the legal hold services
    legal_hold: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    legal_hold_reason: Mapped[str | None] = mapped_column(Text)
    legal_hold_set_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    legal_hold_set_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    legal_hold_ref: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("legal_holds.id", ondelete="SET NULL")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    # Content modification time. Not bumped by legal hold link writes.
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    matter = relationship("Matter")
    creator = relationship("Person", foreign_keys=[created_by])
    hold = relationship("LegalHold", foreign_keys=[legal_hold_ref])


# ---------------------------------------------------------------------------
# Legal Holds
# ---------------------------------------------------------------------------


class LegalHold(Base):
    __tablename__ = "legal_holds"
    __table_args__ = (
        Index("ix_legal_holds_firm_id", "firm_id"),
        Index("ix_legal_holds_status", "status"),
        Index("ix_legal_holds_expiry_date", "expiry_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[LegalHoldType] = mapped_column(
        Enum(LegalHoldType), default=LegalHoldType.litigation
    )
    status: Mapped[LegalHoldStatus] = mapped_column(
        Enum(LegalHoldStatus), default=LegalHoldStatus.active
    )
    firm_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("firms.id"), nullable=False
    )
    matter_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("matters.id")
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    released_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )
    released_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    release_reason: Mapped[str | None] = mapped_column(Text)
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    auto_apply_to_new_documents: Mapped[bool] = mapped_column(Boolean, default=True)
    custodian_instructions: Mapped[str | None] = mapped_column(Text)
    notification_settings: Mapped[dict | None] = mapped_column(JSON)
    search_criteria: Mapped[dict | None] = mapped_column(JSON)
    documents_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    custodians_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_notification_sent: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    matter = relationship("Matter")
    creator = relationship("Person", foreign_keys=[created_by])
    releaser = relationship("Person", foreign_keys=[released_by])
    custodians = relationship(
        "LegalHoldCustodian",
        back_populates="legal_hold",
        cascade="all, delete-orphan",
    )


# ---------------------------------------------------------------------------
# Legal Hold Custodians
# ---------------------------------------------------------------------------


class LegalHoldCustodian(Base):
    __tablename__ = "legal_hold_custodians"
    __table_args__ = (
        UniqueConstraint(
            "legal_hold_id",
            "custodian_id",
            name="uq_legal_hold_custodians_hold_custodian",
        ),
        Index("ix_legal_hold_custodians_custodian_id", "custodian_id"),
        Index("ix_legal_hold_custodians_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    legal_hold_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("legal_holds.id", ondelete="CASCADE"),
        nullable=False,
    )
    custodian_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    status: Mapped[CustodianStatus] = mapped_column(
        Enum(CustodianStatus), default=CustodianStatus.pending
    )
    notice_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    compliance_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True)
    )
    released_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    acknowledgment_method: Mapped[str | None] = mapped_column(String(80))
    non_compliance_reason: Mapped[str | None] = mapped_column(Text)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    assigned_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    legal_hold = relationship("LegalHold", back_populates="custodians")
    custodian = relationship("Person", foreign_keys=[custodian_id])
    assigner = relationship("Person", foreign_keys=[assigned_by])


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_person_id", "person_id"),
        Index("ix_notifications_is_read", "is_read"),
        Index("ix_notifications_event_type", "event_type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    person_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("people.id"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    event_type: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    person = relationship("Person", foreign_keys=[person_id])
