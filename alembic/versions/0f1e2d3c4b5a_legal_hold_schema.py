"""legal hold schema

Revision ID: 0f1e2d3c4b5a
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0f1e2d3c4b5a"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Enums ---
    legalholdstatus = sa.Enum("active", "released", "expired", name="legalholdstatus")
    legalholdtype = sa.Enum(
        "litigation",
        "investigation",
        "audit",
        "regulatory",
        "other",
        name="legalholdtype",
    )
    custodianstatus = sa.Enum(
        "pending",
        "acknowledged",
        "compliant",
        "non_compliant",
        "released",
        name="custodianstatus",
    )
    auditactortype = sa.Enum("person", "system", name="auditactortype")
    auditrisklevel = sa.Enum(
        "low", "medium", "high", "critical", name="auditrisklevel"
    )
    auditoutcome = sa.Enum("success", "failure", "partial", name="auditoutcome")
    for enum_type in (
        legalholdstatus,
        legalholdtype,
        custodianstatus,
        auditactortype,
        auditrisklevel,
        auditoutcome,
    ):
        enum_type.create(op.get_bind(), checkfirst=True)

    # --- Firms & People ---
    op.create_table(
        "firms",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "people",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("firm_id", sa.UUID(), nullable=True),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["firm_id"], ["firms.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_people_email"),
    )
    op.create_index("ix_people_firm_id", "people", ["firm_id"])

    # --- Matters ---
    op.create_table(
        "matters",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("firm_id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("reference_number", sa.String(120), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["firm_id"], ["firms.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_matters_firm_id", "matters", ["firm_id"])

    # --- Legal Holds ---
    op.create_table(
        "legal_holds",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column(
            "type",
            postgresql.ENUM(name="legalholdtype", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "status",
            postgresql.ENUM(name="legalholdstatus", create_type=False),
            nullable=False,
        ),
        sa.Column("firm_id", sa.UUID(), nullable=False),
        sa.Column("matter_id", sa.UUID(), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=False),
        sa.Column("released_by", sa.UUID(), nullable=True),
        sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("release_reason", sa.Text(), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_apply_to_new_documents", sa.Boolean(), nullable=False),
        sa.Column("custodian_instructions", sa.Text(), nullable=True),
        sa.Column("notification_settings", sa.JSON(), nullable=True),
        sa.Column("search_criteria", sa.JSON(), nullable=True),
        sa.Column("documents_count", sa.Integer(), nullable=False),
        sa.Column("custodians_count", sa.Integer(), nullable=False),
        sa.Column(
            "last_notification_sent", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["firm_id"], ["firms.id"]),
        sa.ForeignKeyConstraint(["matter_id"], ["matters.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.ForeignKeyConstraint(["released_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_legal_holds_firm_id", "legal_holds", ["firm_id"])
    op.create_index("ix_legal_holds_status", "legal_holds", ["status"])
    op.create_index("ix_legal_holds_expiry_date", "legal_holds", ["expiry_date"])

    # --- Documents ---
    op.create_table(
        "documents",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("firm_id", sa.UUID(), nullable=False),
        sa.Column("matter_id", sa.UUID(), nullable=True),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("file_name", sa.String(500), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("mime_type", sa.String(255), nullable=True),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("legal_hold", sa.Boolean(), nullable=False),
        sa.Column("legal_hold_reason", sa.Text(), nullable=True),
        sa.Column("legal_hold_set_by", sa.UUID(), nullable=True),
        sa.Column("legal_hold_set_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("legal_hold_ref", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["firm_id"], ["firms.id"]),
        sa.ForeignKeyConstraint(["matter_id"], ["matters.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["people.id"]),
        sa.ForeignKeyConstraint(["legal_hold_set_by"], ["people.id"]),
        sa.ForeignKeyConstraint(
            ["legal_hold_ref"], ["legal_holds.id"], ondelete="SET NULL"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_documents_firm_id", "documents", ["firm_id"])
    op.create_index("ix_documents_matter_id", "documents", ["matter_id"])
    op.create_index("ix_documents_legal_hold_ref", "documents", ["legal_hold_ref"])
    op.create_index("ix_documents_created_at", "documents", ["created_at"])

    # --- Legal Hold Custodians ---
    op.create_table(
        "legal_hold_custodians",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("legal_hold_id", sa.UUID(), nullable=False),
        sa.Column("custodian_id", sa.UUID(), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(name="custodianstatus", create_type=False),
            nullable=False,
        ),
        sa.Column("notice_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acknowledged_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "compliance_checked_at", sa.DateTime(timezone=True), nullable=True
        ),
        sa.Column("released_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acknowledgment_method", sa.String(80), nullable=True),
        sa.Column("non_compliance_reason", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("assigned_by", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["legal_hold_id"], ["legal_holds.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["custodian_id"], ["people.id"]),
        sa.ForeignKeyConstraint(["assigned_by"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "legal_hold_id",
            "custodian_id",
            name="uq_legal_hold_custodians_hold_custodian",
        ),
    )
    op.create_index(
        "ix_legal_hold_custodians_custodian_id",
        "legal_hold_custodians",
        ["custodian_id"],
    )
    op.create_index(
        "ix_legal_hold_custodians_status", "legal_hold_custodians", ["status"]
    )

    # --- Notifications ---
    op.create_table(
        "notifications",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("person_id", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("entity_type", sa.String(80), nullable=False),
        sa.Column("entity_id", sa.String(36), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["person_id"], ["people.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_person_id", "notifications", ["person_id"])
    op.create_index("ix_notifications_is_read", "notifications", ["is_read"])
    op.create_index("ix_notifications_event_type", "notifications", ["event_type"])

    # --- Audit Events ---
    op.create_table(
        "audit_events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column(
            "actor_type",
            postgresql.ENUM(name="auditactortype", create_type=False),
            nullable=False,
        ),
        sa.Column("actor_id", sa.UUID(), nullable=True),
        sa.Column("firm_id", sa.UUID(), nullable=True),
        sa.Column("action", sa.String(120), nullable=False),
        sa.Column("resource_type", sa.String(80), nullable=False),
        sa.Column("resource_id", sa.String(36), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column(
            "risk_level",
            postgresql.ENUM(name="auditrisklevel", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "outcome",
            postgresql.ENUM(name="auditoutcome", create_type=False),
            nullable=False,
        ),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_audit_events_resource", "audit_events", ["resource_type", "resource_id"]
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action"])
    op.create_index("ix_audit_events_occurred_at", "audit_events", ["occurred_at"])


def downgrade() -> None:
    op.drop_index("ix_audit_events_occurred_at", table_name="audit_events")
    op.drop_index("ix_audit_events_action", table_name="audit_events")
    op.drop_index("ix_audit_events_resource", table_name="audit_events")
    op.drop_table("audit_events")

    op.drop_index("ix_notifications_event_type", table_name="notifications")
    op.drop_index("ix_notifications_is_read", table_name="notifications")
    op.drop_index("ix_notifications_person_id", table_name="notifications")
    op.drop_table("notifications")

    op.drop_index("ix_legal_hold_custodians_status", table_name="legal_hold_custodians")
    op.drop_index(
        "ix_legal_hold_custodians_custodian_id", table_name="legal_hold_custodians"
    )
    op.drop_table("legal_hold_custodians")

    op.drop_index("ix_documents_created_at", table_name="documents")
    op.drop_index("ix_documents_legal_hold_ref", table_name="documents")
    op.drop_index("ix_documents_matter_id", table_name="documents")
    op.drop_index("ix_documents_firm_id", table_name="documents")
    op.drop_table("documents")

    op.drop_index("ix_legal_holds_expiry_date", table_name="legal_holds")
    op.drop_index("ix_legal_holds_status", table_name="legal_holds")
    op.drop_index("ix_legal_holds_firm_id", table_name="legal_holds")
    op.drop_table("legal_holds")

    op.drop_index("ix_matters_firm_id", table_name="matters")
    op.drop_table("matters")

    op.drop_index("ix_people_firm_id", table_name="people")
    op.drop_table("people")
    op.drop_table("firms")

    for enum_name in [
        "auditoutcome",
        "auditrisklevel",
        "auditactortype",
        "custodianstatus",
        "legalholdtype",
        "legalholdstatus",
    ]:
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
