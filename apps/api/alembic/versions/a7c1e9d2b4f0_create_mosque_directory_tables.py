"""create mosque directory tables

Revision ID: a7c1e9d2b4f0
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the enum types used by admins and the audit trail
2. Creates super_admins, mosques, mosque_admins and audit_logs

Enum labels are stored uppercase (SQLAlchemy persists member names).
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a7c1e9d2b4f0"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


ENUMS = {
    "admin_status": ("PENDING", "APPROVED", "REJECTED", "ADMIN_REMOVED", "MOSQUE_DELETED"),
    "audit_action_type": (
        "MOSQUE_CREATED",
        "MOSQUE_UPDATED",
        "MOSQUE_DELETED",
        "ADMIN_REGISTERED",
        "ADMIN_APPROVED",
        "ADMIN_REJECTED",
        "ADMIN_REMOVED",
        "ADMIN_ASSIGNED",
        "REAPPLICATION_ALLOWED",
        "ADMIN_LOGIN",
        "SUPERADMIN_LOGIN",
        "VERIFICATION_CODE_GENERATED",
        "VERIFICATION_CODE_REGENERATED",
        "PRAYER_TIMES_UPDATED",
    ),
    "audit_performer_type": ("ADMIN", "SUPER_ADMIN", "SYSTEM"),
    "audit_target_type": ("MOSQUE", "ADMIN", "VERIFICATION_CODE", "PRAYER_TIMES", "SUPER_ADMIN"),
    "audit_status": ("SUCCESS", "FAILED"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _base_columns() -> list[sa.Column]:
    """Primary key and timestamps (from BaseModel)."""
    return [
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create enum types and all directory tables."""
    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).create(bind, checkfirst=True)

    op.create_table(
        "super_admins",
        *_base_columns(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_super_admins_email", "super_admins", ["email"], unique=True)

    op.create_table(
        "mosques",
        *_base_columns(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("location", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "prayer_times",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("verification_code", sa.String(length=32), nullable=False),
        sa.Column("verification_code_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contact_phone", sa.String(length=20), nullable=True),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("admin_instructions", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("verification_code"),
    )
    op.create_index("ix_mosques_name", "mosques", ["name"])
    op.create_index(
        "ix_mosques_verification_code_expires", "mosques", ["verification_code_expires"]
    )

    op.create_table(
        "mosque_admins",
        *_base_columns(),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("mosque_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("verification_code_used", sa.String(length=32), nullable=True),
        sa.Column("application_notes", sa.Text(), nullable=True),
        sa.Column("status", _enum("admin_status"), nullable=False),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("super_admin_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("rejection_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("removal_reason", sa.Text(), nullable=True),
        sa.Column("rejection_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("can_reapply", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "previous_mosques",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("deleted_mosque_name", sa.String(length=100), nullable=True),
        sa.Column("deleted_mosque_location", sa.String(length=200), nullable=True),
        sa.ForeignKeyConstraint(["mosque_id"], ["mosques.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("phone"),
    )
    op.create_index("ix_mosque_admins_status", "mosque_admins", ["status"])
    op.create_index("ix_mosque_admins_mosque_id", "mosque_admins", ["mosque_id"])
    op.create_index("ix_mosque_admins_created_at", "mosque_admins", ["created_at"])

    op.create_table(
        "audit_logs",
        *_base_columns(),
        sa.Column("action_type", _enum("audit_action_type"), nullable=False),
        sa.Column("performed_by_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("performed_by_type", _enum("audit_performer_type"), nullable=False),
        sa.Column("performed_by_email", sa.String(length=255), nullable=True),
        sa.Column("performed_by_name", sa.String(length=200), nullable=True),
        sa.Column("target_type", _enum("audit_target_type"), nullable=False),
        sa.Column("target_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("target_name", sa.String(length=200), nullable=True),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("status", _enum("audit_status"), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_audit_logs_action_type_created_at", "audit_logs", ["action_type", "created_at"]
    )
    op.create_index("ix_audit_logs_performed_by_id", "audit_logs", ["performed_by_id"])
    op.create_index("ix_audit_logs_target_id", "audit_logs", ["target_id"])


def downgrade() -> None:
    """Drop all directory tables and enum types."""
    op.drop_table("audit_logs")
    op.drop_table("mosque_admins")
    op.drop_table("mosques")
    op.drop_index("ix_super_admins_email", table_name="super_admins")
    op.drop_table("super_admins")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        _enum(name).drop(bind, checkfirst=True)
