"""
Audit Log Models

One row per mutating action taken in the directory, by whom, against what.
"""

import enum

from sqlalchemy import Enum, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel


class AuditActionType(str, enum.Enum):
    """Recorded action types."""

    MOSQUE_CREATED = "mosque_created"
    MOSQUE_UPDATED = "mosque_updated"
    MOSQUE_DELETED = "mosque_deleted"
    ADMIN_REGISTERED = "admin_registered"
    ADMIN_APPROVED = "admin_approved"
    ADMIN_REJECTED = "admin_rejected"
    ADMIN_REMOVED = "admin_removed"
    ADMIN_ASSIGNED = "admin_assigned"
    REAPPLICATION_ALLOWED = "reapplication_allowed"
    REAPPLICATION_SUBMITTED = "reapplication_submitted"
    ADMIN_LOGIN = "admin_login"
    SUPERADMIN_LOGIN = "superadmin_login"
    SUPERADMIN_CREATED = "superadmin_created"
    VERIFICATION_CODE_GENERATED = "verification_code_generated"
    VERIFICATION_CODE_REGENERATED = "verification_code_regenerated"
    PRAYER_TIMES_UPDATED = "prayer_times_updated"


class PerformerType(str, enum.Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"
    SYSTEM = "system"


class TargetType(str, enum.Enum):
    MOSQUE = "mosque"
    ADMIN = "admin"
    VERIFICATION_CODE = "verification_code"
    PRAYER_TIMES = "prayer_times"
    SUPER_ADMIN = "super_admin"


class AuditStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"


class AuditLog(BaseModel):
    """
    Audit trail entry.

    ``details`` holds action-specific context such as ``admin_data``,
    ``mosque_data``, ``before_data``/``after_data`` and ``reason``.
    """

    __tablename__ = "audit_logs"

    action_type: Mapped[AuditActionType] = mapped_column(
        Enum(AuditActionType, name="audit_action_type"), nullable=False
    )

    # Who performed the action
    performed_by_id: Mapped[str | None] = mapped_column(UUID(as_uuid=False), nullable=True)
    performed_by_type: Mapped[PerformerType] = mapped_column(
        Enum(PerformerType, name="audit_performer_type"), nullable=False
    )
    performed_by_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    performed_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # What it was performed on
    target_type: Mapped[TargetType] = mapped_column(
        Enum(TargetType, name="audit_target_type"), nullable=False
    )
    target_id: Mapped[str | None] = mapped_column(UUID(as_uuid=False), nullable=True)
    target_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    details: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)

    status: Mapped[AuditStatus] = mapped_column(
        Enum(AuditStatus, name="audit_status"), nullable=False, default=AuditStatus.SUCCESS
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_audit_logs_action_type_created_at", "action_type", "created_at"),
        Index("ix_audit_logs_performed_by_id", "performed_by_id"),
        Index("ix_audit_logs_target_id", "target_id"),
    )

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action_type.value})>"
