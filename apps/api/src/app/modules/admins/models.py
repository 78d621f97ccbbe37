"""
Mosque Admin Models

Every administrator record lives in one table. The console's pending,
approved and rejected collections are projections of this table by status.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.modules.mosques.models import Mosque
from app.modules.shared import BaseModel


class AdminStatus(str, enum.Enum):
    """Status of a mosque administrator record."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ADMIN_REMOVED = "admin_removed"
    MOSQUE_DELETED = "mosque_deleted"


class MosqueAdmin(BaseModel):
    """
    Mosque administrator (applicant, active admin, or rejected applicant).

    ``previous_mosques`` is an append-only history of rejections:
    ``[{"mosque_id": str, "rejected_at": iso8601, "rejection_reason": str}]``.
    """

    __tablename__ = "mosque_admins"

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    mosque_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("mosques.id", ondelete="SET NULL"),
        nullable=True,
    )
    verification_code_used: Mapped[str | None] = mapped_column(String(32), nullable=True)
    application_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[AdminStatus] = mapped_column(
        Enum(AdminStatus, name="admin_status"),
        nullable=False,
        default=AdminStatus.PENDING,
    )

    # Decision tracking
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    super_admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_by: Mapped[str | None] = mapped_column(UUID(as_uuid=False), nullable=True)
    removal_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Reapplication
    rejection_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    can_reapply: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    previous_mosques: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)

    # Kept after the mosque row is gone so history stays readable
    deleted_mosque_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    deleted_mosque_location: Mapped[str | None] = mapped_column(String(200), nullable=True)

    mosque: Mapped[Mosque | None] = relationship("Mosque", lazy="joined")

    __table_args__ = (
        Index("ix_mosque_admins_status", "status"),
        Index("ix_mosque_admins_mosque_id", "mosque_id"),
        Index("ix_mosque_admins_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<MosqueAdmin(id={self.id}, email={self.email}, status={self.status.value})>"
