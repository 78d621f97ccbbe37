"""
Super Admin Repository

Database operations for super admin accounts.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.super_admins.models import SuperAdmin

logger = logging.getLogger(__name__)


class SuperAdminRepository:
    """Repository for super admin database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        email: str,
        password_hash: str,
        is_active: bool = True,
    ) -> SuperAdmin:
        """
        Create a new super admin.

        Args:
            db: Database session
            name: Display name
            email: Email address (unique, stored lowercase)
            password_hash: Hashed password
            is_active: Whether the account may sign in

        Returns:
            Created SuperAdmin instance
        """
        super_admin = SuperAdmin(
            name=name,
            email=email.strip().lower(),
            password_hash=password_hash,
            is_active=is_active,
        )

        db.add(super_admin)
        await db.flush()
        await db.refresh(super_admin)

        logger.info(f"Created super admin: {super_admin.id} - {super_admin.email}")
        return super_admin

    @staticmethod
    async def get_by_id(db: AsyncSession, super_admin_id: str | UUID) -> SuperAdmin | None:
        return await db.get(SuperAdmin, str(super_admin_id))

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> SuperAdmin | None:
        """Get a super admin by email address (case-insensitive)."""
        result = await db.execute(
            select(SuperAdmin).where(SuperAdmin.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def count(db: AsyncSession) -> int:
        result = await db.execute(select(func.count(SuperAdmin.id)))
        return result.scalar() or 0

    @staticmethod
    async def touch_last_login(db: AsyncSession, super_admin: SuperAdmin) -> None:
        super_admin.last_login_at = datetime.now(UTC)
        await db.flush()
