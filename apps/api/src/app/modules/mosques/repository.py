"""
Mosque Repository

Database operations for mosques and their verification codes.
"""

import logging
import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.modules.mosques.models import Mosque

logger = logging.getLogger(__name__)


def generate_verification_code() -> str:
    """16 uppercase hex characters (8 random bytes)."""
    return secrets.token_hex(8).upper()


def verification_code_expiry(days: int | None = None) -> datetime:
    return datetime.now(UTC) + timedelta(days=days or settings.verification_code_expiry_days)


class MosqueRepository:
    """Repository for mosque database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        name: str,
        location: str,
        description: str | None = None,
        contact_phone: str | None = None,
        contact_email: str | None = None,
        admin_instructions: str | None = None,
        prayer_times: dict | None = None,
    ) -> Mosque:
        """Create a mosque with a fresh verification code."""
        mosque = Mosque(
            name=name,
            location=location,
            description=description,
            contact_phone=contact_phone,
            contact_email=contact_email,
            verification_code=generate_verification_code(),
            verification_code_expires=verification_code_expiry(),
        )
        if admin_instructions:
            mosque.admin_instructions = admin_instructions
        if prayer_times:
            mosque.prayer_times = prayer_times

        db.add(mosque)
        await db.flush()
        await db.refresh(mosque)

        logger.info(f"Created mosque: {mosque.id} - {mosque.name}")
        return mosque

    @staticmethod
    async def get_by_id(db: AsyncSession, mosque_id: str | UUID) -> Mosque | None:
        return await db.get(Mosque, str(mosque_id))

    @staticmethod
    async def list_all(
        db: AsyncSession,
        *,
        search: str | None = None,
        skip: int = 0,
        limit: int = 1000,
    ) -> tuple[list[Mosque], int]:
        """
        List mosques in creation order.

        Args:
            db: Database session
            search: Case-insensitive match on name or location
            skip: Records to skip
            limit: Maximum records to return

        Returns:
            Tuple of (mosques, total matching)
        """
        query = select(Mosque)

        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Mosque.name.ilike(pattern), Mosque.location.ilike(pattern)))

        total_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = total_result.scalar() or 0

        result = await db.execute(
            query.order_by(Mosque.created_at.asc(), Mosque.id.asc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def update(db: AsyncSession, mosque: Mosque, **fields) -> Mosque:
        """
        Update mosque details. Only keys present in ``fields`` are written;
        ``prayer_times`` is merged into the stored times.
        """
        prayer_times = fields.pop("prayer_times", None)
        for key, value in fields.items():
            setattr(mosque, key, value)
        if prayer_times:
            mosque.prayer_times = {**(mosque.prayer_times or {}), **prayer_times}

        await db.flush()
        logger.info(f"Updated mosque {mosque.id}")
        return mosque

    @staticmethod
    async def regenerate_code(
        db: AsyncSession,
        mosque: Mosque,
        expiry_days: int | None = None,
    ) -> Mosque:
        """Replace the mosque's verification code and reset its expiry."""
        old_code = mosque.verification_code
        mosque.verification_code = generate_verification_code()
        mosque.verification_code_expires = verification_code_expiry(expiry_days)

        await db.flush()
        logger.info(f"Regenerated verification code for mosque {mosque.id} (was {old_code[:4]}...)")
        return mosque

    @staticmethod
    async def get_expiring_codes(db: AsyncSession, before: datetime) -> list[Mosque]:
        """Mosques whose verification code expires at or before ``before``."""
        result = await db.execute(
            select(Mosque)
            .where(Mosque.verification_code_expires.is_not(None))
            .where(Mosque.verification_code_expires <= before)
            .order_by(Mosque.verification_code_expires.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def delete(db: AsyncSession, mosque: Mosque) -> None:
        await db.delete(mosque)
        await db.flush()
        logger.info(f"Deleted mosque: {mosque.id} - {mosque.name}")
