"""
Mosque Admin Repository

Database operations for administrator records. Only data access lives
here; lifecycle rules are enforced by the service.
"""

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AdminStatus, MosqueAdmin


async def get_by_id(db: AsyncSession, id: str) -> MosqueAdmin | None:
    """Get administrator by ID."""
    return await db.get(MosqueAdmin, str(id))


async def get_by_email(db: AsyncSession, email: str) -> MosqueAdmin | None:
    """Get administrator by email (case-insensitive)."""
    result = await db.execute(
        select(MosqueAdmin).where(func.lower(MosqueAdmin.email) == email.strip().lower())
    )
    return result.scalar_one_or_none()


async def get_by_phone(db: AsyncSession, phone: str) -> MosqueAdmin | None:
    result = await db.execute(select(MosqueAdmin).where(MosqueAdmin.phone == phone.strip()))
    return result.scalar_one_or_none()


async def list_pending(db: AsyncSession) -> list[MosqueAdmin]:
    """Pending applications, newest first."""
    result = await db.execute(
        select(MosqueAdmin)
        .where(MosqueAdmin.status == AdminStatus.PENDING)
        .order_by(MosqueAdmin.created_at.desc(), MosqueAdmin.id.asc())
    )
    return list(result.scalars().all())


async def list_approved(db: AsyncSession) -> list[MosqueAdmin]:
    """Approved administrators, oldest first."""
    result = await db.execute(
        select(MosqueAdmin)
        .where(MosqueAdmin.status == AdminStatus.APPROVED)
        .order_by(MosqueAdmin.created_at.asc(), MosqueAdmin.id.asc())
    )
    return list(result.scalars().all())


async def list_rejected(
    db: AsyncSession,
    search: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[list[MosqueAdmin], int]:
    """
    Rejected administrators, most recently rejected first.

    Args:
        db: Database session
        search: Case-insensitive match on name, email or phone
        skip: Records to skip
        limit: Maximum records to return

    Returns:
        Tuple of (records, total matching)
    """
    query = select(MosqueAdmin).where(MosqueAdmin.status == AdminStatus.REJECTED)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                MosqueAdmin.name.ilike(pattern),
                MosqueAdmin.email.ilike(pattern),
                MosqueAdmin.phone.ilike(pattern),
            )
        )

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(
            MosqueAdmin.rejection_date.desc().nulls_last(),
            MosqueAdmin.id.asc(),
        )
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().unique().all()), total


async def get_approved_for_mosque(db: AsyncSession, mosque_id: str) -> MosqueAdmin | None:
    """The mosque's approved administrator, oldest first if there is more than one."""
    result = await db.execute(
        select(MosqueAdmin)
        .where(
            MosqueAdmin.mosque_id == str(mosque_id),
            MosqueAdmin.status == AdminStatus.APPROVED,
        )
        .order_by(MosqueAdmin.created_at.asc())
        .limit(1)
    )
    return result.scalars().first()


async def get_pending_for_mosque(db: AsyncSession, mosque_id: str) -> MosqueAdmin | None:
    result = await db.execute(
        select(MosqueAdmin)
        .where(
            MosqueAdmin.mosque_id == str(mosque_id),
            MosqueAdmin.status == AdminStatus.PENDING,
        )
        .order_by(MosqueAdmin.created_at.asc())
        .limit(1)
    )
    return result.scalars().first()


async def count_by_status(db: AsyncSession) -> dict[AdminStatus, int]:
    """Record counts keyed by status; statuses with no records map to 0."""
    result = await db.execute(
        select(MosqueAdmin.status, func.count(MosqueAdmin.id)).group_by(MosqueAdmin.status)
    )
    counts = {status: 0 for status in AdminStatus}
    for status, count in result.all():
        counts[status] = count
    return counts


async def create(db: AsyncSession, admin: MosqueAdmin) -> MosqueAdmin:
    """Add a new administrator record."""
    db.add(admin)
    await db.flush()
    await db.refresh(admin)
    return admin


async def mark_mosque_deleted(
    db: AsyncSession,
    mosque_id: str,
    mosque_name: str,
    mosque_location: str,
) -> int:
    """
    Detach every administrator from a mosque that is being deleted.

    Records keep the deleted mosque's name and location so their history
    stays readable.

    Returns:
        Number of records updated
    """
    result = await db.execute(
        update(MosqueAdmin)
        .where(MosqueAdmin.mosque_id == str(mosque_id))
        .where(MosqueAdmin.status.in_([AdminStatus.PENDING, AdminStatus.APPROVED]))
        .values(
            status=AdminStatus.MOSQUE_DELETED,
            deleted_mosque_name=mosque_name,
            deleted_mosque_location=mosque_location,
            mosque_id=None,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0
