"""
Audit Log Repository
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AuditActionType, AuditLog, TargetType


async def create(db: AsyncSession, entry: AuditLog) -> AuditLog:
    db.add(entry)
    await db.flush()
    return entry


async def get_by_id(db: AsyncSession, id: str) -> AuditLog | None:
    return await db.get(AuditLog, str(id))


async def list_logs(
    db: AsyncSession,
    action_type: AuditActionType | None = None,
    target_type: TargetType | None = None,
    skip: int = 0,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    """
    List audit entries, newest first.

    Returns:
        Tuple of (entries, total matching)
    """
    query = select(AuditLog)

    if action_type:
        query = query.where(AuditLog.action_type == action_type)
    if target_type:
        query = query.where(AuditLog.target_type == target_type)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.asc()).offset(skip).limit(limit)
    )
    return list(result.scalars().all()), total


async def count_all(db: AsyncSession) -> int:
    result = await db.execute(select(func.count(AuditLog.id)))
    return result.scalar() or 0
