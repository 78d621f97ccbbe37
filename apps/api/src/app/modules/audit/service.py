"""
Audit Service

Records audit entries and renders them as plain-English descriptions.

Recording is best-effort: a failed audit write is logged and swallowed so it
can never undo the action it describes. Each entry is written inside a
savepoint, so a failure leaves the caller's transaction usable.
"""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import SuperAdminUser
from app.modules.audit import repository
from app.modules.audit.models import (
    AuditActionType,
    AuditLog,
    AuditStatus,
    PerformerType,
    TargetType,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Who performed an audited action."""

    id: str | None
    type: PerformerType
    email: str | None = None
    name: str | None = None


SYSTEM_ACTOR = Actor(id=None, type=PerformerType.SYSTEM, email="system", name="System")


def actor_from_super_admin(user: SuperAdminUser) -> Actor:
    return Actor(
        id=str(user.id),
        type=PerformerType.SUPER_ADMIN,
        email=user.email,
        name=user.name or user.email,
    )


async def record_action(
    db: AsyncSession,
    action_type: AuditActionType,
    actor: Actor,
    target_type: TargetType,
    target_id: str | None = None,
    target_name: str | None = None,
    details: dict[str, Any] | None = None,
    status: AuditStatus = AuditStatus.SUCCESS,
    error_message: str | None = None,
) -> AuditLog | None:
    """
    Write an audit entry.

    Returns:
        The new entry, or None if it could not be written
    """
    entry = AuditLog(
        action_type=action_type,
        performed_by_id=actor.id,
        performed_by_type=actor.type,
        performed_by_email=actor.email,
        performed_by_name=actor.name,
        target_type=target_type,
        target_id=target_id,
        target_name=target_name,
        details=details or {},
        status=status,
        error_message=error_message,
    )

    try:
        async with db.begin_nested():
            await repository.create(db, entry)
        return entry
    except Exception as e:
        logger.error(f"Failed to write audit log for {action_type.value}: {e}", exc_info=True)
        return None


def describe(entry: AuditLog) -> str:
    """Plain-English description of an audit entry."""
    details = entry.details or {}
    admin_data = details.get("admin_data") or {}
    mosque_data = details.get("mosque_data") or {}
    user = entry.performed_by_name or "Unknown User"
    action = entry.action_type

    if action is AuditActionType.MOSQUE_CREATED:
        name = mosque_data.get("name") or "a mosque"
        location = mosque_data.get("location") or "unknown location"
        return f'{user} created a new mosque called "{name}" located at {location}'

    if action is AuditActionType.MOSQUE_DELETED:
        name = mosque_data.get("name") or "a mosque"
        location = mosque_data.get("location") or "unknown location"
        return f'{user} permanently deleted the mosque "{name}" from {location}'

    if action in (AuditActionType.MOSQUE_UPDATED, AuditActionType.PRAYER_TIMES_UPDATED):
        name = mosque_data.get("name") or entry.target_name or "a mosque"
        what = "prayer times" if action is AuditActionType.PRAYER_TIMES_UPDATED else "details"
        return f'{user} updated the {what} of "{name}"'

    if action is AuditActionType.ADMIN_REGISTERED:
        name = admin_data.get("name") or "An admin"
        mosque = admin_data.get("mosque_name") or "a mosque"
        return f'{name} applied to become admin for "{mosque}"'

    if action is AuditActionType.ADMIN_APPROVED:
        name = admin_data.get("name") or "an admin"
        mosque = admin_data.get("mosque_name") or "a mosque"
        return f'{user} approved {name} as the admin for "{mosque}"'

    if action is AuditActionType.ADMIN_ASSIGNED:
        name = admin_data.get("name") or "an admin"
        mosque = admin_data.get("mosque_name") or "a mosque"
        return f'{user} assigned {name} directly as the admin for "{mosque}"'

    if action is AuditActionType.ADMIN_REJECTED:
        name = admin_data.get("name") or "an admin"
        mosque = admin_data.get("mosque_name") or "a mosque"
        reason = details.get("reason") or "no reason provided"
        return f"{user} rejected {name}'s application for \"{mosque}\". Reason: {reason}"

    if action is AuditActionType.ADMIN_REMOVED:
        name = admin_data.get("name") or "an admin"
        mosque = admin_data.get("mosque_name") or "a mosque"
        reason = details.get("reason") or "no reason provided"
        return f'{user} removed {name} from "{mosque}". Reason: {reason}'

    if action is AuditActionType.REAPPLICATION_ALLOWED:
        name = admin_data.get("name") or entry.target_name or "an admin"
        return f"{user} allowed {name} to reapply"

    if action is AuditActionType.REAPPLICATION_SUBMITTED:
        name = admin_data.get("name") or entry.target_name or "An admin"
        mosque = admin_data.get("mosque_name") or "a mosque"
        return f'{name} reapplied to become admin for "{mosque}"'

    if action is AuditActionType.VERIFICATION_CODE_REGENERATED:
        name = mosque_data.get("name") or entry.target_name or "a mosque"
        old_code = (details.get("before_data") or {}).get("verification_code") or "old code"
        new_code = (details.get("after_data") or {}).get("verification_code") or "new code"
        return (
            f'{user} generated a new verification code for "{name}" '
            f"(changed from {old_code} to {new_code})"
        )

    if action is AuditActionType.ADMIN_LOGIN:
        return f"{user} successfully logged in as Admin"

    if action is AuditActionType.SUPERADMIN_LOGIN:
        return f"{user} successfully logged in as Super Admin"

    if action is AuditActionType.SUPERADMIN_CREATED:
        name = entry.target_name or "a super admin"
        if details.get("created_by") == "initial_setup":
            return f"{name} registered as the first Super Admin"
        return f"{user} created a new Super Admin account for {name}"

    target = entry.target_name or "an item"
    return f'{user} performed "{action.value.replace("_", " ")}" on {target}'


async def get_audit_logs(
    db: AsyncSession,
    action_type: AuditActionType | None = None,
    target_type: TargetType | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    skip = (page - 1) * limit
    return await repository.list_logs(
        db,
        action_type=action_type,
        target_type=target_type,
        skip=skip,
        limit=limit,
    )
