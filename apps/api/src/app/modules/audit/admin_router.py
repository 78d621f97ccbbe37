"""
Audit Log Admin Router

Endpoints:
- GET /superadmin/audit-logs - List audit entries with filters and pagination
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import SuperAdminUser, get_current_super_admin
from app.core.database import get_db
from app.modules.audit import service
from app.modules.audit.models import AuditActionType, AuditLog, TargetType
from app.modules.audit.schemas import (
    AuditLogItem,
    AuditLogListResponse,
    AuditTarget,
    PerformedBy,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _entry_to_item(entry: AuditLog) -> AuditLogItem:
    return AuditLogItem(
        id=entry.id,
        action_type=entry.action_type,
        description=service.describe(entry),
        performed_by=PerformedBy(
            user_id=entry.performed_by_id,
            user_type=entry.performed_by_type,
            user_email=entry.performed_by_email,
            user_name=entry.performed_by_name,
        ),
        target=AuditTarget(
            target_type=entry.target_type,
            target_id=entry.target_id,
            target_name=entry.target_name,
        ),
        details=entry.details or {},
        status=entry.status,
        error_message=entry.error_message,
        timestamp=entry.created_at,
    )


@router.get(
    "/audit-logs",
    response_model=AuditLogListResponse,
    summary="List Audit Logs",
)
async def list_audit_logs(
    action_type: AuditActionType | None = Query(None, description="Filter by action type"),
    target_type: TargetType | None = Query(None, description="Filter by target type"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> AuditLogListResponse:
    """Audit entries, newest first, each with a plain-English description."""
    entries, total = await service.get_audit_logs(
        db,
        action_type=action_type,
        target_type=target_type,
        page=page,
        limit=limit,
    )

    logger.debug(f"Super admin {admin.id} listed audit logs (page={page}, total={total})")

    return AuditLogListResponse(
        logs=[_entry_to_item(entry) for entry in entries],
        total=total,
        page=page,
        limit=limit,
        total_pages=(total + limit - 1) // limit if total else 0,
    )
