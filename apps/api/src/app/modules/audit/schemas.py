"""
Audit Log Schemas
"""

from datetime import datetime

from pydantic import BaseModel

from app.modules.audit.models import AuditActionType, AuditStatus, PerformerType, TargetType


class PerformedBy(BaseModel):
    user_id: str | None = None
    user_type: PerformerType
    user_email: str | None = None
    user_name: str | None = None


class AuditTarget(BaseModel):
    target_type: TargetType
    target_id: str | None = None
    target_name: str | None = None


class AuditLogItem(BaseModel):
    id: str
    action_type: AuditActionType
    description: str
    performed_by: PerformedBy
    target: AuditTarget
    details: dict
    status: AuditStatus
    error_message: str | None = None
    timestamp: datetime


class AuditLogListResponse(BaseModel):
    """Response for GET /superadmin/audit-logs."""

    logs: list[AuditLogItem]
    total: int
    page: int
    limit: int
    total_pages: int
