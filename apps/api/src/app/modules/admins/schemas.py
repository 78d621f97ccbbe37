"""
Mosque Admin Schemas

Pydantic schemas for the super-admin console endpoints. Administrator
responses embed the mosque under ``mosque_id`` as a populated reference,
which is the shape the console's record parser expects.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.modules.admins.models import AdminStatus
from app.modules.mosques.schemas import MosqueSummary


class PreviousMosqueItem(BaseModel):
    """One entry of a rejected administrator's history."""

    mosque_id: MosqueSummary | str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None


class PendingAdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    mosque_id: MosqueSummary | None = None
    application_notes: str | None = None
    verification_code_used: str | None = None
    verification_status: str = "invalid"
    rejection_count: int = 0
    created_at: datetime


class ApprovedAdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    mosque_id: MosqueSummary | None = None
    status: AdminStatus
    approved_at: datetime | None = None
    super_admin_notes: str | None = None
    created_at: datetime


class RejectedAdminResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    rejection_count: int
    can_reapply: bool
    auto_banned: bool
    rejection_reason: str | None = None
    rejection_date: datetime | None = None
    previous_mosque_ids: list[PreviousMosqueItem] = Field(default_factory=list)
    created_at: datetime


class PendingAdminsResponse(BaseModel):
    """Response for GET /superadmin/pending."""

    pending_admins: list[PendingAdminResponse]


class ApprovedAdminsResponse(BaseModel):
    """Response for GET /superadmin/approved."""

    approved_admins: list[ApprovedAdminResponse]


class RejectedAdminsResponse(BaseModel):
    """Response for GET /superadmin/rejected-admins."""

    rejected_admins: list[RejectedAdminResponse]
    total: int
    page: int
    limit: int


# ============================================
# Action requests
# ============================================


class ApproveRequest(BaseModel):
    """Request body for PUT /superadmin/{id}/approve."""

    super_admin_notes: str | None = Field(None, max_length=1000)


class ReasonRequest(BaseModel):
    """Request body carrying a rejection, removal or deletion reason."""

    reason: str = Field(..., max_length=1000)


class AllowReapplicationRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


class AssignAdminRequest(BaseModel):
    """Request body for POST /superadmin/mosques/{id}/assign-admin."""

    admin_name: str = Field(..., max_length=50)
    admin_email: EmailStr
    admin_phone: str = Field(..., max_length=20)
    admin_password: str = Field(..., max_length=128)
    super_admin_notes: str | None = Field(None, max_length=1000)


class AdminApplicationRequest(BaseModel):
    """Request body for POST /auth/admin/register."""

    name: str = Field(..., max_length=50)
    email: EmailStr
    phone: str = Field(..., max_length=20)
    password: str = Field(..., max_length=128)
    mosque_id: str
    verification_code: str = Field(..., max_length=32)
    application_notes: str | None = Field(None, max_length=500)


class ReapplicationRequest(BaseModel):
    """Request body for POST /auth/admin/request-reapplication."""

    email: EmailStr
    password: str = Field(..., max_length=128)
    mosque_id: str
    verification_code: str = Field(..., max_length=32)
    reason_for_reapplication: str = Field(..., max_length=2000)


# ============================================
# Action responses
# ============================================


class ActionResponse(BaseModel):
    """Generic response for a lifecycle action on an administrator."""

    id: str
    status: AdminStatus
    message: str


class RejectResponse(ActionResponse):
    rejection_count: int
    can_reapply: bool
    auto_banned: bool
    new_verification_code: str | None = None


class AssignAdminResponse(ActionResponse):
    mosque_id: str
    name: str
    email: str


class ApplicationResponse(ActionResponse):
    mosque_id: str
    name: str
    email: str


class DeleteMosqueResponse(BaseModel):
    id: str
    name: str
    affected_admins: int
    message: str


class DashboardStats(BaseModel):
    """Response for GET /superadmin/dashboard/stats."""

    total_mosques: int
    approved_mosques: int
    mosques_without_admin: int
    pending_requests: int
    rejected_requests: int
    removed_admins: int
    total_super_admins: int
    total_audit_logs: int
