"""
Super Admin Router

API endpoints behind the super-admin console. All endpoints require a valid
JWT with the super_admin role.

Endpoints:
- GET /superadmin/pending - Pending applications
- GET /superadmin/approved - Approved administrators
- GET /superadmin/rejected-admins - Rejected administrators
- GET /superadmin/mosques - Mosques
- POST /superadmin/mosques - Register a mosque
- GET /superadmin/dashboard/stats - Overview counts
- PUT /superadmin/{id}/approve - Approve an application
- PUT /superadmin/{id}/reject - Reject an application
- PUT /superadmin/admin/{id}/remove - Remove an approved administrator
- PUT /superadmin/{id}/allow-reapplication - Let a rejected administrator reapply
- POST /superadmin/mosques/{id}/assign-admin - Create an approved administrator directly
- DELETE /superadmin/mosque/{id} - Delete a mosque
- PUT /superadmin/mosque/{id} - Update mosque details or prayer times
- PUT /superadmin/mosque/{id}/regenerate-code - New verification code
- GET /superadmin/mosque/expiring-codes - Codes expired or expiring soon
- GET /superadmin/jobs - Registered background jobs
- POST /superadmin/jobs/{job_id}/run - Run a background job now

Errors are returned as ``{"error": CODE, "message": text}`` plus any
structured context the service attached.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import SuperAdminUser, get_current_super_admin
from app.core.database import get_db
from app.core.rate_limit import RateLimitExceeded, check_rate_limit
from app.core.scheduler import list_registered_jobs, trigger_job_manually
from app.modules.admins import lifecycle, service
from app.modules.admins.models import MosqueAdmin
from app.modules.admins.schemas import (
    ActionResponse,
    AllowReapplicationRequest,
    ApprovedAdminResponse,
    ApprovedAdminsResponse,
    ApproveRequest,
    AssignAdminRequest,
    AssignAdminResponse,
    DashboardStats,
    DeleteMosqueResponse,
    PendingAdminResponse,
    PendingAdminsResponse,
    PreviousMosqueItem,
    ReasonRequest,
    RejectedAdminResponse,
    RejectedAdminsResponse,
    RejectResponse,
)
from app.modules.admins.service import AdminServiceError
from app.modules.audit.service import actor_from_super_admin
from app.modules.mosques.models import Mosque
from app.modules.mosques.schemas import (
    ExpiringCodeItem,
    ExpiringCodesResponse,
    MosqueCreateRequest,
    MosqueCreateResponse,
    MosqueListResponse,
    MosqueResponse,
    MosqueSummary,
    MosqueUpdateRequest,
    PrayerTimesSchema,
    RegenerateCodeRequest,
    RegenerateCodeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_DECIDE = (20, 60)  # approve / reject
RATE_LIMIT_REMOVE = (10, 60)
RATE_LIMIT_REAPPLY = (20, 60)
RATE_LIMIT_ASSIGN = (10, 60)
RATE_LIMIT_DELETE = (5, 60)
RATE_LIMIT_CREATE_MOSQUE = (10, 60)
RATE_LIMIT_CODES = (30, 60)


async def _check_admin_rate_limit(
    admin: SuperAdminUser,
    action: str,
    limit: int,
    window_seconds: int,
) -> None:
    """
    Raises:
        RateLimitExceeded: If the super admin exceeded the action's budget
    """
    key = f"superadmin:{action}:{admin.id}"
    allowed = await check_rate_limit(key, limit, window_seconds)

    if not allowed:
        logger.warning(
            f"Rate limit exceeded for super admin {admin.id} on action '{action}': "
            f"{limit}/{window_seconds}s"
        )
        raise RateLimitExceeded(limit, window_seconds)


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: AdminServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
            **e.details,
        },
    ) from e


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Error during {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )


def _mosque_summary(mosque: Mosque | None) -> MosqueSummary | None:
    if mosque is None:
        return None
    return MosqueSummary(
        id=str(mosque.id),
        name=mosque.name,
        location=mosque.location,
        verification_code=mosque.verification_code,
    )


def _to_pending(admin: MosqueAdmin) -> PendingAdminResponse:
    mosque = admin.mosque
    code_matches = bool(
        mosque and admin.verification_code_used == mosque.verification_code
    )
    return PendingAdminResponse(
        id=str(admin.id),
        name=admin.name,
        email=admin.email,
        phone=admin.phone,
        mosque_id=_mosque_summary(mosque),
        application_notes=admin.application_notes,
        verification_code_used=admin.verification_code_used,
        verification_status="valid" if code_matches else "invalid",
        rejection_count=admin.rejection_count,
        created_at=admin.created_at,
    )


def _to_approved(admin: MosqueAdmin) -> ApprovedAdminResponse:
    return ApprovedAdminResponse(
        id=str(admin.id),
        name=admin.name,
        email=admin.email,
        phone=admin.phone,
        mosque_id=_mosque_summary(admin.mosque),
        status=admin.status,
        approved_at=admin.approved_at,
        super_admin_notes=admin.super_admin_notes,
        created_at=admin.created_at,
    )


def _to_rejected(admin: MosqueAdmin) -> RejectedAdminResponse:
    return RejectedAdminResponse(
        id=str(admin.id),
        name=admin.name,
        email=admin.email,
        phone=admin.phone,
        rejection_count=admin.rejection_count,
        can_reapply=admin.can_reapply,
        auto_banned=lifecycle.is_auto_banned(admin.rejection_count),
        rejection_reason=admin.rejection_reason,
        rejection_date=admin.rejection_date,
        previous_mosque_ids=[
            PreviousMosqueItem(
                mosque_id=entry.get("mosque_id"),
                rejected_at=entry.get("rejected_at"),
                rejection_reason=entry.get("rejection_reason"),
            )
            for entry in admin.previous_mosques or []
        ],
        created_at=admin.created_at,
    )


def _to_mosque(mosque: Mosque) -> MosqueResponse:
    return MosqueResponse(
        id=str(mosque.id),
        name=mosque.name,
        location=mosque.location,
        description=mosque.description,
        verification_code=mosque.verification_code,
        verification_code_expires=mosque.verification_code_expires,
        contact_phone=mosque.contact_phone,
        contact_email=mosque.contact_email,
        admin_instructions=mosque.admin_instructions,
        prayer_times=PrayerTimesSchema(**(mosque.prayer_times or {})),
        created_at=mosque.created_at,
        updated_at=mosque.updated_at,
    )


# ============================================
# Collection Endpoints
# ============================================


@router.get("/pending", response_model=PendingAdminsResponse, summary="List Pending Applications")
async def list_pending(
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> PendingAdminsResponse:
    """Pending applications, newest first, with the mosque populated."""
    admins = await service.get_pending_admins(db)
    return PendingAdminsResponse(pending_admins=[_to_pending(a) for a in admins])


@router.get("/approved", response_model=ApprovedAdminsResponse, summary="List Approved Admins")
async def list_approved(
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> ApprovedAdminsResponse:
    admins = await service.get_approved_admins(db)
    return ApprovedAdminsResponse(approved_admins=[_to_approved(a) for a in admins])


@router.get(
    "/rejected-admins",
    response_model=RejectedAdminsResponse,
    summary="List Rejected Admins",
)
async def list_rejected(
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> RejectedAdminsResponse:
    """Rejected administrators with their rejection history."""
    admins, total = await service.get_rejected_admins(db, search=search, page=page, limit=limit)
    return RejectedAdminsResponse(
        rejected_admins=[_to_rejected(a) for a in admins],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/mosques", response_model=MosqueListResponse, summary="List Mosques")
async def list_mosques(
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(1000, ge=1, le=5000),
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> MosqueListResponse:
    mosques, total = await service.get_mosques(db, search=search, page=page, limit=limit)
    return MosqueListResponse(mosques=[_to_mosque(m) for m in mosques], total=total)


@router.get("/dashboard/stats", response_model=DashboardStats, summary="Dashboard Statistics")
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> DashboardStats:
    stats = await service.get_dashboard_stats(db)
    return DashboardStats(**stats)


# ============================================
# Mosque Registration
# ============================================


@router.post(
    "/mosques",
    response_model=MosqueCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Mosque",
)
async def create_mosque(
    data: MosqueCreateRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> MosqueCreateResponse:
    """
    Register a mosque. The response carries the verification code to share
    with the trusted member of the mosque management.
    """
    await _check_admin_rate_limit(admin, "create_mosque", *RATE_LIMIT_CREATE_MOSQUE)

    try:
        mosque = await service.create_mosque(
            db,
            actor_from_super_admin(admin),
            name=data.name,
            location=data.location,
            description=data.description,
            contact_phone=data.contact_phone,
            contact_email=data.contact_email,
            admin_instructions=data.admin_instructions,
            prayer_times=data.prayer_times.model_dump() if data.prayer_times else None,
        )
        return MosqueCreateResponse(
            mosque=_to_mosque(mosque),
            message=f'Mosque "{mosque.name}" created.',
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("mosque registration", e) from e


# ============================================
# Verification Code Endpoints
# ============================================


@router.get(
    "/mosque/expiring-codes",
    response_model=ExpiringCodesResponse,
    summary="Expiring Verification Codes",
)
async def expiring_codes(
    days_ahead: int = Query(7, ge=0, le=90),
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> ExpiringCodesResponse:
    """Mosques whose verification code has expired or expires within ``days_ahead`` days."""
    now = datetime.now(UTC)
    mosques = await service.get_expiring_codes(db, days_ahead=days_ahead)
    items = [
        ExpiringCodeItem(
            id=str(m.id),
            name=m.name,
            location=m.location,
            verification_code=m.verification_code,
            verification_code_expires=m.verification_code_expires,
            expired=m.verification_code_expires <= now,
        )
        for m in mosques
    ]
    return ExpiringCodesResponse(mosques=items, count=len(items), days_ahead=days_ahead)


@router.put(
    "/mosque/{mosque_id}/regenerate-code",
    response_model=RegenerateCodeResponse,
    summary="Regenerate Verification Code",
)
async def regenerate_code(
    mosque_id: str,
    data: RegenerateCodeRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> RegenerateCodeResponse:
    await _check_admin_rate_limit(admin, "regenerate_code", *RATE_LIMIT_CODES)

    try:
        mosque = await service.regenerate_verification_code(
            db, mosque_id, actor_from_super_admin(admin), data.expiry_days if data else None
        )
        return RegenerateCodeResponse(
            id=str(mosque.id),
            name=mosque.name,
            verification_code=mosque.verification_code,
            verification_code_expires=mosque.verification_code_expires,
            message="Verification code regenerated successfully.",
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("code regeneration", e) from e


@router.put("/mosque/{mosque_id}", response_model=MosqueResponse, summary="Update Mosque")
async def update_mosque(
    mosque_id: str,
    data: MosqueUpdateRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> MosqueResponse:
    """Update mosque details and/or prayer times. Omitted fields are left unchanged."""
    changes = data.model_dump(exclude_unset=True)
    if "prayer_times" in changes and data.prayer_times is not None:
        changes["prayer_times"] = data.prayer_times.model_dump(exclude_unset=True)

    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "NO_CHANGES", "message": "No fields to update."},
        )

    try:
        mosque = await service.update_mosque(db, mosque_id, actor_from_super_admin(admin), changes)
        return _to_mosque(mosque)
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("mosque update", e) from e


# ============================================
# Lifecycle Action Endpoints
# ============================================


@router.put("/{admin_id}/approve", response_model=ActionResponse, summary="Approve Application")
async def approve_admin(
    admin_id: str,
    data: ApproveRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> ActionResponse:
    """
    Approve a pending application.

    Fails with ADMIN_ALREADY_EXISTS (409) when the mosque already has an
    approved administrator; the response carries ``existing_admin``.
    """
    await _check_admin_rate_limit(admin, "approve", *RATE_LIMIT_DECIDE)

    try:
        approved = await service.approve_admin(
            db, admin_id, actor_from_super_admin(admin), data.super_admin_notes if data else None
        )
        return ActionResponse(
            id=str(approved.id),
            status=approved.status,
            message="Admin approved and assigned to the mosque.",
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("approval", e) from e


@router.put("/{admin_id}/reject", response_model=RejectResponse, summary="Reject Application")
async def reject_admin(
    admin_id: str,
    data: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> RejectResponse:
    """
    Reject an application.

    Requires a reason of at least 10 characters. The mosque's verification
    code is regenerated.
    """
    await _check_admin_rate_limit(admin, "reject", *RATE_LIMIT_DECIDE)

    try:
        rejected, new_code = await service.reject_admin(
            db, admin_id, actor_from_super_admin(admin), data.reason
        )
        return RejectResponse(
            id=str(rejected.id),
            status=rejected.status,
            rejection_count=rejected.rejection_count,
            can_reapply=rejected.can_reapply,
            auto_banned=lifecycle.is_auto_banned(rejected.rejection_count),
            new_verification_code=new_code,
            message="Admin application rejected. The mosque verification code has been regenerated.",
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("rejection", e) from e


@router.put("/admin/{admin_id}/remove", response_model=ActionResponse, summary="Remove Admin")
async def remove_admin(
    admin_id: str,
    data: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> ActionResponse:
    await _check_admin_rate_limit(admin, "remove", *RATE_LIMIT_REMOVE)

    try:
        removed = await service.remove_admin(
            db, admin_id, actor_from_super_admin(admin), data.reason
        )
        return ActionResponse(
            id=str(removed.id),
            status=removed.status,
            message="Admin removed from the mosque.",
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("removal", e) from e


@router.put(
    "/{admin_id}/allow-reapplication",
    response_model=ActionResponse,
    summary="Allow Reapplication",
)
async def allow_reapplication(
    admin_id: str,
    data: AllowReapplicationRequest | None = None,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> ActionResponse:
    """Refused with AUTO_BANNED once an admin has been rejected 3 times."""
    await _check_admin_rate_limit(admin, "allow_reapplication", *RATE_LIMIT_REAPPLY)

    try:
        updated = await service.allow_reapplication(
            db, admin_id, actor_from_super_admin(admin), data.notes if data else None
        )
        return ActionResponse(
            id=str(updated.id),
            status=updated.status,
            message="Admin may now reapply.",
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("allow reapplication", e) from e


@router.post(
    "/mosques/{mosque_id}/assign-admin",
    response_model=AssignAdminResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign Admin",
)
async def assign_admin(
    mosque_id: str,
    data: AssignAdminRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> AssignAdminResponse:
    await _check_admin_rate_limit(admin, "assign", *RATE_LIMIT_ASSIGN)

    try:
        created = await service.assign_admin(
            db,
            mosque_id,
            actor_from_super_admin(admin),
            name=data.admin_name,
            email=data.admin_email,
            phone=data.admin_phone,
            password=data.admin_password,
            notes=data.super_admin_notes,
        )
        return AssignAdminResponse(
            id=str(created.id),
            status=created.status,
            mosque_id=str(created.mosque_id),
            name=created.name,
            email=created.email,
            message="Admin assigned to the mosque.",
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("admin assignment", e) from e


@router.delete("/mosque/{mosque_id}", response_model=DeleteMosqueResponse, summary="Delete Mosque")
async def delete_mosque(
    mosque_id: str,
    data: ReasonRequest,
    db: AsyncSession = Depends(get_db),
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> DeleteMosqueResponse:
    await _check_admin_rate_limit(admin, "delete_mosque", *RATE_LIMIT_DELETE)

    try:
        mosque, affected = await service.delete_mosque(
            db, mosque_id, actor_from_super_admin(admin), data.reason
        )
        return DeleteMosqueResponse(
            id=str(mosque.id),
            name=mosque.name,
            affected_admins=affected,
            message=f'Mosque "{mosque.name}" deleted.',
        )
    except AdminServiceError as e:
        _handle_service_error(e)
    except Exception as e:
        raise _internal_error("mosque deletion", e) from e


# ============================================
# Background Jobs
# ============================================


@router.get("/jobs", summary="List Background Jobs")
async def list_jobs(
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> dict:
    return {"jobs": list_registered_jobs()}


@router.post("/jobs/{job_id}/run", summary="Run Background Job")
async def run_job(
    job_id: str,
    admin: SuperAdminUser = Depends(get_current_super_admin),
) -> dict:
    """Run a registered job immediately, bypassing its schedule."""
    try:
        logger.info(f"Super admin {admin.id} manually running job {job_id}")
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "JOB_NOT_FOUND", "message": str(e)},
        ) from e
