"""
Admin Application Router

Public endpoints for prospective mosque administrators. No token is
required; applicants prove themselves with the mosque's verification code,
and reapplicants additionally with their existing password.

Endpoints:
- POST /auth/admin/register - Apply to administer a mosque
- POST /auth/admin/request-reapplication - Reapply after an allowed rejection
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limit import RateLimitExceeded, check_rate_limit
from app.modules.admins import service
from app.modules.admins.models import MosqueAdmin
from app.modules.admins.schemas import (
    AdminApplicationRequest,
    ApplicationResponse,
    ReapplicationRequest,
)
from app.modules.admins.service import AdminServiceError

logger = logging.getLogger(__name__)

router = APIRouter()

# 5 attempts per hour per email
RATE_LIMIT_APPLY = (5, 3600)


async def _check_application_rate_limit(action: str, email: str) -> None:
    key = f"application:{action}:{email.lower()}"
    if not await check_rate_limit(key, *RATE_LIMIT_APPLY):
        logger.warning(f"Application rate limit exceeded for {email} on '{action}'")
        raise RateLimitExceeded(*RATE_LIMIT_APPLY)


def _raise_http(e: AdminServiceError) -> None:
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message, **e.details},
    ) from e


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.exception(f"Error during {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred."},
    )


def _to_application(admin: MosqueAdmin, message: str) -> ApplicationResponse:
    return ApplicationResponse(
        id=str(admin.id),
        status=admin.status,
        mosque_id=str(admin.mosque_id),
        name=admin.name,
        email=admin.email,
        message=message,
    )


@router.post(
    "/register",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply as Mosque Admin",
)
async def register(
    data: AdminApplicationRequest,
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """
    Submit an application to administer a mosque.

    The application stays pending until a super admin approves or rejects it.
    """
    await _check_application_rate_limit("register", data.email)

    try:
        admin = await service.register_application(
            db,
            name=data.name,
            email=data.email,
            phone=data.phone,
            password=data.password,
            mosque_id=data.mosque_id,
            verification_code=data.verification_code,
            notes=data.application_notes,
        )
        return _to_application(
            admin, "Registration successful. Waiting for super admin approval."
        )
    except AdminServiceError as e:
        _raise_http(e)
    except Exception as e:
        raise _internal_error("admin registration", e) from e


@router.post(
    "/request-reapplication",
    response_model=ApplicationResponse,
    summary="Request Reapplication",
)
async def request_reapplication(
    data: ReapplicationRequest,
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    await _check_application_rate_limit("reapply", data.email)

    try:
        admin = await service.request_reapplication(
            db,
            email=data.email,
            password=data.password,
            mosque_id=data.mosque_id,
            verification_code=data.verification_code,
            reason=data.reason_for_reapplication,
        )
        return _to_application(
            admin, "Reapplication submitted. Waiting for super admin approval."
        )
    except AdminServiceError as e:
        _raise_http(e)
    except Exception as e:
        raise _internal_error("reapplication", e) from e
