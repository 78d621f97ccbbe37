"""Authentication router: super admin login and registration."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import SUPER_ADMIN_ROLE, SuperAdminUser, get_optional_super_admin
from app.core.database import get_db
from app.core.rate_limit import RateLimitExceeded, check_rate_limit
from app.core.security import create_access_token, create_refresh_token, verify_password
from app.modules.audit.models import AuditActionType, PerformerType, TargetType
from app.modules.audit.service import Actor, record_action
from app.modules.auth.schemas import (
    LoginRequest,
    LoginResponse,
    SuperAdminRegisterRequest,
    SuperAdminRegisterResponse,
    SuperAdminResponse,
)
from app.modules.super_admins import service as super_admin_service
from app.modules.super_admins.models import SuperAdmin
from app.modules.super_admins.repository import SuperAdminRepository

logger = logging.getLogger(__name__)

router = APIRouter()

# 10 attempts per 5 minutes per email
RATE_LIMIT_LOGIN = (10, 300)
# 5 registrations per hour per client address
RATE_LIMIT_REGISTER = (5, 3600)


def _profile(super_admin: SuperAdmin) -> SuperAdminResponse:
    return SuperAdminResponse(
        id=str(super_admin.id),
        name=super_admin.name,
        email=super_admin.email,
        role=SUPER_ADMIN_ROLE,
        is_active=super_admin.is_active,
        created_at=super_admin.created_at.isoformat(),
    )


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "INVALID_CREDENTIALS",
            "message": "Invalid email or password.",
        },
    )


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate a super admin and return JWT tokens.

    Args:
        credentials: Email and password
        db: Database session

    Returns:
        Access token, refresh token, and super admin profile

    Raises:
        HTTPException 401: Invalid credentials
        HTTPException 403: Account inactive
        HTTPException 429: Too many attempts
    """
    email = credentials.email.lower()

    if not await check_rate_limit(f"login:{email}", *RATE_LIMIT_LOGIN):
        logger.warning(f"Login rate limit exceeded for {email}")
        raise RateLimitExceeded(*RATE_LIMIT_LOGIN)

    super_admin = await SuperAdminRepository.get_by_email(db, email)

    if not super_admin:
        logger.warning(f"Login attempt for non-existent email: {email}")
        raise _invalid_credentials()

    if not verify_password(credentials.password, super_admin.password_hash):
        logger.warning(f"Invalid password for super admin: {email}")
        raise _invalid_credentials()

    if not super_admin.is_active:
        logger.warning(f"Login attempt for inactive account: {email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ACCOUNT_INACTIVE",
                "message": "Your account has been deactivated.",
            },
        )

    additional_claims = {
        "email": super_admin.email,
        "role": SUPER_ADMIN_ROLE,
        "name": super_admin.name,
    }

    access_token = create_access_token(
        subject=str(super_admin.id),
        additional_claims=additional_claims,
    )
    refresh_token = create_refresh_token(subject=str(super_admin.id))

    await SuperAdminRepository.touch_last_login(db, super_admin)
    await record_action(
        db,
        AuditActionType.SUPERADMIN_LOGIN,
        Actor(
            id=str(super_admin.id),
            type=PerformerType.SUPER_ADMIN,
            email=super_admin.email,
            name=super_admin.name,
        ),
        TargetType.SUPER_ADMIN,
        target_id=str(super_admin.id),
        target_name=super_admin.name,
    )
    await db.commit()

    logger.info(f"Super admin logged in: {super_admin.email}")

    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=_profile(super_admin),
    )


@router.post(
    "/superadmin/register",
    response_model=SuperAdminRegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_super_admin(
    data: SuperAdminRegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    creator: SuperAdminUser | None = Depends(get_optional_super_admin),
) -> SuperAdminRegisterResponse:
    """
    Register a super admin.

    Open while no super admin exists (initial setup); afterwards the caller
    must be an authenticated super admin.

    Raises:
        HTTPException 401: A super admin exists and no token was sent
        HTTPException 409: Email already registered
        HTTPException 429: Too many attempts
    """
    client_host = request.client.host if request.client else "unknown"
    if not await check_rate_limit(f"register:{client_host}", *RATE_LIMIT_REGISTER):
        logger.warning(f"Super admin registration rate limit exceeded for {client_host}")
        raise RateLimitExceeded(*RATE_LIMIT_REGISTER)

    try:
        super_admin = await super_admin_service.register_super_admin(
            db,
            name=data.name,
            email=data.email,
            password=data.password,
            creator=creator,
        )
    except super_admin_service.SuperAdminServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e

    return SuperAdminRegisterResponse(
        message="Super admin registered.",
        user=_profile(super_admin),
    )
