"""
Authentication and Authorization Module

FastAPI dependencies that validate bearer tokens and enforce the
super_admin role on directory management endpoints.

SECURITY NOTE:
- Development test tokens are ONLY accepted when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

SUPER_ADMIN_ROLE = "super_admin"

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for authentication",
)

optional_security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token, required only once a super admin exists",
)


@dataclass
class SuperAdminUser:
    """
    An authenticated super admin, populated from JWT claims.

    Attributes:
        id: Super admin's unique identifier
        email: Super admin's email address
        role: Role claim (must be 'super_admin')
        name: Display name, recorded on audit entries
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    def __str__(self) -> str:
        return f"SuperAdminUser(id={self.id}, email={self.email}, role={self.role})"


def _is_dev_mode_safe() -> bool:
    """
    Check whether development test tokens may be accepted.

    Requires settings to report development AND the raw PYTHON_ENV
    variable to not name production or staging.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_SUPER_ADMIN = SuperAdminUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="superadmin@mosque-directory.dev",
    role=SUPER_ADMIN_ROLE,
    name="Development Super Admin",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> SuperAdminUser:
    """
    Validate a JWT and extract the caller's claims.

    Raises:
        HTTPException 401: If the token is invalid, expired, the wrong type,
            or missing required claims
    """
    if _DEVELOPMENT_MODE and token in ("dev-token", "test-token"):
        logger.debug("Development mode: using test token")
        return _DEV_SUPER_ADMIN

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")

        return SuperAdminUser(
            id=UUID(user_id_str),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_super_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> SuperAdminUser:
    """
    Dependency that authenticates the caller and requires the super_admin role.

    The caller's id is stored on ``request.state.admin_id`` so rate limit
    keys can be derived per user.

    Raises:
        HTTPException 401: If the token is missing, invalid, or expired
        HTTPException 403: If the caller is not a super admin
    """
    user = await _validate_jwt_token(credentials.credentials)

    if user.role != SUPER_ADMIN_ROLE:
        logger.warning(
            f"Access denied: user {user.id} ({user.email}) has role '{user.role}', "
            f"but '{SUPER_ADMIN_ROLE}' is required"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "SUPER_ADMIN_ACCESS_REQUIRED",
                "message": "Super admin access is required for this endpoint.",
            },
        )

    request.state.admin_id = str(user.id)
    logger.debug(f"Authenticated super admin: {user.id} ({user.email})")
    return user


async def get_optional_super_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_security),
) -> SuperAdminUser | None:
    """
    Like ``get_current_super_admin`` but returns None when no bearer token
    was sent. A token that is sent must still be valid.
    """
    if credentials is None:
        return None
    return await get_current_super_admin(request, credentials)


__all__ = [
    "SUPER_ADMIN_ROLE",
    "SuperAdminUser",
    "get_current_super_admin",
    "get_optional_super_admin",
]
