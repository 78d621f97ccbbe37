"""
Super Admin Service

Registration of super admin accounts. The first account may register
without authentication; once one exists, only an authenticated super admin
may create another.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import SuperAdminUser
from app.core.security import hash_password
from app.modules.admins.lifecycle import EMAIL_PATTERN, MIN_PASSWORD_LENGTH
from app.modules.audit.models import AuditActionType, PerformerType, TargetType
from app.modules.audit.service import Actor, actor_from_super_admin, record_action
from app.modules.super_admins.models import SuperAdmin
from app.modules.super_admins.repository import SuperAdminRepository

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2


class SuperAdminServiceError(Exception):
    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


async def register_super_admin(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    creator: SuperAdminUser | None = None,
) -> SuperAdmin:
    """
    Create a super admin account.

    Args:
        creator: The authenticated super admin making the request, or None
            for initial setup

    Raises:
        SuperAdminServiceError: AUTHENTICATION_REQUIRED, INVALID_NAME,
            INVALID_EMAIL, INVALID_PASSWORD or EMAIL_ALREADY_EXISTS
    """
    if creator is None and await SuperAdminRepository.count(db) > 0:
        logger.warning(f"Unauthenticated super admin registration refused for {email}")
        raise SuperAdminServiceError(
            "Authentication is required to create a super admin.",
            "AUTHENTICATION_REQUIRED",
            401,
        )

    name = (name or "").strip()
    email = (email or "").strip().lower()

    if len(name) < MIN_NAME_LENGTH:
        raise SuperAdminServiceError(
            f"Name must be at least {MIN_NAME_LENGTH} characters long.", "INVALID_NAME"
        )
    if not EMAIL_PATTERN.match(email):
        raise SuperAdminServiceError("Enter a valid email address.", "INVALID_EMAIL")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise SuperAdminServiceError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.", "INVALID_PASSWORD"
        )

    if await SuperAdminRepository.get_by_email(db, email):
        raise SuperAdminServiceError(
            "A super admin with this email already exists.", "EMAIL_ALREADY_EXISTS", 409
        )

    super_admin = await SuperAdminRepository.create(
        db, name=name, email=email, password_hash=hash_password(password)
    )

    if creator is not None:
        actor = actor_from_super_admin(creator)
    else:
        actor = Actor(
            id=str(super_admin.id),
            type=PerformerType.SUPER_ADMIN,
            email=super_admin.email,
            name=super_admin.name,
        )

    await record_action(
        db,
        AuditActionType.SUPERADMIN_CREATED,
        actor,
        TargetType.SUPER_ADMIN,
        target_id=str(super_admin.id),
        target_name=super_admin.name,
        details={
            "super_admin_data": {"name": super_admin.name, "email": super_admin.email},
            "created_by": "existing_super_admin" if creator else "initial_setup",
        },
    )
    await db.commit()

    logger.info(f"Super admin registered: {super_admin.email}")
    return super_admin
