"""
Mosque Admin Service Layer

Business logic behind the super-admin console: registering mosques,
deciding applications, removing and assigning administrators,
reapplication, mosque deletion and verification code management. Public
applications and reapplications from prospective administrators are
handled here too.

Every mutation follows the same shape:
1. Validate input with the shared lifecycle rules
2. Load the target and check its current state
3. Apply the change and write an audit entry in the same transaction
4. Commit
5. Notify the administrator by email (best-effort, never fails the request)

Error codes raised here are the contract the console maps to messages.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.email import (
    send_admin_approved,
    send_admin_rejected,
    send_admin_removed,
    send_reapplication_allowed,
)
from app.core.security import hash_password, verify_password
from app.modules.admins import lifecycle, repository
from app.modules.admins.lifecycle import LifecycleRuleError, LifecycleState
from app.modules.admins.models import AdminStatus, MosqueAdmin
from app.modules.audit.models import AuditActionType, PerformerType, TargetType
from app.modules.audit.repository import count_all as count_audit_logs
from app.modules.audit.service import Actor, record_action
from app.modules.mosques.models import Mosque
from app.modules.mosques.repository import MosqueRepository
from app.modules.super_admins.repository import SuperAdminRepository

logger = logging.getLogger(__name__)


# ============================================
# Errors
# ============================================


class AdminServiceError(Exception):
    """Base exception for admin service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class AdminNotFoundError(AdminServiceError):
    def __init__(self, admin_id: str | None = None):
        message = f"Admin {admin_id} not found" if admin_id else "Admin not found"
        super().__init__(message=message, error_code="ADMIN_NOT_FOUND", status_code=404)


class MosqueNotFoundError(AdminServiceError):
    def __init__(self, mosque_id: str | None = None):
        message = f"Mosque {mosque_id} not found" if mosque_id else "Mosque not found"
        super().__init__(message=message, error_code="MOSQUE_NOT_FOUND", status_code=404)


class AdminAlreadyExistsError(AdminServiceError):
    """Raised when a mosque already has an approved administrator."""

    def __init__(self, existing: MosqueAdmin):
        super().__init__(
            message=f"This mosque already has an approved admin: {existing.name}",
            error_code="ADMIN_ALREADY_EXISTS",
            status_code=409,
            details={
                "existing_admin": {
                    "id": str(existing.id),
                    "name": existing.name,
                    "email": existing.email,
                }
            },
        )


class EmailAlreadyExistsError(AdminServiceError):
    def __init__(self):
        super().__init__(
            message="This email is already registered by another admin.",
            error_code="EMAIL_ALREADY_EXISTS",
            status_code=409,
        )


class PhoneAlreadyExistsError(AdminServiceError):
    def __init__(self):
        super().__init__(
            message="This phone number is already registered by another admin.",
            error_code="PHONE_ALREADY_EXISTS",
            status_code=409,
        )


class InvalidAdminStateError(AdminServiceError):
    """Raised when an administrator is not in a state that allows the action."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_ADMIN_STATE", status_code=409)


# Lifecycle rule codes -> HTTP status
_RULE_STATUS_CODES = {
    "INVALID_REASON": 400,
    "INVALID_ASSIGNMENT": 400,
    "INVALID_APPLICATION": 400,
    "INVALID_MOSQUE": 400,
    "INVALID_VERIFICATION_CODE": 400,
    "VERIFICATION_CODE_EXPIRED": 400,
    "AUTO_BANNED": 409,
    "REAPPLICATION_ALREADY_ALLOWED": 409,
    "INVALID_ADMIN_STATE": 409,
}


def _from_rule_error(e: LifecycleRuleError) -> AdminServiceError:
    return AdminServiceError(
        message=e.message,
        error_code=e.code,
        status_code=_RULE_STATUS_CODES.get(e.code, 400),
    )


# ============================================
# Helpers
# ============================================


async def _get_admin_or_raise(db: AsyncSession, admin_id: str) -> MosqueAdmin:
    admin = await repository.get_by_id(db, admin_id)
    if not admin:
        logger.warning(f"Admin not found: {admin_id}")
        raise AdminNotFoundError(admin_id)
    return admin


async def _get_mosque_or_raise(db: AsyncSession, mosque_id: str | None) -> Mosque:
    mosque = await MosqueRepository.get_by_id(db, mosque_id) if mosque_id else None
    if not mosque:
        logger.warning(f"Mosque not found: {mosque_id}")
        raise MosqueNotFoundError(mosque_id)
    return mosque


def _ensure_transition(admin: MosqueAdmin, target: LifecycleState) -> None:
    current = lifecycle.lifecycle_state(admin.status.value, admin.can_reapply)
    try:
        lifecycle.ensure_transition(current, target)
    except LifecycleRuleError as e:
        logger.warning(f"Invalid transition for admin {admin.id}: {e.message}")
        raise InvalidAdminStateError(e.message) from e


def _admin_data(admin: MosqueAdmin, mosque: Mosque | None = None) -> dict[str, Any]:
    return {
        "name": admin.name,
        "email": admin.email,
        "phone": admin.phone,
        "status": admin.status.value,
        "mosque_id": str(mosque.id) if mosque else admin.mosque_id,
        "mosque_name": mosque.name if mosque else admin.deleted_mosque_name,
        "mosque_location": mosque.location if mosque else admin.deleted_mosque_location,
    }


# ============================================
# Reads
# ============================================


async def get_pending_admins(db: AsyncSession) -> list[MosqueAdmin]:
    return await repository.list_pending(db)


async def get_approved_admins(db: AsyncSession) -> list[MosqueAdmin]:
    return await repository.list_approved(db)


async def get_rejected_admins(
    db: AsyncSession,
    search: str | None = None,
    page: int = 1,
    limit: int = 100,
) -> tuple[list[MosqueAdmin], int]:
    return await repository.list_rejected(db, search=search, skip=(page - 1) * limit, limit=limit)


async def get_mosques(
    db: AsyncSession,
    search: str | None = None,
    page: int = 1,
    limit: int = 1000,
) -> tuple[list[Mosque], int]:
    return await MosqueRepository.list_all(db, search=search, skip=(page - 1) * limit, limit=limit)


async def get_dashboard_stats(db: AsyncSession) -> dict[str, int]:
    """Counts for the console overview."""
    counts = await repository.count_by_status(db)
    _mosques, total_mosques = await MosqueRepository.list_all(db, limit=1)
    approved = await repository.list_approved(db)
    approved_mosques = len({admin.mosque_id for admin in approved if admin.mosque_id})

    return {
        "total_mosques": total_mosques,
        "approved_mosques": approved_mosques,
        "mosques_without_admin": max(total_mosques - approved_mosques, 0),
        "pending_requests": counts[AdminStatus.PENDING],
        "rejected_requests": counts[AdminStatus.REJECTED],
        "removed_admins": counts[AdminStatus.ADMIN_REMOVED],
        "total_super_admins": await SuperAdminRepository.count(db),
        "total_audit_logs": await count_audit_logs(db),
    }


# ============================================
# Approve / Reject
# ============================================


async def approve_admin(
    db: AsyncSession,
    admin_id: str,
    actor: Actor,
    notes: str | None = None,
) -> MosqueAdmin:
    """
    Approve a pending application.

    Raises:
        AdminNotFoundError: If the administrator doesn't exist
        InvalidAdminStateError: If the record is not pending
        MosqueNotFoundError: If the mosque applied to no longer exists
        AdminAlreadyExistsError: If the mosque already has an approved admin
    """
    logger.info(f"Super admin {actor.id} approving admin {admin_id}")

    admin = await _get_admin_or_raise(db, admin_id)
    _ensure_transition(admin, LifecycleState.APPROVED)
    mosque = await _get_mosque_or_raise(db, admin.mosque_id)

    existing = await repository.get_approved_for_mosque(db, mosque.id)
    if existing and existing.id != admin.id:
        logger.warning(
            f"Cannot approve admin {admin_id}: mosque {mosque.id} already has "
            f"approved admin {existing.id}"
        )
        raise AdminAlreadyExistsError(existing)

    admin.status = AdminStatus.APPROVED
    admin.approved_at = datetime.now(UTC)
    admin.super_admin_notes = notes or "Approved by super admin"
    await db.flush()

    await record_action(
        db,
        AuditActionType.ADMIN_APPROVED,
        actor,
        TargetType.ADMIN,
        target_id=str(admin.id),
        target_name=admin.name,
        details={"admin_data": _admin_data(admin, mosque), "notes": notes},
    )
    await db.commit()
    logger.info(f"Admin {admin_id} approved for mosque {mosque.id}")

    try:
        await send_admin_approved(
            to_email=admin.email,
            admin_name=admin.name,
            mosque_name=mosque.name,
            notes=notes,
        )
    except Exception as e:
        logger.error(f"Failed to send approval email: {e}", exc_info=True)

    return admin


async def reject_admin(
    db: AsyncSession,
    admin_id: str,
    actor: Actor,
    reason: str,
) -> tuple[MosqueAdmin, str | None]:
    """
    Reject an application.

    The rejection count goes up by one, ``can_reapply`` is cleared and the
    mosque is appended to the record's history. The mosque's verification
    code is regenerated because the applicant has seen it.

    Returns:
        Tuple of (updated admin, the mosque's new verification code or None)

    Raises:
        AdminServiceError: INVALID_REASON if the reason is too short
        AdminNotFoundError: If the administrator doesn't exist
        InvalidAdminStateError: If the record cannot be rejected
    """
    logger.info(f"Super admin {actor.id} rejecting admin {admin_id}")

    try:
        trimmed = lifecycle.validate_reason(reason, "rejection")
    except LifecycleRuleError as e:
        raise _from_rule_error(e) from e

    admin = await _get_admin_or_raise(db, admin_id)
    _ensure_transition(admin, LifecycleState.REJECTED)

    mosque = await MosqueRepository.get_by_id(db, admin.mosque_id) if admin.mosque_id else None

    outcome = lifecycle.apply_rejection(
        admin.rejection_count,
        admin.previous_mosques,
        admin.mosque_id,
        trimmed,
    )
    admin.status = AdminStatus.REJECTED
    admin.rejection_count = outcome.rejection_count
    admin.can_reapply = outcome.can_reapply
    admin.previous_mosques = outcome.previous_mosques
    admin.rejection_reason = outcome.rejection_reason
    admin.rejection_date = outcome.rejection_date
    admin.rejected_by = actor.id
    admin.approved_at = None

    new_code = None
    if mosque:
        await MosqueRepository.regenerate_code(db, mosque)
        new_code = mosque.verification_code
    await db.flush()

    await record_action(
        db,
        AuditActionType.ADMIN_REJECTED,
        actor,
        TargetType.ADMIN,
        target_id=str(admin.id),
        target_name=admin.name,
        details={
            "admin_data": _admin_data(admin, mosque),
            "reason": trimmed,
            "rejection_count": outcome.rejection_count,
            "auto_banned": outcome.auto_banned,
        },
    )
    await db.commit()

    if outcome.auto_banned:
        logger.warning(
            f"Admin {admin_id} reached {outcome.rejection_count} rejections and is auto-banned"
        )
    logger.info(f"Admin {admin_id} rejected (count={outcome.rejection_count})")

    try:
        await send_admin_rejected(
            to_email=admin.email,
            admin_name=admin.name,
            mosque_name=mosque.name if mosque else "the mosque",
            reason=trimmed,
            rejection_count=outcome.rejection_count,
            auto_banned=outcome.auto_banned,
        )
    except Exception as e:
        logger.error(f"Failed to send rejection email: {e}", exc_info=True)

    return admin, new_code


# ============================================
# Remove / Reapplication
# ============================================


async def remove_admin(
    db: AsyncSession,
    admin_id: str,
    actor: Actor,
    reason: str,
) -> MosqueAdmin:
    """
    Remove an approved administrator from their mosque.

    Raises:
        AdminServiceError: INVALID_REASON if the reason is too short
        AdminNotFoundError: If the administrator doesn't exist
        InvalidAdminStateError: If the record is not approved
    """
    logger.info(f"Super admin {actor.id} removing admin {admin_id}")

    try:
        trimmed = lifecycle.validate_reason(reason, "removal")
    except LifecycleRuleError as e:
        raise _from_rule_error(e) from e

    admin = await _get_admin_or_raise(db, admin_id)
    _ensure_transition(admin, LifecycleState.ADMIN_REMOVED)

    mosque = await MosqueRepository.get_by_id(db, admin.mosque_id) if admin.mosque_id else None

    admin.status = AdminStatus.ADMIN_REMOVED
    admin.removal_reason = trimmed
    await db.flush()

    await record_action(
        db,
        AuditActionType.ADMIN_REMOVED,
        actor,
        TargetType.ADMIN,
        target_id=str(admin.id),
        target_name=admin.name,
        details={"admin_data": _admin_data(admin, mosque), "reason": trimmed},
    )
    await db.commit()
    logger.info(f"Admin {admin_id} removed from mosque {admin.mosque_id}")

    try:
        await send_admin_removed(
            to_email=admin.email,
            admin_name=admin.name,
            mosque_name=mosque.name if mosque else "the mosque",
            reason=trimmed,
        )
    except Exception as e:
        logger.error(f"Failed to send removal email: {e}", exc_info=True)

    return admin


async def allow_reapplication(
    db: AsyncSession,
    admin_id: str,
    actor: Actor,
    notes: str | None = None,
) -> MosqueAdmin:
    """
    Let a rejected administrator apply again.

    Raises:
        AdminNotFoundError: If the administrator doesn't exist
        InvalidAdminStateError: If the record is not rejected
        AdminServiceError: AUTO_BANNED at or past the rejection threshold,
            REAPPLICATION_ALREADY_ALLOWED if already eligible
    """
    logger.info(f"Super admin {actor.id} allowing reapplication for admin {admin_id}")

    admin = await _get_admin_or_raise(db, admin_id)

    if admin.status != AdminStatus.REJECTED:
        raise InvalidAdminStateError(
            f"Only rejected admins can be allowed to reapply (current status: {admin.status.value})."
        )

    try:
        lifecycle.ensure_reapplication_allowed(admin.rejection_count, admin.can_reapply)
    except LifecycleRuleError as e:
        logger.warning(f"Reapplication refused for admin {admin_id}: {e.code}")
        raise _from_rule_error(e) from e

    admin.can_reapply = True
    await db.flush()

    await record_action(
        db,
        AuditActionType.REAPPLICATION_ALLOWED,
        actor,
        TargetType.ADMIN,
        target_id=str(admin.id),
        target_name=admin.name,
        details={
            "admin_data": _admin_data(admin),
            "notes": notes,
            "rejection_count": admin.rejection_count,
        },
    )
    await db.commit()
    logger.info(f"Admin {admin_id} may now reapply")

    try:
        await send_reapplication_allowed(to_email=admin.email, admin_name=admin.name)
    except Exception as e:
        logger.error(f"Failed to send reapplication email: {e}", exc_info=True)

    return admin


# ============================================
# Assign / Delete mosque
# ============================================


async def assign_admin(
    db: AsyncSession,
    mosque_id: str,
    actor: Actor,
    *,
    name: str,
    email: str,
    phone: str,
    password: str,
    notes: str | None = None,
) -> MosqueAdmin:
    """
    Create an approved administrator for a mosque directly.

    Raises:
        AdminServiceError: INVALID_ASSIGNMENT on bad input
        MosqueNotFoundError: If the mosque doesn't exist
        AdminAlreadyExistsError: If the mosque already has an approved admin
        EmailAlreadyExistsError: If the email belongs to another admin
        PhoneAlreadyExistsError: If the phone belongs to another admin
    """
    logger.info(f"Super admin {actor.id} assigning admin to mosque {mosque_id}")

    try:
        lifecycle.validate_assignment(name, email, phone, password)
    except LifecycleRuleError as e:
        raise _from_rule_error(e) from e

    mosque = await _get_mosque_or_raise(db, mosque_id)

    existing = await repository.get_approved_for_mosque(db, mosque.id)
    if existing:
        raise AdminAlreadyExistsError(existing)

    if await repository.get_by_email(db, email):
        raise EmailAlreadyExistsError()
    if await repository.get_by_phone(db, phone):
        raise PhoneAlreadyExistsError()

    admin = await repository.create(
        db,
        MosqueAdmin(
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone.strip(),
            password_hash=hash_password(password),
            mosque_id=mosque.id,
            verification_code_used=mosque.verification_code,
            status=AdminStatus.APPROVED,
            approved_at=datetime.now(UTC),
            super_admin_notes=notes or "Assigned directly by super admin",
            rejection_count=0,
            can_reapply=False,
            previous_mosques=[],
        ),
    )

    await record_action(
        db,
        AuditActionType.ADMIN_ASSIGNED,
        actor,
        TargetType.ADMIN,
        target_id=str(admin.id),
        target_name=admin.name,
        details={"admin_data": _admin_data(admin, mosque), "notes": notes},
    )
    await db.commit()
    logger.info(f"Assigned admin {admin.id} to mosque {mosque.id}")

    try:
        await send_admin_approved(
            to_email=admin.email,
            admin_name=admin.name,
            mosque_name=mosque.name,
            notes=notes,
        )
    except Exception as e:
        logger.error(f"Failed to send assignment email: {e}", exc_info=True)

    return admin


async def delete_mosque(
    db: AsyncSession,
    mosque_id: str,
    actor: Actor,
    reason: str,
) -> tuple[Mosque, int]:
    """
    Delete a mosque.

    Its pending and approved administrators are marked ``mosque_deleted``
    and keep the mosque's name and location.

    Returns:
        Tuple of (deleted mosque, number of administrators affected)
    """
    logger.info(f"Super admin {actor.id} deleting mosque {mosque_id}")

    try:
        trimmed = lifecycle.validate_deletion_reason(reason)
    except LifecycleRuleError as e:
        raise _from_rule_error(e) from e

    mosque = await _get_mosque_or_raise(db, mosque_id)

    affected = await repository.mark_mosque_deleted(db, mosque.id, mosque.name, mosque.location)

    await record_action(
        db,
        AuditActionType.MOSQUE_DELETED,
        actor,
        TargetType.MOSQUE,
        target_id=str(mosque.id),
        target_name=mosque.name,
        details={
            "mosque_data": {
                "name": mosque.name,
                "location": mosque.location,
                "contact_email": mosque.contact_email,
                "contact_phone": mosque.contact_phone,
            },
            "reason": trimmed,
            "affected_admins": affected,
        },
    )
    await MosqueRepository.delete(db, mosque)
    await db.commit()

    logger.info(f"Mosque {mosque_id} deleted, {affected} admin record(s) detached")
    return mosque, affected


# ============================================
# Applications
# ============================================


def _applicant_actor(admin: MosqueAdmin) -> Actor:
    return Actor(id=str(admin.id), type=PerformerType.ADMIN, email=admin.email, name=admin.name)


def _previously_rejected(admin: MosqueAdmin, field: str) -> AdminServiceError:
    if admin.can_reapply:
        message = (
            "Your previous application was rejected. "
            "Request reapplication with your existing account instead."
        )
    else:
        message = f"This {field} is not eligible for registration."
    return AdminServiceError(
        message=message,
        error_code="PREVIOUSLY_REJECTED",
        status_code=403,
        details={
            "rejection_info": {
                "rejection_count": admin.rejection_count,
                "can_reapply": admin.can_reapply,
                "rejection_reason": admin.rejection_reason,
            }
        },
    )


async def _ensure_open_for_application(
    db: AsyncSession,
    mosque: Mosque,
    verification_code: str,
    applicant_id: str | None = None,
) -> None:
    """
    Raises:
        AdminServiceError: INVALID_VERIFICATION_CODE, VERIFICATION_CODE_EXPIRED
            or PENDING_APPLICATION_EXISTS
        AdminAlreadyExistsError: If the mosque already has an approved admin
    """
    try:
        lifecycle.check_verification_code(
            mosque.verification_code, mosque.verification_code_expires, verification_code
        )
    except LifecycleRuleError as e:
        logger.warning(f"Application for mosque {mosque.id} refused: {e.code}")
        raise _from_rule_error(e) from e

    existing = await repository.get_approved_for_mosque(db, mosque.id)
    if existing:
        raise AdminAlreadyExistsError(existing)

    pending = await repository.get_pending_for_mosque(db, mosque.id)
    if pending and pending.id != applicant_id:
        raise AdminServiceError(
            message="This mosque already has a pending admin request.",
            error_code="PENDING_APPLICATION_EXISTS",
            status_code=409,
        )


async def register_application(
    db: AsyncSession,
    *,
    name: str,
    email: str,
    phone: str,
    password: str,
    mosque_id: str,
    verification_code: str,
    notes: str | None = None,
) -> MosqueAdmin:
    """
    Register a pending application to administer a mosque.

    The applicant must present the mosque's current verification code.
    Emails and phone numbers that belong to a rejected record are refused;
    those applicants reapply through ``request_reapplication``.

    Raises:
        AdminServiceError: INVALID_APPLICATION, PREVIOUSLY_REJECTED,
            INVALID_VERIFICATION_CODE, VERIFICATION_CODE_EXPIRED or
            PENDING_APPLICATION_EXISTS
        EmailAlreadyExistsError / PhoneAlreadyExistsError: Duplicate contact details
        MosqueNotFoundError: If the mosque doesn't exist
        AdminAlreadyExistsError: If the mosque already has an approved admin
    """
    logger.info(f"Admin application for mosque {mosque_id} from {email}")

    try:
        lifecycle.validate_assignment(name, email, phone, password, code="INVALID_APPLICATION")
    except LifecycleRuleError as e:
        raise _from_rule_error(e) from e

    by_email = await repository.get_by_email(db, email)
    if by_email:
        if by_email.status == AdminStatus.REJECTED:
            raise _previously_rejected(by_email, "email address")
        raise EmailAlreadyExistsError()

    by_phone = await repository.get_by_phone(db, phone)
    if by_phone:
        if by_phone.status == AdminStatus.REJECTED:
            raise _previously_rejected(by_phone, "phone number")
        raise PhoneAlreadyExistsError()

    mosque = await _get_mosque_or_raise(db, mosque_id)
    await _ensure_open_for_application(db, mosque, verification_code)

    admin = await repository.create(
        db,
        MosqueAdmin(
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone.strip(),
            password_hash=hash_password(password),
            mosque_id=mosque.id,
            verification_code_used=verification_code.strip().upper(),
            application_notes=(notes or "").strip() or None,
            status=AdminStatus.PENDING,
            rejection_count=0,
            can_reapply=False,
            previous_mosques=[],
        ),
    )

    await record_action(
        db,
        AuditActionType.ADMIN_REGISTERED,
        _applicant_actor(admin),
        TargetType.ADMIN,
        target_id=str(admin.id),
        target_name=admin.name,
        details={"admin_data": _admin_data(admin, mosque)},
    )
    await db.commit()
    logger.info(f"Registered pending admin {admin.id} for mosque {mosque.id}")
    return admin


async def request_reapplication(
    db: AsyncSession,
    *,
    email: str,
    password: str,
    mosque_id: str,
    verification_code: str,
    reason: str,
) -> MosqueAdmin:
    """
    Move a rejected administrator whose reapplication was allowed back to
    pending, for the same mosque or a different one.

    The applicant signs the request with the password of their existing
    record. ``can_reapply`` is cleared so a further rejection needs a fresh
    allowance.

    Raises:
        AdminServiceError: INVALID_REASON, INVALID_CREDENTIALS, AUTO_BANNED,
            REAPPLICATION_NOT_ALLOWED, INVALID_VERIFICATION_CODE,
            VERIFICATION_CODE_EXPIRED or PENDING_APPLICATION_EXISTS
        InvalidAdminStateError: If the record is not rejected
        MosqueNotFoundError: If the mosque doesn't exist
        AdminAlreadyExistsError: If the mosque already has an approved admin
    """
    try:
        trimmed = lifecycle.validate_reapplication_reason(reason)
    except LifecycleRuleError as e:
        raise _from_rule_error(e) from e

    admin = await repository.get_by_email(db, email)
    if not admin or not verify_password(password, admin.password_hash):
        logger.warning(f"Reapplication with invalid credentials for {email}")
        raise AdminServiceError(
            message="Invalid email or password.",
            error_code="INVALID_CREDENTIALS",
            status_code=401,
        )

    logger.info(f"Admin {admin.id} requesting reapplication to mosque {mosque_id}")

    if lifecycle.is_auto_banned(admin.rejection_count):
        raise AdminServiceError(
            message=(
                f"This admin has been rejected {admin.rejection_count} times "
                "and cannot reapply."
            ),
            error_code="AUTO_BANNED",
            status_code=403,
        )
    if admin.status == AdminStatus.REJECTED and not admin.can_reapply:
        raise AdminServiceError(
            message="You are not allowed to reapply at this time.",
            error_code="REAPPLICATION_NOT_ALLOWED",
            status_code=403,
            details={"rejection_count": admin.rejection_count},
        )
    _ensure_transition(admin, LifecycleState.PENDING)

    mosque = await _get_mosque_or_raise(db, mosque_id)
    await _ensure_open_for_application(db, mosque, verification_code, applicant_id=admin.id)

    before = {"status": admin.status.value, "mosque_id": admin.mosque_id}
    admin.status = AdminStatus.PENDING
    admin.mosque_id = mosque.id
    admin.verification_code_used = verification_code.strip().upper()
    admin.can_reapply = False
    admin.application_notes = f"REAPPLICATION: {trimmed}"
    admin.deleted_mosque_name = None
    admin.deleted_mosque_location = None
    await db.flush()

    await record_action(
        db,
        AuditActionType.REAPPLICATION_SUBMITTED,
        _applicant_actor(admin),
        TargetType.ADMIN,
        target_id=str(admin.id),
        target_name=admin.name,
        details={
            "admin_data": _admin_data(admin, mosque),
            "before_data": before,
            "reason": trimmed,
        },
    )
    await db.commit()
    logger.info(f"Admin {admin.id} reapplied to mosque {mosque.id}")
    return admin


# ============================================
# Mosque registration
# ============================================


async def create_mosque(
    db: AsyncSession,
    actor: Actor,
    *,
    name: str,
    location: str,
    description: str | None = None,
    contact_phone: str | None = None,
    contact_email: str | None = None,
    admin_instructions: str | None = None,
    prayer_times: dict[str, Any] | None = None,
) -> Mosque:
    """
    Register a mosque with a fresh verification code.

    Raises:
        AdminServiceError: INVALID_MOSQUE if name or location is blank
    """
    if not (name or "").strip() or not (location or "").strip():
        raise AdminServiceError(
            message="Mosque name and location are required.",
            error_code="INVALID_MOSQUE",
            status_code=400,
        )

    mosque = await MosqueRepository.create(
        db,
        name=name.strip(),
        location=location.strip(),
        description=description,
        contact_phone=contact_phone,
        contact_email=contact_email,
        admin_instructions=admin_instructions,
        prayer_times=prayer_times,
    )

    await record_action(
        db,
        AuditActionType.MOSQUE_CREATED,
        actor,
        TargetType.MOSQUE,
        target_id=str(mosque.id),
        target_name=mosque.name,
        details={
            "mosque_data": {
                "name": mosque.name,
                "location": mosque.location,
                "contact_email": mosque.contact_email,
                "contact_phone": mosque.contact_phone,
            }
        },
    )
    await db.commit()
    logger.info(f"Super admin {actor.id} created mosque {mosque.id}")
    return mosque


# ============================================
# Mosque details
# ============================================


async def update_mosque(
    db: AsyncSession,
    mosque_id: str,
    actor: Actor,
    changes: dict[str, Any],
) -> Mosque:
    """
    Update mosque details and/or prayer times.

    Args:
        changes: Only the fields to change; ``prayer_times`` is a partial mapping
    """
    mosque = await _get_mosque_or_raise(db, mosque_id)
    before = {key: getattr(mosque, key) for key in changes}

    await MosqueRepository.update(db, mosque, **dict(changes))

    if set(changes) == {"prayer_times"}:
        action, target_type = AuditActionType.PRAYER_TIMES_UPDATED, TargetType.PRAYER_TIMES
    else:
        action, target_type = AuditActionType.MOSQUE_UPDATED, TargetType.MOSQUE

    await record_action(
        db,
        action,
        actor,
        target_type,
        target_id=str(mosque.id),
        target_name=mosque.name,
        details={
            "mosque_data": {"name": mosque.name, "location": mosque.location},
            "before_data": before,
            "after_data": changes,
        },
    )
    await db.commit()
    await db.refresh(mosque)
    logger.info(f"Super admin {actor.id} updated mosque {mosque_id}")
    return mosque


# ============================================
# Verification codes
# ============================================


async def regenerate_verification_code(
    db: AsyncSession,
    mosque_id: str,
    actor: Actor,
    expiry_days: int | None = None,
) -> Mosque:
    """Replace a mosque's verification code."""
    mosque = await _get_mosque_or_raise(db, mosque_id)
    old_code = mosque.verification_code

    await MosqueRepository.regenerate_code(db, mosque, expiry_days)

    await record_action(
        db,
        AuditActionType.VERIFICATION_CODE_REGENERATED,
        actor,
        TargetType.VERIFICATION_CODE,
        target_id=str(mosque.id),
        target_name=mosque.name,
        details={
            "mosque_data": {"name": mosque.name, "location": mosque.location},
            "before_data": {"verification_code": old_code},
            "after_data": {"verification_code": mosque.verification_code},
        },
    )
    await db.commit()
    return mosque


async def get_expiring_codes(db: AsyncSession, days_ahead: int = 7) -> list[Mosque]:
    """Mosques whose code has expired or expires within ``days_ahead`` days."""
    before = datetime.now(UTC) + timedelta(days=days_ahead)
    return await MosqueRepository.get_expiring_codes(db, before)
