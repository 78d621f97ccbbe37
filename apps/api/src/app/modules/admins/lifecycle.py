"""
Administrator Lifecycle Rules

Pure rules for moving an administrator between states. The console
pre-validates with these before submitting a transition and the service
enforces them again server-side, so both sides share one definition.

State machine:
    pending -> approved | rejected
    approved -> admin_removed
    rejected -> rejected (re-rejected, count + 1) | eligible_for_reapplication
    eligible_for_reapplication -> pending (new application)

Auto-ban: once ``rejection_count >= AUTO_BAN_THRESHOLD`` the record can never
be made eligible for reapplication again, whatever ``can_reapply`` says.
"""

import enum
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

MIN_REASON_LENGTH = 10
AUTO_BAN_THRESHOLD = 3
MIN_PASSWORD_LENGTH = 8
MIN_REAPPLICATION_REASON_LENGTH = 50
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class LifecycleState(str, enum.Enum):
    """States of the administrator lifecycle."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ELIGIBLE_FOR_REAPPLICATION = "eligible_for_reapplication"
    ADMIN_REMOVED = "admin_removed"
    MOSQUE_DELETED = "mosque_deleted"


VALID_LIFECYCLE_TRANSITIONS: dict[LifecycleState, set[LifecycleState]] = {
    LifecycleState.PENDING: {
        LifecycleState.APPROVED,
        LifecycleState.REJECTED,
    },
    LifecycleState.APPROVED: {
        LifecycleState.ADMIN_REMOVED,
    },
    LifecycleState.REJECTED: {
        LifecycleState.REJECTED,  # Re-rejected, count + 1
        LifecycleState.ELIGIBLE_FOR_REAPPLICATION,
    },
    LifecycleState.ELIGIBLE_FOR_REAPPLICATION: {
        LifecycleState.PENDING,  # New application
    },
    # Terminal states
    LifecycleState.ADMIN_REMOVED: set(),
    LifecycleState.MOSQUE_DELETED: set(),
}


class LifecycleRuleError(ValueError):
    """Raised when input or state violates a lifecycle rule."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


def lifecycle_state(status: str, can_reapply: bool = False) -> LifecycleState:
    """
    Map a stored record status onto a lifecycle state.

    A rejected record whose ``can_reapply`` flag is set is eligible for
    reapplication.
    """
    state = LifecycleState(status)
    if state is LifecycleState.REJECTED and can_reapply:
        return LifecycleState.ELIGIBLE_FOR_REAPPLICATION
    return state


def can_transition(current: LifecycleState, target: LifecycleState) -> bool:
    return target in VALID_LIFECYCLE_TRANSITIONS.get(current, set())


def ensure_transition(current: LifecycleState, target: LifecycleState) -> None:
    """
    Raises:
        LifecycleRuleError: If ``current -> target`` is not a valid transition
    """
    if not can_transition(current, target):
        valid = sorted(s.value for s in VALID_LIFECYCLE_TRANSITIONS.get(current, set()))
        raise LifecycleRuleError(
            "INVALID_ADMIN_STATE",
            f"Cannot move administrator from {current.value} to {target.value}. "
            f"Valid transitions: {valid}",
        )


# ============================================
# Input validation
# ============================================


def validate_reason(reason: str | None, action: str = "rejection") -> str:
    """
    Validate a rejection or removal reason.

    Returns:
        The trimmed reason

    Raises:
        LifecycleRuleError: If the trimmed reason is shorter than MIN_REASON_LENGTH
    """
    trimmed = (reason or "").strip()
    if len(trimmed) < MIN_REASON_LENGTH:
        raise LifecycleRuleError(
            "INVALID_REASON",
            f"Please provide a {action} reason of at least {MIN_REASON_LENGTH} characters.",
        )
    return trimmed


def validate_deletion_reason(reason: str | None) -> str:
    trimmed = (reason or "").strip()
    if not trimmed:
        raise LifecycleRuleError("INVALID_REASON", "Please provide a reason for deleting this mosque.")
    return trimmed


def validate_assignment(
    name: str | None,
    email: str | None,
    phone: str | None,
    password: str | None,
    confirm_password: str | None = None,
    *,
    code: str = "INVALID_ASSIGNMENT",
) -> None:
    """
    Shape checks for an administrator's details, used both when a super
    admin assigns one directly and when an applicant registers.

    Uniqueness of email and phone is checked by the service, not here.

    Raises:
        LifecycleRuleError: On the first failing field
    """
    if not (name or "").strip():
        raise LifecycleRuleError(code, "Admin name is required.")
    if not (email or "").strip():
        raise LifecycleRuleError(code, "Admin email is required.")
    if not EMAIL_PATTERN.match(email.strip()):
        raise LifecycleRuleError(code, "Enter a valid email address.")
    if not (phone or "").strip():
        raise LifecycleRuleError(code, "Admin phone number is required.")
    if not password:
        raise LifecycleRuleError(code, "A password is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise LifecycleRuleError(
            code,
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
        )
    if confirm_password is not None and password != confirm_password:
        raise LifecycleRuleError(code, "Passwords do not match.")


# ============================================
# Rejection and reapplication
# ============================================


def is_auto_banned(rejection_count: int) -> bool:
    return rejection_count >= AUTO_BAN_THRESHOLD


def can_allow_reapplication(rejection_count: int, can_reapply: bool) -> bool:
    """Whether "allow reapplication" may be offered for a rejected record."""
    return not is_auto_banned(rejection_count) and not can_reapply


def ensure_reapplication_allowed(rejection_count: int, can_reapply: bool) -> None:
    """
    Raises:
        LifecycleRuleError: AUTO_BANNED or REAPPLICATION_ALREADY_ALLOWED
    """
    if is_auto_banned(rejection_count):
        raise LifecycleRuleError(
            "AUTO_BANNED",
            f"This admin has been rejected {rejection_count} times and cannot reapply.",
        )
    if can_reapply:
        raise LifecycleRuleError(
            "REAPPLICATION_ALREADY_ALLOWED",
            "This admin is already allowed to reapply.",
        )


@dataclass(frozen=True)
class RejectionOutcome:
    """Field values of a record after one more rejection."""

    rejection_count: int
    can_reapply: bool
    previous_mosques: list[dict[str, Any]]
    rejection_reason: str
    rejection_date: datetime

    @property
    def auto_banned(self) -> bool:
        return is_auto_banned(self.rejection_count)


def apply_rejection(
    rejection_count: int,
    previous_mosques: list[dict[str, Any]] | None,
    mosque_id: str | None,
    reason: str,
    rejected_at: datetime | None = None,
) -> RejectionOutcome:
    """
    Compute the result of rejecting an administrator.

    The count goes up by exactly one, ``can_reapply`` is cleared and the
    mosque is appended to the history. Existing history entries are kept.
    """
    trimmed = validate_reason(reason)
    when = rejected_at or datetime.now(UTC)

    history = list(previous_mosques or [])
    history.append(
        {
            "mosque_id": mosque_id,
            "rejected_at": when.isoformat(),
            "rejection_reason": trimmed,
        }
    )

    return RejectionOutcome(
        rejection_count=rejection_count + 1,
        can_reapply=False,
        previous_mosques=history,
        rejection_reason=trimmed,
        rejection_date=when,
    )


def validate_reapplication_reason(reason: str | None) -> str:
    trimmed = (reason or "").strip()
    if len(trimmed) < MIN_REAPPLICATION_REASON_LENGTH:
        raise LifecycleRuleError(
            "INVALID_REASON",
            f"Reason for reapplication must be at least "
            f"{MIN_REAPPLICATION_REASON_LENGTH} characters.",
        )
    return trimmed


# ============================================
# Verification codes
# ============================================


def check_verification_code(
    expected: str,
    expires: datetime | None,
    supplied: str | None,
    now: datetime | None = None,
) -> None:
    """
    Check the code an applicant presented against the mosque's current code.

    Comparison ignores surrounding whitespace and case. A code with no
    expiry never expires.

    Raises:
        LifecycleRuleError: INVALID_VERIFICATION_CODE or VERIFICATION_CODE_EXPIRED
    """
    if (supplied or "").strip().upper() != expected.upper():
        raise LifecycleRuleError(
            "INVALID_VERIFICATION_CODE",
            "Invalid verification code for this mosque. "
            "Contact the mosque management to get the correct code.",
        )
    if expires is not None and (now or datetime.now(UTC)) > expires:
        raise LifecycleRuleError(
            "VERIFICATION_CODE_EXPIRED",
            "The verification code for this mosque has expired. "
            "Please contact the mosque management for a new code.",
        )
