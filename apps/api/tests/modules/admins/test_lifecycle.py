"""
Tests for administrator lifecycle rules.
"""

from datetime import UTC, datetime, timedelta

import pytest

from app.modules.admins.lifecycle import (
    AUTO_BAN_THRESHOLD,
    LifecycleRuleError,
    LifecycleState,
    apply_rejection,
    can_allow_reapplication,
    can_transition,
    check_verification_code,
    ensure_reapplication_allowed,
    ensure_transition,
    is_auto_banned,
    lifecycle_state,
    validate_assignment,
    validate_deletion_reason,
    validate_reapplication_reason,
    validate_reason,
)


# ============================================
# State machine
# ============================================


@pytest.mark.parametrize(
    "current,target",
    [
        (LifecycleState.PENDING, LifecycleState.APPROVED),
        (LifecycleState.PENDING, LifecycleState.REJECTED),
        (LifecycleState.APPROVED, LifecycleState.ADMIN_REMOVED),
        (LifecycleState.REJECTED, LifecycleState.REJECTED),
        (LifecycleState.REJECTED, LifecycleState.ELIGIBLE_FOR_REAPPLICATION),
        (LifecycleState.ELIGIBLE_FOR_REAPPLICATION, LifecycleState.PENDING),
    ],
)
def test_valid_transitions(current, target):
    assert can_transition(current, target)
    ensure_transition(current, target)


@pytest.mark.parametrize(
    "current,target",
    [
        (LifecycleState.APPROVED, LifecycleState.REJECTED),
        (LifecycleState.APPROVED, LifecycleState.APPROVED),
        (LifecycleState.ADMIN_REMOVED, LifecycleState.APPROVED),
        (LifecycleState.MOSQUE_DELETED, LifecycleState.PENDING),
        (LifecycleState.PENDING, LifecycleState.ADMIN_REMOVED),
    ],
)
def test_invalid_transitions(current, target):
    assert not can_transition(current, target)

    with pytest.raises(LifecycleRuleError) as exc_info:
        ensure_transition(current, target)

    assert exc_info.value.code == "INVALID_ADMIN_STATE"


def test_rejected_with_reapply_flag_is_eligible():
    assert lifecycle_state("rejected", can_reapply=True) is LifecycleState.ELIGIBLE_FOR_REAPPLICATION
    assert lifecycle_state("rejected") is LifecycleState.REJECTED
    assert lifecycle_state("approved", can_reapply=True) is LifecycleState.APPROVED


# ============================================
# Input validation
# ============================================


def test_validate_reason_trims():
    assert validate_reason("  Could not verify  ") == "Could not verify"


@pytest.mark.parametrize("reason", [None, "", "         ", "123456789", "  12345678  "])
def test_validate_reason_too_short(reason):
    with pytest.raises(LifecycleRuleError) as exc_info:
        validate_reason(reason, "removal")

    assert exc_info.value.code == "INVALID_REASON"
    assert "removal reason" in exc_info.value.message


def test_validate_reason_exactly_minimum():
    assert validate_reason("1234567890") == "1234567890"


def test_validate_deletion_reason():
    assert validate_deletion_reason(" Duplicate ") == "Duplicate"

    with pytest.raises(LifecycleRuleError):
        validate_deletion_reason("   ")


@pytest.mark.parametrize(
    "fields,message",
    [
        (("", "a@b.c", "+233", "password1"), "Admin name is required."),
        (("Ali", " ", "+233", "password1"), "Admin email is required."),
        (("Ali", "ali@example", "+233", "password1"), "Enter a valid email address."),
        (("Ali", "a@b.c", None, "password1"), "Admin phone number is required."),
        (("Ali", "a@b.c", "+233", ""), "A password is required."),
        (("Ali", "a@b.c", "+233", "short"), "Password must be at least 8 characters."),
    ],
)
def test_validate_assignment_rejects_first_bad_field(fields, message):
    with pytest.raises(LifecycleRuleError) as exc_info:
        validate_assignment(*fields)

    assert exc_info.value.code == "INVALID_ASSIGNMENT"
    assert exc_info.value.message == message


def test_validate_assignment_password_mismatch():
    with pytest.raises(LifecycleRuleError) as exc_info:
        validate_assignment("Ali", "a@b.c", "+233", "password1", "password2")

    assert exc_info.value.message == "Passwords do not match."


def test_validate_assignment_accepts_valid_input():
    validate_assignment("Ali", "a@b.c", "+233", "password1", "password1")


# ============================================
# Rejection and reapplication
# ============================================


def test_apply_rejection_increments_and_appends():
    when = datetime(2025, 5, 1, tzinfo=UTC)
    history = [{"mosque_id": "m0", "rejected_at": "2025-01-01T00:00:00+00:00"}]

    outcome = apply_rejection(1, history, "m1", "  Could not verify identity ", rejected_at=when)

    assert outcome.rejection_count == 2
    assert outcome.can_reapply is False
    assert outcome.rejection_reason == "Could not verify identity"
    assert outcome.previous_mosques == [
        history[0],
        {
            "mosque_id": "m1",
            "rejected_at": when.isoformat(),
            "rejection_reason": "Could not verify identity",
        },
    ]
    assert len(history) == 1


def test_apply_rejection_reaches_auto_ban():
    outcome = apply_rejection(AUTO_BAN_THRESHOLD - 1, None, "m1", "Documents were forged")

    assert outcome.rejection_count == AUTO_BAN_THRESHOLD
    assert outcome.auto_banned is True


def test_apply_rejection_validates_reason():
    with pytest.raises(LifecycleRuleError):
        apply_rejection(0, [], "m1", "nope")


@pytest.mark.parametrize(
    "count,banned", [(0, False), (2, False), (3, True), (7, True)]
)
def test_is_auto_banned(count, banned):
    assert is_auto_banned(count) is banned


def test_ensure_reapplication_allowed():
    ensure_reapplication_allowed(1, False)
    assert can_allow_reapplication(1, False)

    with pytest.raises(LifecycleRuleError) as banned:
        ensure_reapplication_allowed(3, False)
    assert banned.value.code == "AUTO_BANNED"
    assert banned.value.message == "This admin has been rejected 3 times and cannot reapply."

    with pytest.raises(LifecycleRuleError) as already:
        ensure_reapplication_allowed(2, True)
    assert already.value.code == "REAPPLICATION_ALREADY_ALLOWED"
    assert not can_allow_reapplication(2, True)


def test_auto_ban_wins_over_reapply_flag():
    assert not can_allow_reapplication(3, True)

    with pytest.raises(LifecycleRuleError) as exc_info:
        ensure_reapplication_allowed(3, True)

    assert exc_info.value.code == "AUTO_BANNED"


def test_validate_assignment_uses_given_code():
    with pytest.raises(LifecycleRuleError) as exc_info:
        validate_assignment("", "a@b.c", "+233", "password1", code="INVALID_APPLICATION")

    assert exc_info.value.code == "INVALID_APPLICATION"


def test_reapplication_reason_minimum_length():
    with pytest.raises(LifecycleRuleError) as exc_info:
        validate_reapplication_reason("I have new documents now.")

    assert exc_info.value.code == "INVALID_REASON"
    reason = "  " + "I have since joined the mosque committee and can be vouched for. " + "  "
    assert validate_reapplication_reason(reason) == reason.strip()


# ============================================
# Verification codes
# ============================================

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def test_verification_code_matches_ignoring_case_and_whitespace():
    check_verification_code("A1B2C3D4E5F60718", NOW + timedelta(days=1), " a1b2c3d4e5f60718 ", NOW)
    check_verification_code("A1B2C3D4E5F60718", None, "A1B2C3D4E5F60718", NOW)


def test_wrong_verification_code():
    with pytest.raises(LifecycleRuleError) as exc_info:
        check_verification_code("A1B2C3D4E5F60718", None, "FFFFFFFFFFFFFFFF", NOW)

    assert exc_info.value.code == "INVALID_VERIFICATION_CODE"


def test_expired_verification_code():
    with pytest.raises(LifecycleRuleError) as exc_info:
        check_verification_code(
            "A1B2C3D4E5F60718", NOW - timedelta(minutes=1), "A1B2C3D4E5F60718", NOW
        )

    assert exc_info.value.code == "VERIFICATION_CODE_EXPIRED"
