"""
Tests for the lifecycle transition engine and console session.

These tests verify:
- Local validation failures never reach the backend
- Successful transitions trigger a full refresh
- Backend error codes are mapped to operator messages
- Auto-banned records cannot be made eligible for reapplication
- Selection toggling operates on the filtered set
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from app.modules.admins.lifecycle import apply_rejection
from app.modules.console.errors import (
    AutoBannedError,
    ConsoleConflictError,
    ConsoleRequestError,
    ConsoleTransientError,
    ConsoleValidationError,
)
from app.modules.console.filters import AdminPresence, ViewQuery
from app.modules.console.records import (
    ApprovedAdminRecord,
    MosqueRecord,
    PendingAdminRecord,
    RecordSnapshot,
    RejectedAdminRecord,
    parse_records,
)
from app.modules.console.session import ConsoleSession, SelectionState
from app.modules.console.transitions import (
    AssignAdminForm,
    TransitionAction,
    TransitionEngine,
    available_actions,
    rejected_actions,
)


class FakeDirectory:
    """In-memory stand-in for the directory backend."""

    def __init__(self, mosques, pending=(), approved=(), rejected=()):
        self.mosques = list(mosques)
        self.pending = list(pending)
        self.approved = list(approved)
        self.rejected = list(rejected)
        self.calls: list[tuple] = []
        self.fetches = 0

    async def fetch_snapshot(self) -> RecordSnapshot:
        self.fetches += 1
        return RecordSnapshot(
            mosques=parse_records(MosqueRecord, self.mosques),
            pending=parse_records(PendingAdminRecord, self.pending),
            approved=parse_records(ApprovedAdminRecord, self.approved),
            rejected=parse_records(RejectedAdminRecord, self.rejected),
        )

    def _take_pending(self, admin_id):
        admin = next(a for a in self.pending if a["id"] == admin_id)
        self.pending.remove(admin)
        return admin

    async def approve_admin(self, admin_id, notes=None):
        self.calls.append(("approve", admin_id))
        admin = self._take_pending(admin_id)
        self.approved.append({**admin, "status": "approved", "approved_at": "2025-06-01T00:00:00Z"})
        return {"id": admin_id, "status": "approved", "message": f"{admin['name']} approved."}

    async def reject_admin(self, admin_id, reason):
        self.calls.append(("reject", admin_id, reason))
        admin = self._take_pending(admin_id)
        outcome = apply_rejection(
            admin.get("rejection_count", 0),
            admin.get("previous_mosque_ids", []),
            admin["mosque_id"],
            reason,
            rejected_at=datetime(2025, 6, 1, tzinfo=UTC),
        )
        self.rejected = [r for r in self.rejected if r["id"] != admin_id]
        self.rejected.append(
            {
                **admin,
                "rejection_count": outcome.rejection_count,
                "can_reapply": outcome.can_reapply,
                "previous_mosque_ids": outcome.previous_mosques,
            }
        )
        return {"id": admin_id, "status": "rejected", "message": "Rejected."}

    async def remove_admin(self, admin_id, reason):
        self.calls.append(("remove", admin_id, reason))
        for admin in self.approved:
            if admin["id"] == admin_id:
                admin["status"] = "admin_removed"
        return {"id": admin_id, "status": "admin_removed"}

    async def allow_reapplication(self, admin_id, notes=None):
        self.calls.append(("allow_reapplication", admin_id))
        return {"id": admin_id, "status": "rejected"}

    async def assign_admin(self, mosque_id, payload):
        self.calls.append(("assign", mosque_id, payload))
        return {"id": "new", "status": "approved"}

    async def delete_mosque(self, mosque_id, reason):
        self.calls.append(("delete", mosque_id, reason))
        self.mosques = [m for m in self.mosques if m["id"] != mosque_id]
        return {"id": mosque_id, "name": "Deleted", "affected_admins": 0, "message": "Deleted."}


@pytest.fixture
def directory(mosque_payload, pending_payload, approved_payload, rejected_payload):
    return FakeDirectory(
        mosques=[
            mosque_payload("m1", "Masjid Al-Noor", "Accra"),
            mosque_payload("m2", "Central Mosque", "Kumasi"),
            mosque_payload("m3", "Baitul Rahman", "Tamale"),
        ],
        approved=[approved_payload("a1", "Yusuf Mensah", "m1")],
        pending=[
            pending_payload("p1", "Ahmed Bello", {"id": "m2", "name": "Central Mosque"}),
            {
                **pending_payload("p2", "Bilal Owusu", "m3"),
                "rejection_count": 2,
                "previous_mosque_ids": [
                    {"mosque_id": "m1", "rejection_reason": "Could not verify identity"},
                    {"mosque_id": "m2", "rejection_reason": "Verification code mismatch"},
                ],
            },
        ],
    )


@pytest_asyncio.fixture
async def session(directory):
    session = ConsoleSession(directory)
    await session.refresh()
    return session


@pytest.fixture
def engine(directory, session):
    return TransitionEngine(directory, session)


# ============================================
# Scenarios
# ============================================


@pytest.mark.asyncio
async def test_approving_pending_admin_surfaces_them_on_refresh(engine, directory, session):
    fetches_before = directory.fetches

    result = await engine.approve("p1")

    assert result.success is True
    assert result.message == "Ahmed Bello approved."
    assert directory.fetches == fetches_before + 1

    view = session.find_view("m2")
    assert view.has_approved_admin is True
    assert view.approved_admin.name == "Ahmed Bello"
    assert view.pending_admins == ()


@pytest.mark.asyncio
async def test_third_rejection_auto_bans(engine, directory, session):
    result = await engine.reject("p2", "  Documents were forged again  ")

    assert result.success is True
    assert directory.calls[-1] == ("reject", "p2", "Documents were forged again")

    bilal = session.snapshot.rejected[0]
    assert bilal.rejection_count == 3
    assert bilal.can_reapply is False
    assert bilal.auto_banned is True
    assert rejected_actions(bilal) == set()

    calls_before = len(directory.calls)
    refused = await engine.allow_reapplication(bilal)

    assert refused.success is False
    assert isinstance(refused.error, AutoBannedError)
    assert len(directory.calls) == calls_before


# ============================================
# Local validation
# ============================================


@pytest.mark.asyncio
@pytest.mark.parametrize("reason", ["", "   ", "too short", "  short   "])
async def test_reject_short_reason_is_not_submitted(engine, directory, reason):
    result = await engine.reject("p1", reason)

    assert result.success is False
    assert isinstance(result.error, ConsoleValidationError)
    assert result.error_code == "INVALID_REASON"
    assert directory.calls == []


@pytest.mark.asyncio
async def test_remove_requires_reason_and_approved_admin(engine, directory, session):
    short = await engine.remove(session.find_view("m1"), "bad")
    no_admin = await engine.remove(session.find_view("m2"), "Long enough reason here")

    assert short.success is False
    assert no_admin.success is False
    assert directory.calls == []


@pytest.mark.asyncio
async def test_remove_submits_trimmed_reason(engine, directory, session):
    result = await engine.remove(session.find_view("m1"), "  Stopped responding to members  ")

    assert result.success is True
    assert directory.calls == [("remove", "a1", "Stopped responding to members")]
    assert session.find_view("m1").has_approved_admin is False


@pytest.mark.asyncio
async def test_allow_reapplication_already_allowed_is_refused(engine, directory):
    record = RejectedAdminRecord.model_validate(
        {"id": "r9", "name": "Musa", "rejection_count": 1, "can_reapply": True}
    )

    result = await engine.allow_reapplication(record)

    assert result.success is False
    assert result.error_code == "REAPPLICATION_ALREADY_ALLOWED"
    assert directory.calls == []


@pytest.mark.asyncio
async def test_allow_reapplication_below_threshold_is_submitted(engine, directory):
    record = RejectedAdminRecord.model_validate(
        {"id": "r9", "name": "Musa", "rejection_count": 2, "can_reapply": False}
    )

    result = await engine.allow_reapplication(record)

    assert result.success is True
    assert result.message == "Musa can now reapply."
    assert directory.calls == [("allow_reapplication", "r9")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "form,message",
    [
        (AssignAdminForm(email="a@b.co", phone="1", password="password1"), "Admin name is required."),
        (AssignAdminForm(name="Ali", email="ali@example", phone="1", password="password1"),
         "Enter a valid email address."),
        (AssignAdminForm(name="Ali", email="a@b.co", phone="1", password="short"),
         "Password must be at least 8 characters."),
        (AssignAdminForm(name="Ali", email="a@b.co", phone="1", password="password1",
                         confirm_password="password2"), "Passwords do not match."),
    ],
)
async def test_assign_admin_validation(engine, directory, form, message):
    result = await engine.assign_admin("m2", form)

    assert result.success is False
    assert result.message == message
    assert directory.calls == []


@pytest.mark.asyncio
async def test_assign_admin_submits_normalized_payload(engine, directory):
    form = AssignAdminForm(
        name=" Ali Kamara ",
        email=" Ali@Example.COM ",
        phone="+233501112222",
        password="password1",
        confirm_password="password1",
    )

    result = await engine.assign_admin("m2", form)

    assert result.success is True
    assert directory.calls == [
        (
            "assign",
            "m2",
            {
                "admin_name": "Ali Kamara",
                "admin_email": "ali@example.com",
                "admin_phone": "+233501112222",
                "admin_password": "password1",
            },
        )
    ]


@pytest.mark.asyncio
async def test_delete_mosque_requires_reason(engine, directory, session):
    refused = await engine.delete_mosque("m3", "   ")
    deleted = await engine.delete_mosque("m3", "Duplicate listing")

    assert refused.success is False
    assert deleted.success is True
    assert session.find_view("m3") is None


# ============================================
# Backend errors
# ============================================


@pytest.mark.asyncio
async def test_approve_conflict_names_existing_admin(engine, directory):
    directory.approve_admin = AsyncMock(
        side_effect=ConsoleConflictError(
            "ignored",
            "ADMIN_ALREADY_EXISTS",
            status_code=409,
            details={"existing_admin": {"id": "a1", "name": "Yusuf Mensah"}},
        )
    )

    result = await engine.approve("p1")

    assert result.success is False
    assert result.message == "This mosque already has an approved admin: Yusuf Mensah"
    assert result.retryable is False
    directory.approve_admin.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "code,message",
    [
        ("EMAIL_ALREADY_EXISTS", "This email is already registered by another admin."),
        ("PHONE_ALREADY_EXISTS", "This phone number is already registered by another admin."),
        ("MOSQUE_NOT_FOUND", "Mosque not found."),
        ("SOMETHING_NEW", "Failed to assign admin. Please try again."),
    ],
)
async def test_assign_admin_error_mapping(engine, directory, code, message):
    directory.assign_admin = AsyncMock(side_effect=ConsoleConflictError("raw", code, 409))
    form = AssignAdminForm(name="Ali", email="ali@example.com", phone="1", password="password1")

    result = await engine.assign_admin("m2", form)

    assert result.message == message
    assert result.error_code == code


@pytest.mark.asyncio
async def test_assign_admin_request_rejected_keeps_backend_text(engine, directory):
    directory.assign_admin = AsyncMock(
        side_effect=ConsoleRequestError("value is not a valid email address", 422)
    )
    fetches_before = directory.fetches
    form = AssignAdminForm(name="Ali", email="ali@example.com", phone="1", password="password1")

    result = await engine.assign_admin("m2", form)

    assert result.success is False
    assert result.message == "value is not a valid email address"
    assert result.error_code == "REQUEST_REJECTED"
    assert result.retryable is False
    assert directory.fetches == fetches_before


@pytest.mark.asyncio
async def test_transient_error_keeps_message_and_skips_refresh(engine, directory):
    directory.approve_admin = AsyncMock(side_effect=ConsoleTransientError("Connection reset"))
    fetches_before = directory.fetches

    result = await engine.approve("p1")

    assert result.success is False
    assert result.message == "Connection reset"
    assert result.retryable is True
    assert directory.fetches == fetches_before


# ============================================
# Action availability
# ============================================


@pytest.mark.asyncio
async def test_available_actions(session):
    assert available_actions(session.find_view("m1")) == {
        TransitionAction.REMOVE,
        TransitionAction.DELETE_MOSQUE,
    }
    assert available_actions(session.find_view("m2")) == {
        TransitionAction.ASSIGN_ADMIN,
        TransitionAction.DELETE_MOSQUE,
        TransitionAction.APPROVE,
        TransitionAction.REJECT,
    }


# ============================================
# Session selection
# ============================================


def test_select_one_toggles():
    selection = SelectionState()

    selection.select_one("m1")
    assert "m1" in selection
    selection.select_one("m1")
    assert "m1" not in selection


def test_select_all_toggles_filtered_set():
    selection = SelectionState()

    selection.select_all(["m1", "m2"])
    assert selection.selected == {"m1", "m2"}

    selection.select_all(["m1", "m2"])
    assert len(selection) == 0


def test_select_all_replaces_partial_selection():
    selection = SelectionState()
    selection.select_one("m1")

    selection.select_all(["m1", "m2"])

    assert selection.selected == {"m1", "m2"}


@pytest.mark.asyncio
async def test_session_selection_follows_filter(session):
    session.select_all_visible()
    assert session.selection.selected == {"m1", "m2", "m3"}

    visible = session.set_query(ViewQuery(admin_presence=AdminPresence.HAS_ADMIN))

    assert [v.id for v in visible] == ["m1"]
    assert session.selection.selected == {"m1"}
