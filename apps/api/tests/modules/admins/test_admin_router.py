"""
Tests for the super admin router.

These tests verify the HTTP contract the console relies on:
- Service errors become ``{"detail": {"error", "message", ...}}``
- Request bodies reach the service unchanged
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import api_router
from app.core.auth import SUPER_ADMIN_ROLE, SuperAdminUser, get_current_super_admin
from app.core.database import get_db
from app.modules.admins.models import AdminStatus
from app.modules.admins.service import AdminAlreadyExistsError, AdminServiceError

SERVICE = "app.modules.admins.service"

SUPER_ADMIN = SuperAdminUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="ops@example.org",
    role=SUPER_ADMIN_ROLE,
    name="Directory Ops",
)


@pytest.fixture
def client():
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")

    async def override_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_current_super_admin] = lambda: SUPER_ADMIN

    with patch(
        "app.modules.admins.admin_router.check_rate_limit",
        new_callable=AsyncMock,
        return_value=True,
    ):
        yield TestClient(app)


def test_approve_conflict_returns_existing_admin(client):
    existing = SimpleNamespace(id="a1", name="Yusuf Mensah", email="yusuf@example.com")

    with patch(
        f"{SERVICE}.approve_admin",
        new_callable=AsyncMock,
        side_effect=AdminAlreadyExistsError(existing),
    ):
        response = client.put("/api/v1/superadmin/p1/approve")

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["error"] == "ADMIN_ALREADY_EXISTS"
    assert detail["message"] == "This mosque already has an approved admin: Yusuf Mensah"
    assert detail["existing_admin"]["name"] == "Yusuf Mensah"


def test_approve_passes_notes(client):
    approved = SimpleNamespace(id="p1", status=AdminStatus.APPROVED)

    with patch(f"{SERVICE}.approve_admin", new_callable=AsyncMock, return_value=approved) as mock:
        response = client.put(
            "/api/v1/superadmin/p1/approve", json={"super_admin_notes": "Verified by phone"}
        )

    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    args = mock.await_args.args
    assert args[1] == "p1"
    assert args[2].email == "ops@example.org"
    assert args[3] == "Verified by phone"


def test_reject_reports_auto_ban(client):
    rejected = SimpleNamespace(
        id="p1", status=AdminStatus.REJECTED, rejection_count=3, can_reapply=False
    )

    with patch(
        f"{SERVICE}.reject_admin",
        new_callable=AsyncMock,
        return_value=(rejected, "0123456789ABCDEF"),
    ):
        response = client.put(
            "/api/v1/superadmin/p1/reject", json={"reason": "Documents were forged"}
        )

    body = response.json()
    assert response.status_code == 200
    assert body["auto_banned"] is True
    assert body["new_verification_code"] == "0123456789ABCDEF"


def test_rule_error_maps_to_status(client):
    error = AdminServiceError(
        "This admin is already allowed to reapply.", "REAPPLICATION_ALREADY_ALLOWED", 409
    )

    with patch(f"{SERVICE}.allow_reapplication", new_callable=AsyncMock, side_effect=error):
        response = client.put("/api/v1/superadmin/r1/allow-reapplication")

    assert response.status_code == 409
    assert response.json()["detail"] == {
        "error": "REAPPLICATION_ALREADY_ALLOWED",
        "message": "This admin is already allowed to reapply.",
    }


def test_unexpected_error_is_internal(client):
    with patch(f"{SERVICE}.remove_admin", new_callable=AsyncMock, side_effect=RuntimeError("db")):
        response = client.put(
            "/api/v1/superadmin/admin/a1/remove", json={"reason": "Stopped responding to members"}
        )

    assert response.status_code == 500
    assert response.json()["detail"]["error"] == "INTERNAL_ERROR"


def test_delete_mosque_reads_reason_from_body(client):
    mosque = MagicMock(id="m1")
    mosque.name = "Old Masjid"

    with patch(
        f"{SERVICE}.delete_mosque", new_callable=AsyncMock, return_value=(mosque, 2)
    ) as mock:
        response = client.request(
            "DELETE", "/api/v1/superadmin/mosque/m1", json={"reason": "Duplicate listing"}
        )

    assert response.status_code == 200
    assert response.json() == {
        "id": "m1",
        "name": "Old Masjid",
        "affected_admins": 2,
        "message": 'Mosque "Old Masjid" deleted.',
    }
    assert mock.await_args.args[3] == "Duplicate listing"


def test_rate_limited_action(client):
    with patch(
        "app.modules.admins.admin_router.check_rate_limit",
        new_callable=AsyncMock,
        return_value=False,
    ):
        response = client.put("/api/v1/superadmin/p1/approve")

    assert response.status_code == 429
    assert response.json()["detail"]["error"] == "RATE_LIMIT_EXCEEDED"


def test_update_mosque_rejects_null_name(client):
    with patch(f"{SERVICE}.update_mosque", new_callable=AsyncMock) as mock:
        response = client.put("/api/v1/superadmin/mosque/m1", json={"name": None})

    assert response.status_code == 422
    mock.assert_not_awaited()


def test_create_mosque_returns_verification_code(client):
    created = SimpleNamespace(
        id="m9",
        name="Masjid Al-Huda",
        location="Tamale",
        description=None,
        verification_code="0123456789ABCDEF",
        verification_code_expires=datetime(2026, 11, 18, tzinfo=UTC),
        contact_phone=None,
        contact_email=None,
        admin_instructions=None,
        prayer_times={},
        created_at=datetime(2026, 10, 19, tzinfo=UTC),
        updated_at=datetime(2026, 10, 19, tzinfo=UTC),
    )

    with patch(f"{SERVICE}.create_mosque", new_callable=AsyncMock, return_value=created) as mock:
        response = client.post(
            "/api/v1/superadmin/mosques",
            json={"name": "Masjid Al-Huda", "location": "Tamale", "prayer_times": {"fajr": "05:00"}},
        )

    body = response.json()
    assert response.status_code == 201
    assert body["mosque"]["verification_code"] == "0123456789ABCDEF"
    assert body["message"] == 'Mosque "Masjid Al-Huda" created.'
    kwargs = mock.await_args.kwargs
    assert kwargs["name"] == "Masjid Al-Huda"
    assert kwargs["prayer_times"]["fajr"] == "05:00"


def test_create_mosque_requires_location(client):
    with patch(f"{SERVICE}.create_mosque", new_callable=AsyncMock) as mock:
        response = client.post("/api/v1/superadmin/mosques", json={"name": "Masjid Al-Huda"})

    assert response.status_code == 422
    mock.assert_not_awaited()
