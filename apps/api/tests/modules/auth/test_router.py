"""
Tests for super admin registration over HTTP.
"""

from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import UUID

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import api_router
from app.core.auth import SUPER_ADMIN_ROLE, SuperAdminUser, get_optional_super_admin
from app.core.database import get_db
from app.core.rate_limit import reset_memory_store
from app.modules.super_admins.service import SuperAdminServiceError

SERVICE = "app.modules.super_admins.service"

CREATOR = SuperAdminUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="ops@example.org",
    role=SUPER_ADMIN_ROLE,
    name="Directory Ops",
)

REGISTRATION = {"name": "Musa Ibrahim", "email": "musa@example.org", "password": "password1"}

REGISTERED = SimpleNamespace(
    id="s2",
    name="Musa Ibrahim",
    email="musa@example.org",
    is_active=True,
    created_at=datetime(2026, 10, 19, tzinfo=UTC),
)


@pytest.fixture
def app():
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")

    async def override_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_db
    reset_memory_store()
    with patch("app.core.redis.redis_client", None):
        yield app
    reset_memory_store()


def test_initial_setup_without_token(app):
    with patch(
        f"{SERVICE}.register_super_admin", new_callable=AsyncMock, return_value=REGISTERED
    ) as mock:
        response = TestClient(app).post("/api/v1/auth/superadmin/register", json=REGISTRATION)

    assert response.status_code == 201
    assert response.json()["user"]["email"] == "musa@example.org"
    assert mock.await_args.kwargs["creator"] is None


def test_authenticated_creator_is_passed(app):
    app.dependency_overrides[get_optional_super_admin] = lambda: CREATOR

    with patch(
        f"{SERVICE}.register_super_admin", new_callable=AsyncMock, return_value=REGISTERED
    ) as mock:
        response = TestClient(app).post("/api/v1/auth/superadmin/register", json=REGISTRATION)

    assert response.status_code == 201
    assert mock.await_args.kwargs["creator"] == CREATOR


def test_authentication_required_once_super_admin_exists(app):
    error = SuperAdminServiceError(
        "Authentication is required to create a super admin.", "AUTHENTICATION_REQUIRED", 401
    )

    with patch(f"{SERVICE}.register_super_admin", new_callable=AsyncMock, side_effect=error):
        response = TestClient(app).post("/api/v1/auth/superadmin/register", json=REGISTRATION)

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "AUTHENTICATION_REQUIRED"


def test_invalid_token_is_refused(app):
    with patch(f"{SERVICE}.register_super_admin", new_callable=AsyncMock) as mock:
        response = TestClient(app).post(
            "/api/v1/auth/superadmin/register",
            json=REGISTRATION,
            headers={"Authorization": "Bearer not-a-jwt"},
        )

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "INVALID_TOKEN"
    mock.assert_not_awaited()
