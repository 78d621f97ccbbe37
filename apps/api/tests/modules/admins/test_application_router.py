"""
Tests for the public admin application endpoints.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import api_router
from app.core.database import get_db
from app.modules.admins.models import AdminStatus
from app.modules.admins.service import AdminServiceError

SERVICE = "app.modules.admins.service"

APPLICATION = {
    "name": "Ahmed Bello",
    "email": "ahmed@example.com",
    "phone": "+233501112222",
    "password": "password1",
    "mosque_id": "m1",
    "verification_code": "A1B2C3D4E5F60718",
}


@pytest.fixture
def client():
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")

    async def override_db():
        yield AsyncMock()

    app.dependency_overrides[get_db] = override_db

    with patch(
        "app.modules.admins.application_router.check_rate_limit",
        new_callable=AsyncMock,
        return_value=True,
    ):
        yield TestClient(app)


def _applicant(status: AdminStatus) -> SimpleNamespace:
    return SimpleNamespace(
        id="p1", status=status, mosque_id="m1", name="Ahmed Bello", email="ahmed@example.com"
    )


def test_register_creates_pending_application(client):
    with patch(
        f"{SERVICE}.register_application",
        new_callable=AsyncMock,
        return_value=_applicant(AdminStatus.PENDING),
    ) as mock:
        response = client.post("/api/v1/auth/admin/register", json=APPLICATION)

    assert response.status_code == 201
    assert response.json() == {
        "id": "p1",
        "status": "pending",
        "message": "Registration successful. Waiting for super admin approval.",
        "mosque_id": "m1",
        "name": "Ahmed Bello",
        "email": "ahmed@example.com",
    }
    assert mock.await_args.kwargs["verification_code"] == "A1B2C3D4E5F60718"


def test_register_wrong_code(client):
    error = AdminServiceError(
        "Invalid verification code for this mosque.", "INVALID_VERIFICATION_CODE", 400
    )

    with patch(f"{SERVICE}.register_application", new_callable=AsyncMock, side_effect=error):
        response = client.post("/api/v1/auth/admin/register", json=APPLICATION)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "INVALID_VERIFICATION_CODE"


def test_register_rejects_malformed_email(client):
    with patch(f"{SERVICE}.register_application", new_callable=AsyncMock) as mock:
        response = client.post(
            "/api/v1/auth/admin/register", json={**APPLICATION, "email": "ahmed@"}
        )

    assert response.status_code == 422
    mock.assert_not_awaited()


def test_request_reapplication(client):
    with patch(
        f"{SERVICE}.request_reapplication",
        new_callable=AsyncMock,
        return_value=_applicant(AdminStatus.PENDING),
    ) as mock:
        response = client.post(
            "/api/v1/auth/admin/request-reapplication",
            json={
                "email": "ahmed@example.com",
                "password": "password1",
                "mosque_id": "m1",
                "verification_code": "A1B2C3D4E5F60718",
                "reason_for_reapplication": "New references from the mosque committee.",
            },
        )

    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    assert mock.await_args.kwargs["reason"] == "New references from the mosque committee."


def test_request_reapplication_not_allowed(client):
    error = AdminServiceError(
        "You are not allowed to reapply at this time.",
        "REAPPLICATION_NOT_ALLOWED",
        403,
        details={"rejection_count": 2},
    )

    with patch(f"{SERVICE}.request_reapplication", new_callable=AsyncMock, side_effect=error):
        response = client.post(
            "/api/v1/auth/admin/request-reapplication",
            json={
                "email": "ahmed@example.com",
                "password": "password1",
                "mosque_id": "m1",
                "verification_code": "A1B2C3D4E5F60718",
                "reason_for_reapplication": "Please reconsider.",
            },
        )

    assert response.status_code == 403
    assert response.json()["detail"] == {
        "error": "REAPPLICATION_NOT_ALLOWED",
        "message": "You are not allowed to reapply at this time.",
        "rejection_count": 2,
    }


def test_application_rate_limited(client):
    with patch(
        "app.modules.admins.application_router.check_rate_limit",
        new_callable=AsyncMock,
        return_value=False,
    ):
        response = client.post("/api/v1/auth/admin/register", json=APPLICATION)

    assert response.status_code == 429
