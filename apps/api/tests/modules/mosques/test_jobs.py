"""
Tests for mosque background jobs.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.audit.models import AuditActionType
from app.modules.audit.service import SYSTEM_ACTOR
from app.modules.mosques.jobs import (
    JOB_ID_REGENERATE_EXPIRED_CODES,
    regenerate_expired_verification_codes,
    register_mosque_jobs,
)

JOBS = "app.modules.mosques.jobs"


def _session_maker(db):
    maker = MagicMock()
    maker.return_value.__aenter__.return_value = db
    return maker


@pytest.mark.asyncio
async def test_regenerate_expired_codes_continues_after_failure():
    db = AsyncMock()
    expired = [SimpleNamespace(id="m1"), SimpleNamespace(id="m2"), SimpleNamespace(id="m3")]
    m1 = SimpleNamespace(id="m1", name="Masjid Al-Noor", location="Accra", verification_code="OLD1")

    async def get_by_id(db, mosque_id):
        if mosque_id == "m2":
            raise RuntimeError("connection reset")
        return m1 if mosque_id == "m1" else None

    async def regenerate(db, mosque, expiry_days=None):
        mosque.verification_code = "NEW1"
        return mosque

    with (
        patch(f"{JOBS}.async_session_maker", _session_maker(db)),
        patch(f"{JOBS}.MosqueRepository") as mock_repo,
        patch(f"{JOBS}.record_action", new_callable=AsyncMock) as mock_record,
    ):
        mock_repo.get_expiring_codes = AsyncMock(return_value=expired)
        mock_repo.get_by_id = AsyncMock(side_effect=get_by_id)
        mock_repo.regenerate_code = AsyncMock(side_effect=regenerate)

        results = await regenerate_expired_verification_codes()

    assert results["total_regenerated"] == 1
    assert results["total_errors"] == 1
    assert [r["status"] for r in results["processed"]] == ["regenerated", "error", "skipped"]

    args = mock_record.await_args
    assert args.args[1] == AuditActionType.VERIFICATION_CODE_REGENERATED
    assert args.args[2] is SYSTEM_ACTOR
    assert args.kwargs["details"]["before_data"] == {"verification_code": "OLD1"}
    assert args.kwargs["details"]["after_data"] == {"verification_code": "NEW1"}
    db.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_regenerate_expired_codes_with_nothing_expired():
    with (
        patch(f"{JOBS}.async_session_maker", _session_maker(AsyncMock())),
        patch(f"{JOBS}.MosqueRepository") as mock_repo,
    ):
        mock_repo.get_expiring_codes = AsyncMock(return_value=[])

        results = await regenerate_expired_verification_codes()

    assert results["processed"] == []
    assert results["total_regenerated"] == 0


def test_register_mosque_jobs():
    with patch(f"{JOBS}.register_job") as mock_register:
        register_mosque_jobs()

    mock_register.assert_called_once()
    assert mock_register.call_args.kwargs["job_id"] == JOB_ID_REGENERATE_EXPIRED_CODES
    assert mock_register.call_args.kwargs["func"] is regenerate_expired_verification_codes
