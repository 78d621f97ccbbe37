"""
Fixtures for console tests.

Payload factories build raw backend dictionaries (the shapes the directory
API returns) so tests exercise the same parsing path as production.
"""

from itertools import count

import pytest

from app.modules.console.records import (
    ApprovedAdminRecord,
    MosqueRecord,
    PendingAdminRecord,
    RecordSnapshot,
    RejectedAdminRecord,
    parse_records,
)

_phone_counter = count(1)


@pytest.fixture
def mosque_payload():
    def _make(mosque_id, name, location="Accra", created_at="2025-01-01T00:00:00Z", **extra):
        return {
            "id": mosque_id,
            "name": name,
            "location": location,
            "verification_code": f"CODE{mosque_id.upper()}",
            "created_at": created_at,
            "prayer_times": {"fajr": "05:00"},
            **extra,
        }

    return _make


def _admin_fields(admin_id, name, email=None, phone=None):
    return {
        "id": admin_id,
        "name": name,
        "email": email or f"{admin_id}@example.com",
        "phone": phone or f"+23350000{next(_phone_counter):04d}",
    }


@pytest.fixture
def pending_payload():
    def _make(admin_id, name, mosque, created_at="2025-02-01T00:00:00Z", **extra):
        return {
            **_admin_fields(admin_id, name, extra.pop("email", None), extra.pop("phone", None)),
            "mosque_id": mosque,
            "created_at": created_at,
            "verification_status": "pending",
            **extra,
        }

    return _make


@pytest.fixture
def approved_payload():
    def _make(admin_id, name, mosque, status="approved", approved_at=None, **extra):
        return {
            **_admin_fields(admin_id, name, extra.pop("email", None), extra.pop("phone", None)),
            "mosque_id": mosque,
            "status": status,
            "approved_at": approved_at,
            **extra,
        }

    return _make


@pytest.fixture
def rejected_payload():
    def _make(admin_id, name, previous, rejection_count=None, can_reapply=False, **extra):
        return {
            **_admin_fields(admin_id, name, extra.pop("email", None), extra.pop("phone", None)),
            "previous_mosque_ids": previous,
            "rejection_count": len(previous) if rejection_count is None else rejection_count,
            "can_reapply": can_reapply,
            **extra,
        }

    return _make


@pytest.fixture
def make_snapshot():
    """Build a RecordSnapshot from raw payload lists."""

    def _make(mosques=(), pending=(), approved=(), rejected=(), failed=()):
        return RecordSnapshot(
            mosques=parse_records(MosqueRecord, mosques),
            pending=parse_records(PendingAdminRecord, pending),
            approved=parse_records(ApprovedAdminRecord, approved),
            rejected=parse_records(RejectedAdminRecord, rejected),
            failed_collections=frozenset(failed),
        )

    return _make


@pytest.fixture
def directory_snapshot(mosque_payload, pending_payload, approved_payload, rejected_payload, make_snapshot):
    """
    Three mosques:
    - m1 Masjid Al-Noor (Accra) with approved admin Yusuf
    - m2 Central Mosque (Kumasi) without admin, one pending applicant Ahmed
    - m3 Baitul Rahman (Tamale) without admin, rejected applicant Bilal
    """
    return make_snapshot(
        mosques=[
            mosque_payload("m1", "Masjid Al-Noor", "Accra", created_at="2025-01-01T00:00:00Z"),
            mosque_payload("m2", "Central Mosque", "Kumasi", created_at="2025-01-02T00:00:00Z"),
            mosque_payload("m3", "Baitul Rahman", "Tamale", created_at="2025-01-03T00:00:00Z"),
        ],
        approved=[
            approved_payload(
                "a1",
                "Yusuf Mensah",
                {"id": "m1", "name": "Masjid Al-Noor", "location": "Accra"},
                approved_at="2025-03-01T00:00:00Z",
                email="yusuf@example.com",
            ),
        ],
        pending=[
            pending_payload("p1", "Ahmed Bello", {"id": "m2", "name": "Central Mosque"}),
        ],
        rejected=[
            rejected_payload(
                "r1",
                "Bilal Owusu",
                [
                    {
                        "mosque_id": "m3",
                        "rejected_at": "2025-02-10T00:00:00Z",
                        "rejection_reason": "Could not verify identity",
                    }
                ],
            ),
        ],
    )
