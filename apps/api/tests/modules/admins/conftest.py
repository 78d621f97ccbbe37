"""
Fixtures for mosque admin tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from app.modules.admins.models import AdminStatus, MosqueAdmin
from app.modules.audit.models import PerformerType
from app.modules.audit.service import Actor
from app.modules.mosques.models import Mosque


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def actor():
    return Actor(
        id="00000000-0000-0000-0000-000000000001",
        type=PerformerType.SUPER_ADMIN,
        email="ops@example.org",
        name="Directory Ops",
    )


@pytest.fixture
def sample_mosque():
    mosque = MagicMock(spec=Mosque)
    mosque.id = str(uuid4())
    mosque.name = "Central Mosque"
    mosque.location = "Kumasi"
    mosque.verification_code = "A1B2C3D4E5F60718"
    mosque.verification_code_expires = datetime.now(UTC) + timedelta(days=10)
    mosque.contact_email = "central@example.org"
    mosque.contact_phone = "+233322000000"
    return mosque


def _admin(status: AdminStatus, mosque_id: str | None, **overrides) -> MagicMock:
    admin = MagicMock(spec=MosqueAdmin)
    admin.id = str(uuid4())
    admin.name = "Ahmed Bello"
    admin.email = "ahmed@example.com"
    admin.phone = "+233501112222"
    admin.status = status
    admin.mosque_id = mosque_id
    admin.rejection_count = 0
    admin.can_reapply = False
    admin.previous_mosques = []
    admin.approved_at = None
    admin.deleted_mosque_name = None
    admin.deleted_mosque_location = None
    admin.created_at = datetime.now(UTC) - timedelta(days=2)
    for key, value in overrides.items():
        setattr(admin, key, value)
    return admin


@pytest.fixture
def pending_admin(sample_mosque):
    return _admin(AdminStatus.PENDING, sample_mosque.id)


@pytest.fixture
def approved_admin(sample_mosque):
    return _admin(
        AdminStatus.APPROVED,
        sample_mosque.id,
        name="Yusuf Mensah",
        email="yusuf@example.com",
        approved_at=datetime.now(UTC) - timedelta(days=30),
    )


@pytest.fixture
def make_admin():
    return _admin
