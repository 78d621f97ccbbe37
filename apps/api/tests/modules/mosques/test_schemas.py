"""
Tests for mosque request schemas and model defaults.
"""

import pytest
from pydantic import ValidationError

from app.modules.mosques.models import Mosque
from app.modules.mosques.schemas import MosqueUpdateRequest


class TestMosqueUpdateRequest:
    @pytest.mark.parametrize("field", ["name", "location", "prayer_times"])
    def test_explicit_null_is_rejected(self, field):
        with pytest.raises(ValidationError) as exc_info:
            MosqueUpdateRequest.model_validate({field: None})

        assert exc_info.value.errors()[0]["loc"] == (field,)

    def test_omitted_fields_stay_unset(self):
        data = MosqueUpdateRequest.model_validate({"description": None})

        assert data.model_dump(exclude_unset=True) == {"description": None}

    def test_partial_prayer_times(self):
        data = MosqueUpdateRequest.model_validate({"prayer_times": {"fajr": "05:10"}})

        assert data.prayer_times.model_dump(exclude_unset=True) == {"fajr": "05:10"}


def test_server_generated_timestamps_are_fetched_on_flush():
    assert Mosque.__mapper__.eager_defaults is True
