"""
Shared fixtures for the OTP service tests.

MongoDB and the eSMS HTTP API are replaced by mocks; nothing here
needs a running database or network access.
"""
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId

from utils.time_utils import utc_now


@pytest.fixture
def collection():
    """A Motor collection double with awaitable CRUD methods."""
    coll = MagicMock()
    coll.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
    coll.update_many = AsyncMock(return_value=MagicMock(modified_count=0))
    coll.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    coll.find_one = AsyncMock(return_value=None)
    coll.find_one_and_update = AsyncMock(return_value=None)
    return coll


@pytest.fixture
def make_document():
    """Builds a raw otp_codes document as MongoDB would return it."""
    def _make(user_id="84901234567", code="123456", used=False, attempts=0,
              created_delta=timedelta(minutes=-1), expires_delta=timedelta(minutes=4)):
        now = utc_now()
        return {
            "_id": ObjectId(),
            "user_id": user_id,
            "code": code,
            "used": used,
            "attempts": attempts,
            "created_at": now + created_delta,
            "expires_at": now + expires_delta,
            "used_at": None,
        }
    return _make


@pytest.fixture
def gateway():
    """An SMS gateway double returning a successful eSMS payload."""
    gw = MagicMock()
    gw.send_code = AsyncMock(return_value={"CodeResult": "100"})
    return gw
