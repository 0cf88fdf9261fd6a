import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.core.exceptions import ValidationError, DeliveryError
from app.models.otp_code import OneTimeCode
from app.services.issuance_service import IssuanceService
from utils.time_utils import utc_now


@pytest.mark.asyncio
async def test_issue_returns_provider_payload(gateway):
    service = IssuanceService(gateway)

    result = await service.issue("+84901234567", "123456")

    assert result == {"message": "Gửi mã OTP thành công", "data": {"CodeResult": "100"}}
    gateway.send_code.assert_awaited_once_with("+84901234567", "123456")


@pytest.mark.asyncio
@pytest.mark.parametrize("phone,code", [
    (None, "123456"),
    ("+84901234567", None),
    ("", "123456"),
    ("+84901234567", "   "),
    (None, None),
])
async def test_issue_missing_fields_never_calls_gateway(gateway, phone, code):
    service = IssuanceService(gateway)

    with pytest.raises(ValidationError) as exc_info:
        await service.issue(phone, code)

    assert exc_info.value.message == "Thiếu số điện thoại hoặc mã OTP"
    assert exc_info.value.status_code == 400
    gateway.send_code.assert_not_called()


@pytest.mark.asyncio
async def test_issue_wraps_gateway_failure(gateway):
    gateway.send_code.side_effect = httpx.ConnectError("connection refused")
    service = IssuanceService(gateway)

    with pytest.raises(DeliveryError) as exc_info:
        await service.issue("+84901234567", "123456")

    assert exc_info.value.message == "Gửi mã OTP thất bại"
    assert exc_info.value.error == "connection refused"
    assert exc_info.value.status_code == 500
    assert gateway.send_code.await_count == 1


@pytest.mark.asyncio
async def test_issue_timeout_maps_to_delivery_error(gateway):
    async def slow_send(phone, code):
        await asyncio.sleep(1)
        return {"CodeResult": "100"}

    gateway.send_code = AsyncMock(side_effect=slow_send)
    service = IssuanceService(gateway, delivery_timeout=0.01)

    with pytest.raises(DeliveryError) as exc_info:
        await service.issue("+84901234567", "123456")

    assert "timed out" in exc_info.value.error


def _store_returning():
    store = MagicMock()

    async def create(uid, code, expires_at, supersede=True):
        return OneTimeCode(id="65a000000000000000000001", user_id=uid, code=code, expires_at=expires_at)

    store.create = AsyncMock(side_effect=create)
    store.mark_used = AsyncMock(return_value=True)
    store.supersede = AsyncMock(return_value=0)
    return store


@pytest.mark.asyncio
async def test_request_code_generates_persists_and_sends(gateway):
    store = _store_returning()
    service = IssuanceService(gateway, store=store, code_length=6, expiry_seconds=300)

    before = utc_now()
    result = await service.request_code("0901234567")

    store.create.assert_awaited_once()
    user_id, code, expires_at = store.create.call_args.args
    assert user_id == "84901234567"
    assert len(code) == 6 and code.isdigit()
    assert before + timedelta(seconds=299) < expires_at <= utc_now() + timedelta(seconds=300)

    gateway.send_code.assert_awaited_once_with("84901234567", code)
    assert result["message"] == "Gửi mã OTP thành công"
    assert result["data"] == {"CodeResult": "100"}
    assert result["expires_at"] == expires_at


@pytest.mark.asyncio
async def test_request_code_rejects_invalid_phone(gateway):
    store = _store_returning()
    service = IssuanceService(gateway, store=store)

    with pytest.raises(ValidationError) as exc_info:
        await service.request_code("12345")

    assert exc_info.value.message == "Số điện thoại không hợp lệ"
    store.create.assert_not_called()
    gateway.send_code.assert_not_called()


@pytest.mark.asyncio
async def test_request_code_burns_undelivered_code(gateway):
    gateway.send_code.side_effect = httpx.ConnectError("down")
    store = _store_returning()
    service = IssuanceService(gateway, store=store)

    with pytest.raises(DeliveryError):
        await service.request_code("+84901234567")

    store.mark_used.assert_awaited_once_with("65a000000000000000000001")


@pytest.mark.asyncio
async def test_request_code_requires_store(gateway):
    service = IssuanceService(gateway)

    with pytest.raises(RuntimeError):
        await service.request_code("0901234567")


@pytest.mark.asyncio
async def test_request_code_requires_phone(gateway):
    store = _store_returning()
    service = IssuanceService(gateway, store=store)

    with pytest.raises(ValidationError) as exc_info:
        await service.request_code("  ")

    assert exc_info.value.message == "Số điện thoại là bắt buộc"
    store.create.assert_not_called()


@pytest.mark.asyncio
async def test_issue_provider_rejection_is_delivery_error(gateway):
    gateway.send_code.return_value = {"CodeResult": "101", "ErrorMessage": "Sai ApiKey"}
    service = IssuanceService(gateway)

    with pytest.raises(DeliveryError) as exc_info:
        await service.issue("+84901234567", "123456")

    assert exc_info.value.message == "Gửi mã OTP thất bại"
    assert exc_info.value.error == "Sai ApiKey"


@pytest.mark.asyncio
async def test_issue_rejection_without_error_message_reports_code_result(gateway):
    gateway.send_code.return_value = {"CodeResult": "99"}
    service = IssuanceService(gateway)

    with pytest.raises(DeliveryError) as exc_info:
        await service.issue("+84901234567", "123456")

    assert exc_info.value.error == "CodeResult 99"


@pytest.mark.asyncio
async def test_issue_accepts_numeric_code_result(gateway):
    gateway.send_code.return_value = {"CodeResult": 100, "SMSID": "abc"}
    service = IssuanceService(gateway)

    result = await service.issue("+84901234567", "123456")

    assert result["data"] == {"CodeResult": 100, "SMSID": "abc"}


@pytest.mark.asyncio
async def test_request_code_burns_code_rejected_by_provider(gateway):
    gateway.send_code.return_value = {"CodeResult": "101", "ErrorMessage": "Sai ApiKey"}
    store = _store_returning()
    service = IssuanceService(gateway, store=store)

    with pytest.raises(DeliveryError) as exc_info:
        await service.request_code("0901234567")

    assert exc_info.value.error == "Sai ApiKey"
    store.mark_used.assert_awaited_once_with("65a000000000000000000001")
    store.supersede.assert_not_called()


@pytest.mark.asyncio
async def test_request_code_supersedes_only_after_delivery(gateway):
    store = _store_returning()
    service = IssuanceService(gateway, store=store)

    await service.request_code("0901234567")

    assert store.create.call_args.kwargs["supersede"] is False
    store.supersede.assert_awaited_once_with("84901234567", keep_id="65a000000000000000000001")
    store.mark_used.assert_not_called()


@pytest.mark.asyncio
async def test_request_code_failed_delivery_keeps_previous_codes(gateway):
    gateway.send_code.side_effect = httpx.ConnectError("down")
    store = _store_returning()
    service = IssuanceService(gateway, store=store)

    with pytest.raises(DeliveryError):
        await service.request_code("0901234567")

    store.supersede.assert_not_called()
