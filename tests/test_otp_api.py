from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.otp import (
    get_sms_gateway,
    get_code_store,
)
from app.main import app
from app.models.otp_code import OneTimeCode
from utils.time_utils import utc_now

client = TestClient(app)


@pytest.fixture
def sms_gateway(gateway):
    app.dependency_overrides[get_sms_gateway] = lambda: gateway
    yield gateway
    app.dependency_overrides.pop(get_sms_gateway, None)


@pytest.fixture
def code_store():
    store = MagicMock()

    async def create(user_id, code, expires_at, supersede=True):
        return OneTimeCode(id="65a000000000000000000001", user_id=user_id, code=code, expires_at=expires_at)

    store.create = AsyncMock(side_effect=create)
    store.find_active = AsyncMock(return_value=None)
    store.mark_used = AsyncMock(return_value=True)
    store.supersede = AsyncMock(return_value=0)
    store.register_failed_attempt = AsyncMock(return_value=1)
    app.dependency_overrides[get_code_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_code_store, None)


def test_send_success(sms_gateway):
    response = client.post("/send", json={"phone": "+84901234567", "otp": "123456"})

    assert response.status_code == 200
    assert response.json() == {
        "message": "Gửi mã OTP thành công",
        "data": {"CodeResult": "100"},
    }
    sms_gateway.send_code.assert_awaited_once_with("+84901234567", "123456")


def test_send_missing_phone(sms_gateway):
    response = client.post("/send", json={"otp": "123456"})

    assert response.status_code == 400
    data = response.json()
    assert data["message"] == "Thiếu số điện thoại hoặc mã OTP"
    assert "error" not in data
    sms_gateway.send_code.assert_not_called()


def test_send_empty_body(sms_gateway):
    response = client.post("/send", json={})

    assert response.status_code == 400
    sms_gateway.send_code.assert_not_called()


def test_send_numeric_fields_are_coerced(sms_gateway):
    response = client.post("/send", json={"phone": "0901234567", "otp": 123456})

    assert response.status_code == 200
    sms_gateway.send_code.assert_awaited_once_with("0901234567", "123456")


def test_send_delivery_failure(sms_gateway):
    sms_gateway.send_code.side_effect = httpx.ConnectError("connection refused")

    response = client.post("/send", json={"phone": "+84901234567", "otp": "123456"})

    assert response.status_code == 500
    data = response.json()
    assert data["message"] == "Gửi mã OTP thất bại"
    assert data["error"] == "connection refused"
    assert data["code"] == "DELIVERY_ERROR"


def test_send_without_body(sms_gateway):
    response = client.post("/send")

    assert response.status_code == 400
    data = response.json()
    assert data["message"] == "Thiếu số điện thoại hoặc mã OTP"
    assert data["code"] == "VALIDATION_ERROR"
    sms_gateway.send_code.assert_not_called()


def test_send_null_body(sms_gateway):
    response = client.post("/send", content="null", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    sms_gateway.send_code.assert_not_called()


def test_send_rejects_fractional_otp(sms_gateway):
    response = client.post("/send", json={"phone": "0901234567", "otp": 123456.0})

    assert response.status_code == 422
    sms_gateway.send_code.assert_not_called()


def test_send_provider_rejection(sms_gateway):
    sms_gateway.send_code.return_value = {"CodeResult": "101", "ErrorMessage": "Sai ApiKey"}

    response = client.post("/send", json={"phone": "+84901234567", "otp": "123456"})

    assert response.status_code == 500
    data = response.json()
    assert data["message"] == "Gửi mã OTP thất bại"
    assert data["error"] == "Sai ApiKey"
    assert data["code"] == "DELIVERY_ERROR"


def test_request_otp(sms_gateway, code_store):
    response = client.post("/otp/request", json={"phone": "0901234567"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Gửi mã OTP thành công"
    assert data["data"] == {"CodeResult": "100"}
    assert "expires_at" in data
    user_id, code, _ = code_store.create.call_args.args
    assert user_id == "84901234567"
    sms_gateway.send_code.assert_awaited_once_with("84901234567", code)


def test_request_otp_invalid_phone(sms_gateway, code_store):
    response = client.post("/otp/request", json={"phone": "abc"})

    assert response.status_code == 400
    assert response.json()["message"] == "Số điện thoại không hợp lệ"
    code_store.create.assert_not_called()


def test_verify_otp_success(code_store):
    code_store.find_active.return_value = OneTimeCode(
        id="65a000000000000000000001",
        user_id="84901234567",
        code="123456",
        expires_at=utc_now() + timedelta(minutes=5),
    )

    response = client.post("/otp/verify", json={"phone": "0901234567", "otp": "123456"})

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Xác thực OTP thành công"
    assert data["data"]["user_id"] == "84901234567"
    code_store.find_active.assert_awaited_once_with("84901234567")


def test_verify_otp_not_found(code_store):
    response = client.post("/otp/verify", json={"phone": "0901234567", "otp": "123456"})

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "OTP_NOT_FOUND_OR_EXPIRED"
    assert data["message"] == "OTP không tồn tại hoặc đã hết hạn"


def test_verify_otp_mismatch(code_store):
    code_store.find_active.return_value = OneTimeCode(
        id="65a000000000000000000001",
        user_id="84901234567",
        code="123456",
        expires_at=utc_now() + timedelta(minutes=5),
    )

    response = client.post("/otp/verify", json={"phone": "0901234567", "otp": "654321"})

    assert response.status_code == 400
    assert response.json()["code"] == "OTP_MISMATCH"


def test_verify_otp_missing_fields(code_store):
    response = client.post("/otp/verify", json={"phone": "0901234567"})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_health_reports_database_down():
    response = client.get("/health")

    assert response.status_code == 503
    data = response.json()
    assert data["checks"]["database"] == "unhealthy"


def test_liveness():
    response = client.get("/live")

    assert response.status_code == 200
    assert response.json() == {"status": "alive"}


def test_request_otp_provider_rejection_burns_code(sms_gateway, code_store):
    sms_gateway.send_code.return_value = {"CodeResult": "104", "ErrorMessage": "Brandname chưa được đăng ký"}

    response = client.post("/otp/request", json={"phone": "0901234567"})

    assert response.status_code == 500
    assert response.json()["error"] == "Brandname chưa được đăng ký"
    code_store.mark_used.assert_awaited_once_with("65a000000000000000000001")
    code_store.supersede.assert_not_called()


def test_request_otp_without_body(sms_gateway, code_store):
    response = client.post("/otp/request")

    assert response.status_code == 400
    assert response.json()["message"] == "Số điện thoại là bắt buộc"


def test_verify_otp_without_body(code_store):
    response = client.post("/otp/verify")

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    code_store.find_active.assert_not_called()
