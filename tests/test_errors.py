from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "message" in data
    assert data["code"] == "HTTP_ERROR"


def test_405_method_not_allowed():
    response = client.get("/send")
    assert response.status_code == 405
    assert response.json()["code"] == "HTTP_ERROR"


def test_malformed_json_body():
    response = client.post(
        "/send",
        content="not json",
        headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data


def test_validation_error_structure():
    from pydantic import BaseModel

    class Item(BaseModel):
        name: str
        price: int

    @app.post("/test-validation")
    def create_item(item: Item):
        return item

    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert len(data["details"]) > 0


def test_custom_exception():
    from app.core.exceptions import CodeMismatchError

    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise CodeMismatchError(details={"attempts_left": 1})

    response = client.get("/test-custom-error")
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "OTP_MISMATCH"
    assert data["message"] == "OTP không chính xác"
    assert data["details"] == {"attempts_left": 1}
    assert "error" not in data


def test_delivery_error_carries_reason():
    from app.core.exceptions import DeliveryError

    @app.get("/test-delivery-error")
    def trigger_delivery_error():
        raise DeliveryError(error="Read timed out")

    response = client.get("/test-delivery-error")
    assert response.status_code == 500
    data = response.json()
    assert data["message"] == "Gửi mã OTP thất bại"
    assert data["error"] == "Read timed out"
