"""
app/services/issuance_service.py

Purpose: OTP issuance

- Validates phone and code
- Delegates delivery to the SMS gateway client
- Wraps gateway failures into DeliveryError
- Server-generated flow: generate -> persist -> deliver
"""

import asyncio
from typing import Any, Dict, Optional, Protocol

from app.core.config import settings
from app.core.exceptions import ValidationError, DeliveryError
from app.core.logging import get_logger, LogContext
from app.services.code_generator import generate_code
from app.services.code_store import CodeStore
from utils.time_utils import utc_now, calculate_otp_expiry
from utils.validation_utils import is_blank, validate_phone, normalize_phone

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Thiếu số điện thoại hoặc mã OTP"
PHONE_REQUIRED_MESSAGE = "Số điện thoại là bắt buộc"
INVALID_PHONE_MESSAGE = "Số điện thoại không hợp lệ"
SEND_SUCCESS_MESSAGE = "Gửi mã OTP thành công"
SEND_FAILURE_MESSAGE = "Gửi mã OTP thất bại"
ESMS_ACCEPTED = "100"


class SmsGateway(Protocol):
    async def send_code(self, phone: str, code: str) -> Dict[str, Any]:
        ...


class IssuanceService:
    """Orchestrates sending one-time codes."""

    def __init__(
        self,
        gateway: SmsGateway,
        store: Optional[CodeStore] = None,
        code_length: int = 6,
        expiry_seconds: int = 300,
        delivery_timeout: Optional[float] = None,
    ):
        self.gateway = gateway
        self.store = store
        self.code_length = code_length
        self.expiry_seconds = expiry_seconds
        self.delivery_timeout = delivery_timeout

    @classmethod
    def from_settings(cls, gateway: SmsGateway, store: Optional[CodeStore] = None) -> "IssuanceService":
        return cls(
            gateway=gateway,
            store=store,
            code_length=settings.OTP_LENGTH,
            expiry_seconds=settings.OTP_EXPIRY_SECONDS,
            delivery_timeout=settings.OTP_DELIVERY_TIMEOUT_SECONDS,
        )

    async def _deliver(self, phone: str, code: str) -> Dict[str, Any]:
        try:
            if self.delivery_timeout:
                result = await asyncio.wait_for(
                    self.gateway.send_code(phone, code),
                    timeout=self.delivery_timeout
                )
            else:
                result = await self.gateway.send_code(phone, code)
        except asyncio.TimeoutError as e:
            logger.error(f"SMS delivery timed out after {self.delivery_timeout}s")
            raise DeliveryError(
                SEND_FAILURE_MESSAGE,
                error=f"Delivery timed out after {self.delivery_timeout} seconds"
            ) from e
        except Exception as e:
            logger.error(f"SMS delivery failed: {e}", exc_info=True)
            raise DeliveryError(SEND_FAILURE_MESSAGE, error=str(e) or type(e).__name__) from e

        # eSMS answers 2xx for rejected messages too; only CodeResult 100 means accepted
        payload = result if isinstance(result, dict) else {}
        code_result = payload.get("CodeResult")
        if str(code_result) != ESMS_ACCEPTED:
            reason = payload.get("ErrorMessage") or f"CodeResult {code_result}"
            logger.error(f"SMS rejected by provider: {reason}")
            raise DeliveryError(SEND_FAILURE_MESSAGE, error=reason)

        return result

    async def issue(self, phone: Optional[str], code: Optional[str]) -> Dict[str, Any]:
        """
        Sends a caller-supplied code to a phone number.

        Returns:
            {"message": "Gửi mã OTP thành công", "data": <provider response>}

        Raises:
            ValidationError: phone or code missing
            DeliveryError: the gateway failed or the provider rejected the SMS
        """
        if is_blank(phone) or is_blank(code):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        result = await self._deliver(phone, code)
        logger.info("OTP delivered", extra={"phone": phone})

        return {"message": SEND_SUCCESS_MESSAGE, "data": result}

    async def request_code(self, phone: Optional[str]) -> Dict[str, Any]:
        """
        Generates, stores and sends a fresh code for a phone number.
        Earlier active codes of that number are superseded once the new
        code has been accepted by the provider.

        Returns:
            {"message": ..., "data": <provider response>, "expires_at": datetime}

        Raises:
            ValidationError: phone missing or malformed
            DeliveryError: the gateway failed or the provider rejected the SMS
        """
        if self.store is None:
            raise RuntimeError("IssuanceService.request_code requires a CodeStore")

        if is_blank(phone):
            raise ValidationError(PHONE_REQUIRED_MESSAGE)
        if not validate_phone(phone):
            raise ValidationError(INVALID_PHONE_MESSAGE)

        user_id = normalize_phone(phone)
        code = generate_code(self.code_length)
        expires_at = calculate_otp_expiry(utc_now(), self.expiry_seconds)

        with LogContext(user_id=user_id):
            # earlier codes stay usable until the new one is actually sent
            record = await self.store.create(user_id, code, expires_at, supersede=False)
            try:
                result = await self._deliver(user_id, code)
            except DeliveryError:
                # an undelivered code must not stay verifiable
                await self.store.mark_used(record.id)
                raise
            await self.store.supersede(user_id, keep_id=record.id)
            logger.info("Generated OTP delivered", extra={"otp_id": record.id})

        return {
            "message": SEND_SUCCESS_MESSAGE,
            "data": result,
            "expires_at": record.expires_at,
        }
