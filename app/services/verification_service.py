"""
app/services/verification_service.py

Purpose: OTP verification

- Looks up the active code of a user
- Distinguishes missing/expired codes from wrong codes
- Counts failed attempts and burns the code past the limit
- Marks a matching code used (single use)
"""

import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.core.config import settings
from app.core.exceptions import (
    ValidationError,
    CodeNotFoundOrExpiredError,
    CodeMismatchError,
    CodeAttemptsExceededError,
)
from app.core.logging import get_logger, LogContext
from app.services.code_store import CodeStore
from utils.time_utils import utc_now
from utils.validation_utils import is_blank

logger = get_logger(__name__)

MISSING_FIELDS_MESSAGE = "Số điện thoại và mã OTP là bắt buộc"
VERIFY_SUCCESS_MESSAGE = "Xác thực OTP thành công"


@dataclass
class VerificationResult:
    user_id: str
    code_id: str
    verified_at: datetime
    verified: bool = True


class VerificationService:
    """Checks submitted codes against the Code Store."""

    def __init__(self, store: CodeStore, max_attempts: Optional[int] = None):
        self.store = store
        self.max_attempts = max_attempts if max_attempts is not None else settings.OTP_MAX_ATTEMPTS

    async def verify(self, user_id: Optional[str], submitted_code: Optional[str]) -> VerificationResult:
        """
        Verifies a submitted code for a user.

        Raises:
            ValidationError: user_id or code missing
            CodeNotFoundOrExpiredError: no active code (or it was consumed concurrently)
            CodeMismatchError: active code exists but differs
            CodeAttemptsExceededError: too many wrong codes, the code is now burned
        """
        if is_blank(user_id) or is_blank(submitted_code):
            raise ValidationError(MISSING_FIELDS_MESSAGE)

        submitted_code = submitted_code.strip()

        with LogContext(user_id=user_id):
            record = await self.store.find_active(user_id)
            if record is None:
                logger.info("No active code")
                raise CodeNotFoundOrExpiredError()

            if not secrets.compare_digest(record.code.encode(), submitted_code.encode()):
                attempts = await self.store.register_failed_attempt(record.id)
                logger.info(
                    f"Code mismatch ({attempts}/{self.max_attempts})",
                    extra={"otp_id": record.id}
                )
                if attempts >= self.max_attempts:
                    await self.store.mark_used(record.id)
                    logger.warning("Attempt limit reached, code burned", extra={"otp_id": record.id})
                    raise CodeAttemptsExceededError()
                raise CodeMismatchError(details={"attempts_left": self.max_attempts - attempts})

            if not await self.store.mark_used(record.id):
                # another request consumed this code first
                logger.info("Code already used", extra={"otp_id": record.id})
                raise CodeNotFoundOrExpiredError()

            logger.info("Code verified", extra={"otp_id": record.id})

        return VerificationResult(user_id=user_id, code_id=record.id, verified_at=utc_now())
