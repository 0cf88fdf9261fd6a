from typing import Optional, Any


class OtpServiceError(Exception):
    """
    Base exception for the OTP service.
    """
    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        error: Optional[str] = None,
        details: Optional[Any] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.error = error
        self.details = details
        super().__init__(self.message)


class ValidationError(OtpServiceError):
    """
    Raised when a required field is missing or malformed.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)


class DeliveryError(OtpServiceError):
    """
    Raised when the SMS provider call fails (network, non-2xx, timeout).
    Carries the underlying error text in `error`.
    """
    def __init__(self, message: str = "Gửi mã OTP thất bại", error: Optional[str] = None):
        super().__init__(message, code="DELIVERY_ERROR", status_code=500, error=error)


class CodeNotFoundOrExpiredError(OtpServiceError):
    """
    Raised when no active (unused, unexpired) code exists for the user.
    """
    def __init__(self, message: str = "OTP không tồn tại hoặc đã hết hạn", details: Optional[Any] = None):
        super().__init__(message, code="OTP_NOT_FOUND_OR_EXPIRED", status_code=400, details=details)


class CodeMismatchError(OtpServiceError):
    """
    Raised when an active code exists but the submitted code differs.
    """
    def __init__(self, message: str = "OTP không chính xác", details: Optional[Any] = None):
        super().__init__(message, code="OTP_MISMATCH", status_code=400, details=details)


class CodeAttemptsExceededError(OtpServiceError):
    """
    Raised when too many wrong codes were submitted and the code was burned.
    """
    def __init__(
        self,
        message: str = "Đã vượt quá số lần thử. Vui lòng yêu cầu OTP mới",
        details: Optional[Any] = None
    ):
        super().__init__(message, code="OTP_ATTEMPTS_EXCEEDED", status_code=400, details=details)
