"""
app/schemas/otp.py

Purpose: OTP request/response schemas

- Coerces loosely typed JSON bodies into typed requests
- Missing fields stay None so the services can answer with 400
- Success response shapes
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class LooseTextBody(BaseModel):
    """
    Base for request bodies whose fields are plain text. Integers are
    turned into strings and surrounding whitespace is stripped.
    """

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        # clients sometimes send phone/otp as JSON integers; floats are rejected
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value


class SendOtpRequest(LooseTextBody):
    """Body of POST /send (caller supplies the code)."""
    phone: Optional[str] = Field(default=None, description="Recipient phone number")
    otp: Optional[str] = Field(default=None, description="Code to send")

    class Config:
        json_schema_extra = {
            "example": {"phone": "+84901234567", "otp": "123456"}
        }


class RequestOtpRequest(LooseTextBody):
    """Body of POST /otp/request (server generates the code)."""
    phone: Optional[str] = Field(default=None, description="Recipient phone number")

    class Config:
        json_schema_extra = {
            "example": {"phone": "0901234567"}
        }


class VerifyOtpRequest(LooseTextBody):
    """Body of POST /otp/verify."""
    phone: Optional[str] = Field(default=None, description="Phone the code was sent to")
    otp: Optional[str] = Field(default=None, description="Submitted code")


class SendOtpResponse(BaseModel):
    message: str
    data: Any = None


class RequestOtpResponse(SendOtpResponse):
    expires_at: datetime


class VerificationData(BaseModel):
    user_id: str
    verified_at: datetime


class VerifyOtpResponse(BaseModel):
    message: str
    data: VerificationData
