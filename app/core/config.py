"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, eSMS credentials, OTP policy)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="otpservice",
        description="MongoDB database name"
    )

    # eSMS.vn gateway
    ESMS_API_KEY: Optional[str] = Field(
        default=None,
        description="eSMS API key"
    )
    ESMS_SECRET_KEY: Optional[str] = Field(
        default=None,
        description="eSMS secret key"
    )
    ESMS_API_URL: str = Field(
        default="https://rest.esms.vn/MainService.svc/json/SendMultipleMessage_V4_post_json/",
        description="eSMS send endpoint"
    )
    ESMS_BRANDNAME: str = Field(
        default="Baotrixemay",
        description="Registered sender brand name"
    )
    ESMS_SMS_TYPE: str = Field(
        default="2",
        description="eSMS message type flag (2 = brandname customer care)"
    )

    # OTP policy
    OTP_PRODUCT_NAME: str = Field(
        default="Baotrixemay",
        description="Product name rendered into the SMS content"
    )
    OTP_MESSAGE_TEMPLATE: str = Field(
        default="{code} is your verification code for {product}",
        description="SMS content template, placeholders: {code}, {product}"
    )
    OTP_LENGTH: int = Field(
        default=6,
        description="Number of digits in server-generated codes"
    )
    OTP_EXPIRY_SECONDS: int = Field(
        default=300,
        description="Validity window of a server-generated code"
    )
    OTP_MAX_ATTEMPTS: int = Field(
        default=3,
        description="Failed verification attempts before a code is burned"
    )
    OTP_RETENTION_SECONDS: int = Field(
        default=86400,
        description="How long expired codes are kept before TTL cleanup"
    )
    OTP_DELIVERY_TIMEOUT_SECONDS: Optional[float] = Field(
        default=None,
        description="Optional caller-facing timeout around SMS delivery"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    OTP_ROUTE_PREFIX: str = Field(
        default="",
        description="Route prefix for the OTP endpoints"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @validator("ESMS_API_KEY")
    def validate_esms_api_key(cls, v, values):
        """Ensure eSMS API key is set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("ESMS_API_KEY is required in production environment")
        return v

    @validator("ESMS_SECRET_KEY")
    def validate_esms_secret_key(cls, v, values):
        """Ensure eSMS secret key is set in production."""
        if values.get("ENVIRONMENT") == "production" and not v:
            raise ValueError("ESMS_SECRET_KEY is required in production environment")
        return v

    @validator("OTP_LENGTH")
    def validate_otp_length(cls, v):
        if v < 4 or v > 10:
            raise ValueError("OTP_LENGTH must be between 4 and 10")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.ESMS_API_URL:
        errors.append("ESMS_API_URL is required")

    if settings.OTP_EXPIRY_SECONDS <= 0:
        errors.append("OTP_EXPIRY_SECONDS must be positive")

    if settings.OTP_MAX_ATTEMPTS <= 0:
        errors.append("OTP_MAX_ATTEMPTS must be positive")

    # Production-specific validations
    if settings.is_production:
        if not settings.ESMS_API_KEY:
            errors.append("ESMS_API_KEY is required in production")
        if not settings.ESMS_SECRET_KEY:
            errors.append("ESMS_SECRET_KEY is required in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
