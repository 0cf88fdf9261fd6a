"""
app/services/esms_service.py

Purpose: SMS delivery through the eSMS.vn REST API

- Builds the eSMS SendMultipleMessage_V4 request body
- Posts it to the fixed provider endpoint
- Returns the provider's JSON response verbatim
- Lets transport and HTTP errors propagate (no retry, no backoff)
"""

import httpx
from typing import Dict, Any, Optional

from app.core.config import settings
from app.core.logging import get_logger, mask_code

logger = get_logger(__name__)

DEFAULT_TEMPLATE = "{code} is your verification code for {product}"


class EsmsService:
    """Client for sending one-time codes via eSMS"""

    def __init__(
        self,
        api_key: Optional[str],
        secret_key: Optional[str],
        brandname: str,
        sms_type: str = "2",
        product_name: Optional[str] = None,
        api_url: str = "https://rest.esms.vn/MainService.svc/json/SendMultipleMessage_V4_post_json/",
        content_template: str = DEFAULT_TEMPLATE,
    ):
        self.api_key = api_key
        self.secret_key = secret_key
        self.brandname = brandname
        self.sms_type = sms_type
        self.product_name = product_name or brandname
        self.api_url = api_url
        self.content_template = content_template

    @classmethod
    def from_settings(cls) -> "EsmsService":
        """Builds a client from the current process configuration."""
        return cls(
            api_key=settings.ESMS_API_KEY,
            secret_key=settings.ESMS_SECRET_KEY,
            brandname=settings.ESMS_BRANDNAME,
            sms_type=settings.ESMS_SMS_TYPE,
            product_name=settings.OTP_PRODUCT_NAME,
            api_url=settings.ESMS_API_URL,
            content_template=settings.OTP_MESSAGE_TEMPLATE,
        )

    def build_content(self, code: str) -> str:
        return self.content_template.format(code=code, product=self.product_name)

    def build_payload(self, phone: str, code: str) -> Dict[str, Any]:
        """
        Builds the eSMS request body.

        Example:
            {
                "ApiKey": "...",
                "Content": "123456 is your verification code for Baotrixemay",
                "Phone": "+84901234567",
                "SecretKey": "...",
                "Brandname": "Baotrixemay",
                "SmsType": "2"
            }
        """
        return {
            "ApiKey": self.api_key,
            "Content": self.build_content(code),
            "Phone": phone,
            "SecretKey": self.secret_key,
            "Brandname": self.brandname,
            "SmsType": self.sms_type,
        }

    async def send_code(self, phone: str, code: str) -> Dict[str, Any]:
        """
        Sends a one-time code by SMS.

        Args:
            phone: Recipient phone, passed to the provider unchanged
            code: The code to embed in the message

        Returns:
            The provider's parsed JSON body, e.g. {"CodeResult": "100", "SMSID": "..."}

        Raises:
            httpx.HTTPStatusError: Provider answered with a non-2xx status
            httpx.HTTPError: Network / transport failure
        """
        payload = self.build_payload(phone, code)

        logger.info(f"📤 Sending OTP {mask_code(code)} via eSMS", extra={"phone": phone})

        async with httpx.AsyncClient() as client:
            response = await client.post(self.api_url, json=payload)
            response.raise_for_status()
            result = response.json()

        logger.info(
            f"✅ eSMS accepted request: CodeResult={result.get('CodeResult') if isinstance(result, dict) else None}",
            extra={"phone": phone}
        )
        return result

    def is_configured(self) -> bool:
        """Check if eSMS credentials are present"""
        return bool(self.api_key and self.secret_key and self.brandname)
