"""
Test eSMS integration

Run this script to verify eSMS credentials are configured and
an OTP SMS can be delivered.

Usage: python scripts/send_test_sms.py
"""

import asyncio
import sys
from pathlib import Path
from dotenv import load_dotenv

sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables
load_dotenv()

import httpx

from app.core.config import settings
from app.services.code_generator import generate_code
from app.services.esms_service import EsmsService
from utils.validation_utils import validate_phone


def check_config(service: EsmsService) -> bool:
    """Test if eSMS is properly configured"""
    print("=" * 60)
    print("  eSMS Configuration Test")
    print("=" * 60 + "\n")

    print(f"API Key: {settings.ESMS_API_KEY[:6]}..." if settings.ESMS_API_KEY else "API Key: ❌ Not set")
    print(f"Secret Key: {'✅ Set' if settings.ESMS_SECRET_KEY else '❌ Not set'}")
    print(f"Brandname: {settings.ESMS_BRANDNAME}")
    print(f"Endpoint: {settings.ESMS_API_URL}")
    print(f"\nConfiguration valid: {'✅ Yes' if service.is_configured() else '❌ No'}\n")

    if not service.is_configured():
        print("⚠️  Please set ESMS_API_KEY and ESMS_SECRET_KEY in .env file")
        return False

    return True


async def send_test_code(service: EsmsService):
    """Send a real OTP SMS"""
    print("=" * 60)
    print("  Test OTP Sending")
    print("=" * 60 + "\n")

    phone = input("Enter the phone number (e.g. 0901234567 or 84901234567): ").strip()

    if not validate_phone(phone):
        print("❌ Not a valid Vietnamese mobile number")
        return

    code = generate_code(settings.OTP_LENGTH)
    print(f"\n📤 Sending code {code} to {phone}...")
    print(f"   Content: {service.build_content(code)}")

    try:
        result = await service.send_code(phone, code)
    except httpx.HTTPError as e:
        print(f"\n❌ Request failed: {e}")
        return

    print(f"\n📥 Provider response: {result}")
    if result.get("CodeResult") == "100":
        print("\n✅ eSMS accepted the message. Check your phone!")
    else:
        print(f"\n⚠️  eSMS rejected the message: {result.get('ErrorMessage')}")


async def main():
    print("\n🧪 OTP Service eSMS Integration Test\n")

    service = EsmsService.from_settings()

    if not check_config(service):
        print("\n❌ Configuration test failed. Please fix .env file and try again.")
        return

    answer = input("Do you want to send a test SMS? (y/n): ")
    if answer.lower() == "y":
        await send_test_code(service)
    else:
        print("\n✅ Configuration test passed!")

    print("\n" + "=" * 60 + "\n")


if __name__ == "__main__":
    asyncio.run(main())
