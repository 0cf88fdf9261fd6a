"""
Complete OTP Flow Check
Walks through request -> receive SMS -> verify against a running server.

Usage: python scripts/otp_flow_check.py [BASE_URL]
"""

import json
import sys

import requests

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"


def print_section(title):
    print("\n" + "=" * 80)
    print(f"  {title}")
    print("=" * 80)


def print_response(response):
    print(f"\n📥 Response ({response.status_code}):")
    print(json.dumps(response.json(), indent=2, ensure_ascii=False))


def main():
    print("\n🚀 OTP Service - Complete Flow Check")
    print(f"Server: {BASE_URL}\n")

    # ============================================================================
    # STEP 1: Request a code
    # ============================================================================
    print_section("STEP 1: Request OTP")

    phone = input("Enter a phone number (e.g. 0901234567): ").strip()
    if not phone:
        print("\n❌ Phone number is required")
        return

    response = requests.post(f"{BASE_URL}/otp/request", json={"phone": phone}, timeout=30)
    print_response(response)

    if response.status_code != 200:
        print(f"\n❌ Request failed: {response.json().get('message')}")
        return

    print(f"\n✅ Code sent, valid until {response.json().get('expires_at')}")

    # ============================================================================
    # STEP 2: Verify the code
    # ============================================================================
    print_section("STEP 2: Verify OTP")

    code = input("Enter the code you received by SMS: ").strip()
    response = requests.post(f"{BASE_URL}/otp/verify", json={"phone": phone, "otp": code}, timeout=10)
    print_response(response)

    if response.status_code != 200:
        print(f"\n❌ Verification failed: {response.json().get('message')}")
        return

    # ============================================================================
    # STEP 3: Reuse must fail
    # ============================================================================
    print_section("STEP 3: Reuse the same code")

    response = requests.post(f"{BASE_URL}/otp/verify", json={"phone": phone, "otp": code}, timeout=10)
    print_response(response)

    if response.status_code == 400:
        print("\n✅ Code is single-use")
    else:
        print("\n❌ Code was accepted twice!")


if __name__ == "__main__":
    main()
