"""
utils/time_utils.py

Purpose: Time and expiry helpers

- Timezone-aware UTC timestamps
- OTP expiry calculations and checks
"""

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Returns the current time as a timezone-aware UTC datetime.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """
    Treats naive datetimes as UTC (that is how MongoDB stores them).
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def calculate_otp_expiry(issued_at: datetime, validity_seconds: int = 300) -> datetime:
    """
    Calculates OTP expiry timestamp.
    """
    return ensure_utc(issued_at) + timedelta(seconds=validity_seconds)


def is_otp_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """
    Checks if an OTP has expired. A code expiring exactly now is expired.
    """
    now = ensure_utc(now) if now else utc_now()
    return ensure_utc(expires_at) <= now

