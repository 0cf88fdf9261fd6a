"""
utils/validation_utils.py

Purpose: Input validation

- Vietnamese mobile number validation and normalization
- Blank-value detection for loosely typed request bodies
"""

import re
from typing import Any, Optional

# 0xxxxxxxxx, +84xxxxxxxxx or 84xxxxxxxxx with a mobile prefix 3/5/7/8/9
PHONE_PATTERN = re.compile(r"^(0|\+?84)[35789][0-9]{8}$")


def is_blank(value: Any) -> bool:
    """
    True for None, empty or whitespace-only strings.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_phone(phone: Optional[str]) -> bool:
    """
    Validates a Vietnamese mobile number.

    Examples:
        0901234567, +84901234567, 84901234567
    """
    if not phone:
        return False
    cleaned = re.sub(r"[\s\-.]", "", phone)
    return bool(PHONE_PATTERN.match(cleaned))


def normalize_phone(phone: str) -> str:
    """
    Normalizes a Vietnamese mobile number to the international form
    without plus sign, as eSMS expects it.

    Examples:
        0901234567   -> 84901234567
        +84901234567 -> 84901234567
    """
    cleaned = re.sub(r"[\s\-.]", "", phone)
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    if cleaned.startswith("0"):
        cleaned = "84" + cleaned[1:]
    return cleaned

