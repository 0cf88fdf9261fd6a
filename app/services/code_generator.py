"""
app/services/code_generator.py

Purpose: Numeric one-time code generation
"""

import secrets
import string

MIN_CODE_LENGTH = 4


def generate_code(length: int = 6) -> str:
    """
    Generates a numeric code of exactly `length` digits using a CSPRNG.
    Leading zeros are kept, so every code in the space is equally likely.

    Raises:
        ValueError: If length is below MIN_CODE_LENGTH
    """
    if length < MIN_CODE_LENGTH:
        raise ValueError(f"Code length must be at least {MIN_CODE_LENGTH}")
    return "".join(secrets.choice(string.digits) for _ in range(length))
