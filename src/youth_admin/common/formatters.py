from __future__ import annotations

import re

from ..core.exceptions import InvalidEmail, InvalidPhone

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGITS = re.compile(r"\D")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))


def normalize_email(value: str, field_name: str = "email") -> str:
    trimmed = (value or "").strip()
    if not is_valid_email(trimmed):
        raise InvalidEmail(f"Invalid email for {field_name}.")
    return trimmed


def format_phone(value: str, field_name: str = "phone") -> str:
    """Format a 10-digit US number as (AAA)PPP-LLLL.

    Any punctuation is ignored; anything other than exactly ten digits fails.
    """

    digits = _NON_DIGITS.sub("", value or "")
    if len(digits) != 10:
        raise InvalidPhone(f"Invalid phone number for {field_name}.")
    return f"({digits[:3]}){digits[3:6]}-{digits[6:]}"
