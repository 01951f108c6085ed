from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required.")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters.")
    return value


def optional_text(value: Any) -> Optional[str]:
    """Trim a free-text value; blanks and non-strings become None."""
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def positive_int(value: Any) -> Optional[int]:
    """Return value floored to an int when it is a positive number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        return None
    result = int(value)
    return result if result > 0 else None
