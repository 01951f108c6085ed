from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from dateutil.relativedelta import relativedelta

from ..common.datetime_utils import parse_datetime
from ..common.validators import positive_int
from ..core.constants import MAX_VALIDITY_YEARS
from ..core.enums import ValidityUnit
from ..core.exceptions import ValidationError
from .model import ValidityPolicy

_UNIT_DELTA = {
    ValidityUnit.DAYS: lambda n: relativedelta(days=n),
    ValidityUnit.MONTHS: lambda n: relativedelta(months=n),
    ValidityUnit.YEARS: lambda n: relativedelta(years=n),
}

# Upper bound per unit, so every expiry stays within datetime range.
_UNIT_LIMIT = {
    ValidityUnit.DAYS: MAX_VALIDITY_YEARS * 366,
    ValidityUnit.MONTHS: MAX_VALIDITY_YEARS * 12,
    ValidityUnit.YEARS: MAX_VALIDITY_YEARS,
}


def _relative(value: int, unit: ValidityUnit) -> ValidityPolicy:
    unit = ValidityUnit(unit)
    if value > _UNIT_LIMIT[unit]:
        raise ValidationError(f"Validity cannot exceed {_UNIT_LIMIT[unit]} {unit.value.lower()}.")
    return ValidityPolicy(valid_for_value=value, valid_for_unit=unit)


def resolve_expiration(submitted_at: datetime, policy: ValidityPolicy) -> Optional[datetime]:
    """When a submission made at ``submitted_at`` stops being valid.

    Month and year steps use calendar arithmetic; a day-of-month past the end
    of the target month is clamped (Jan 31 + 1 month is Feb 28/29).
    """

    if policy.valid_until is not None:
        return policy.valid_until
    if not policy.valid_for_value:
        return None
    return submitted_at + _UNIT_DELTA[policy.unit](policy.valid_for_value)


def _unit(value: Any) -> Optional[ValidityUnit]:
    try:
        return ValidityUnit(value)
    except ValueError:
        return None


def policy_from_payload(payload: Mapping[str, Any]) -> ValidityPolicy:
    """Validity for a new form. ``valid_until`` wins over a relative period."""

    return apply_validity_patch(ValidityPolicy(), payload)


def apply_validity_patch(current: ValidityPolicy, patch: Mapping[str, Any]) -> ValidityPolicy:
    """Apply the validity keys present in ``patch`` to ``current``.

    Precedence, first match wins:

    1. a non-null ``valid_until`` sets a fixed policy;
    2. a positive ``valid_for_value`` (or legacy ``valid_for_days``) sets a
       relative policy, with the unit taken from the patch, then the stored
       unit, then DAYS (always DAYS for ``valid_for_days``);
    3. a ``valid_for_unit`` alone re-units an existing relative policy.

    Otherwise explicit nulls clear only the component they name; clearing
    ``valid_for_value`` clears its unit too. Keys that are absent or carry an
    unusable value leave the stored policy untouched. A relative period longer
    than MAX_VALIDITY_YEARS raises ``ValidationError``.
    """

    until = parse_datetime(patch.get("valid_until"), "valid-until date") if "valid_until" in patch else None
    if until is not None:
        return ValidityPolicy(valid_until=until)

    unit = _unit(patch.get("valid_for_unit")) if "valid_for_unit" in patch else None

    value = positive_int(patch.get("valid_for_value"))
    if value is not None:
        return _relative(value, unit or current.valid_for_unit or ValidityUnit.DAYS)

    days = positive_int(patch.get("valid_for_days"))
    if days is not None:
        return _relative(days, ValidityUnit.DAYS)

    if unit is not None and current.is_relative:
        return _relative(current.valid_for_value, unit)

    valid_until = current.valid_until
    valid_for_value = current.valid_for_value
    valid_for_unit = current.valid_for_unit
    if "valid_until" in patch and patch.get("valid_until") in (None, ""):
        valid_until = None
    for key in ("valid_for_value", "valid_for_days"):
        if key in patch and patch[key] is None:
            valid_for_value = None
            valid_for_unit = None
    if "valid_for_unit" in patch and patch["valid_for_unit"] is None:
        valid_for_unit = None
    return ValidityPolicy(valid_for_value=valid_for_value, valid_for_unit=valid_for_unit, valid_until=valid_until)
