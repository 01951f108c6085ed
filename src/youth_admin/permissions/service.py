"""Tiered permission checks.

A grant of ``forms_manage`` satisfies a requirement of ``forms_edit`` or
``forms_view``: levels within a module are compared by rank.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Tuple, Union

from ..core.exceptions import AuthenticationError, AuthorizationError
from .model import LEGACY_PERMISSIONS, Permission, Principal

PermissionLike = Union[Permission, str]


def _coerce(entry: Any) -> Optional[Permission]:
    if isinstance(entry, Permission):
        return entry
    if not isinstance(entry, str):
        return None
    return Permission.parse(entry) or LEGACY_PERMISSIONS.get(entry)


def normalize_permissions(raw: Any) -> Tuple[Permission, ...]:
    """Turn stored or submitted permission data into a clean, deduplicated tuple.

    Unknown entries are dropped and legacy bare module names are upgraded to
    ``{module}_manage``. First-seen order is kept, so the result is stable and
    normalizing twice returns the same tuple.
    """

    if not isinstance(raw, (list, tuple, set, frozenset)):
        return ()
    seen: dict[Permission, None] = {}
    for entry in raw:
        permission = _coerce(entry)
        if permission is not None:
            seen.setdefault(permission, None)
    return tuple(seen)


def has_permission(granted: Iterable[PermissionLike], required: PermissionLike) -> bool:
    needed = _coerce(required)
    if needed is None:
        raise ValueError(f"Unknown permission: {required!r}")
    for entry in granted:
        permission = _coerce(entry)
        if permission and permission.module == needed.module and permission.level.rank >= needed.level.rank:
            return True
    return False


def can(principal: Optional[Principal], required: PermissionLike) -> bool:
    if principal is None:
        return False
    if principal.is_admin:
        return True
    return has_permission(principal.permissions, required)


def authorize(principal: Optional[Principal], required: PermissionLike) -> Principal:
    """Return the principal if it may act at ``required``; raise otherwise."""

    if principal is None:
        raise AuthenticationError("Sign in to continue.")
    if not can(principal, required):
        raise AuthorizationError("You do not have permission to do that.")
    return principal


def permission_codes(permissions: Iterable[Permission]) -> list[str]:
    return [p.code for p in permissions]
