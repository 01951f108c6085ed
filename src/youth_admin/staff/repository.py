from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from ..permissions.model import Permission
from .model import StaffUser


class StaffRepository(Protocol):
    """Repository contract for staff accounts.

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[StaffUser]:
        raise NotImplementedError

    def get_by_login(self, login: str) -> Optional[StaffUser]:
        """Look up by username or email."""

        raise NotImplementedError

    def find_conflicting(self, *, email: str, username: str) -> Optional[StaffUser]:
        raise NotImplementedError

    def list_staff(self, *, include_archived: bool = False) -> Sequence[StaffUser]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        username: str,
        password_hash: str,
        role: Role,
        first_name: str,
        last_name: str,
        permissions: Sequence[Permission],
    ) -> int:
        raise NotImplementedError

    def update_profile(self, user_id: int, changes: dict) -> bool:
        """Apply profile column changes (keys from PROFILE_FIELDS)."""

        raise NotImplementedError

    def set_permissions(self, user_id: int, permissions: Sequence[Permission]) -> bool:
        raise NotImplementedError

    def set_archived(self, user_id: int, *, archived_at: Optional[datetime], reason: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        raise NotImplementedError
