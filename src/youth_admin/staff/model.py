from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import Role
from ..permissions.model import Permission


@dataclass(frozen=True)
class StaffUser:
    """Domain entity: a staff account.

    Plain data object; no database access here.
    """

    user_id: int
    email: str
    username: str
    password_hash: str
    role: Role
    permissions: Tuple[Permission, ...] = ()
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    display_name: Optional[str] = None
    title: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    archived_reason: Optional[str] = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def full_name(self) -> str:
        if self.display_name:
            return self.display_name
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.username


PROFILE_FIELDS = ("first_name", "last_name", "display_name", "title", "phone", "bio")
