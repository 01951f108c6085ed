from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import RegistrationStatus
from .model import Teen


class TeenRepository(Protocol):
    """Repository contract for teen records."""

    def get_by_id(self, teen_id: int) -> Optional[Teen]:
        raise NotImplementedError

    def list_teens(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[RegistrationStatus] = None,
        include_archived: bool = False,
        limit: int = 200,
    ) -> Sequence[Teen]:
        """Sorted by last then first name. ``search`` matches names and emails, case-insensitively."""

        raise NotImplementedError

    def create_teen(self, teen: Teen) -> int:
        """Insert ``teen`` (its ``teen_id`` is ignored) and return the new id."""

        raise NotImplementedError

    def update_teen(self, teen_id: int, changes: dict) -> bool:
        raise NotImplementedError

    def set_archived(self, teen_id: int, *, archived_at: Optional[datetime], reason: Optional[str]) -> bool:
        raise NotImplementedError

    def archive_born_on_or_before(self, cutoff: date, *, archived_at: datetime, reason: str) -> int:
        """Archive every live teen with ``dob <= cutoff``; return how many changed."""

        raise NotImplementedError

    def delete_by_id(self, teen_id: int) -> bool:
        raise NotImplementedError
