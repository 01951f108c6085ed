from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def list_between(self, *, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        """Records whose check-in falls in ``[start, end)``, oldest first."""

        raise NotImplementedError

    def open_teen_ids(self, teen_ids: Sequence[int], *, start: datetime, end: datetime) -> set[int]:
        raise NotImplementedError

    def create_checkins(self, teen_ids: Sequence[int], *, check_in_at: datetime) -> int:
        raise NotImplementedError

    def close_open(self, teen_ids: Sequence[int], *, start: datetime, end: datetime, check_out_at: datetime) -> int:
        """Stamp ``check_out_at`` on open records in the window; return how many closed."""

        raise NotImplementedError
