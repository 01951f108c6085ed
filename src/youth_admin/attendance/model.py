from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one kiosk visit by a teen."""

    attendance_id: int
    teen_id: int
    check_in_at: datetime
    check_out_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.check_out_at is None
