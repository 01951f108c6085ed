from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional, Sequence, Tuple

from ..common.datetime_utils import start_of_day
from ..core.exceptions import ValidationError
from ..permissions.model import Principal
from ..permissions.service import authorize
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _today_window(now: datetime) -> Tuple[datetime, datetime]:
    start = start_of_day(now)
    return start, start + timedelta(days=1)


def _teen_ids(raw: Any) -> list[int]:
    """Keep first-seen order, drop blanks and anything that is not an id."""

    if not isinstance(raw, (list, tuple)):
        return []
    ids: list[int] = []
    for value in raw:
        if isinstance(value, bool) or not value:
            continue
        try:
            teen_id = int(value)
        except (TypeError, ValueError):
            continue
        if teen_id not in ids:
            ids.append(teen_id)
    return ids


class AttendanceService:
    """Kiosk check-in/check-out for the current day."""

    def __init__(self, attendance: AttendanceRepository):
        self._attendance = attendance

    def today(self, *, principal: Optional[Principal], now: Optional[datetime] = None) -> Sequence[AttendanceRecord]:
        authorize(principal, "kiosk_view")
        start, end = _today_window(now or datetime.now())
        return self._attendance.list_between(start=start, end=end)

    def check_in(self, *, principal: Optional[Principal], teen_ids: Any, now: Optional[datetime] = None) -> int:
        authorize(principal, "kiosk_edit")
        ids = _teen_ids(teen_ids)
        if not ids:
            raise ValidationError("No teens selected.")

        now = now or datetime.now()
        start, end = _today_window(now)
        already_open = self._attendance.open_teen_ids(ids, start=start, end=end)
        to_create = [t for t in ids if t not in already_open]
        created = self._attendance.create_checkins(to_create, check_in_at=now)
        logger.info("kiosk check-in: %s created, %s already open", created, len(already_open))
        return created

    def check_out(self, *, principal: Optional[Principal], teen_ids: Any, now: Optional[datetime] = None) -> int:
        authorize(principal, "kiosk_edit")
        ids = _teen_ids(teen_ids)
        if not ids:
            raise ValidationError("No teens selected.")

        now = now or datetime.now()
        start, end = _today_window(now)
        closed = self._attendance.close_open(ids, start=start, end=end, check_out_at=now)
        logger.info("kiosk check-out: %s closed", closed)
        return closed
