from __future__ import annotations

from datetime import datetime
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_clause
from .model import AttendanceRecord
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_between(self, *, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT attendance_id, teen_id, check_in_at, check_out_at
                FROM attendance_records
                WHERE check_in_at >= %s AND check_in_at < %s
                ORDER BY check_in_at ASC, attendance_id ASC
                """,
                (start, end),
            )
            return [
                AttendanceRecord(
                    attendance_id=int(r["attendance_id"]),
                    teen_id=int(r["teen_id"]),
                    check_in_at=r["check_in_at"],
                    check_out_at=r.get("check_out_at"),
                )
                for r in fetchall(cur)
            ]

    def open_teen_ids(self, teen_ids: Sequence[int], *, start: datetime, end: datetime) -> set[int]:
        if not teen_ids:
            return set()
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT teen_id
                FROM attendance_records
                WHERE teen_id IN ({in_clause(teen_ids)})
                  AND check_in_at >= %s AND check_in_at < %s
                  AND check_out_at IS NULL
                """,
                tuple(int(t) for t in teen_ids) + (start, end),
            )
            return {int(r["teen_id"]) for r in fetchall(cur)}

    def create_checkins(self, teen_ids: Sequence[int], *, check_in_at: datetime) -> int:
        if not teen_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                "INSERT INTO attendance_records(teen_id, check_in_at) VALUES(%s,%s)",
                [(int(t), check_in_at) for t in teen_ids],
            )
            return len(teen_ids)

    def close_open(self, teen_ids: Sequence[int], *, start: datetime, end: datetime, check_out_at: datetime) -> int:
        if not teen_ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_records
                SET check_out_at=%s
                WHERE teen_id IN ({in_clause(teen_ids)})
                  AND check_in_at >= %s AND check_in_at < %s
                  AND check_out_at IS NULL
                """,
                (check_out_at,) + tuple(int(t) for t in teen_ids) + (start, end),
            )
            return int(cur.rowcount)
