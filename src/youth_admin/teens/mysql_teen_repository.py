from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.enums import RegistrationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import EDITABLE_TEXT_FIELDS, Teen
from .repository import TeenRepository

_COLUMNS = """
    teen_id, public_id, first_name, last_name, dob, email, phone,
    address_line1, address_line2, city, state, postal_code, parish,
    emergency_contact_name, emergency_contact_phone,
    parent_name, parent_email, parent_phone, parent_relationship,
    registration_status, registration_json, created_at, archived_at, archived_reason
"""

_UPDATABLE = ("first_name", "last_name", "dob") + EDITABLE_TEXT_FIELDS + ("registration_status",)


def _row_to_teen(r: dict) -> Teen:
    return Teen(
        teen_id=int(r["teen_id"]),
        public_id=r["public_id"],
        first_name=r["first_name"],
        last_name=r["last_name"],
        dob=r["dob"],
        email=r.get("email"),
        phone=r.get("phone"),
        address_line1=r.get("address_line1"),
        address_line2=r.get("address_line2"),
        city=r.get("city"),
        state=r.get("state"),
        postal_code=r.get("postal_code"),
        parish=r.get("parish"),
        emergency_contact_name=r.get("emergency_contact_name"),
        emergency_contact_phone=r.get("emergency_contact_phone"),
        parent_name=r.get("parent_name"),
        parent_email=r.get("parent_email"),
        parent_phone=r.get("parent_phone"),
        parent_relationship=r.get("parent_relationship"),
        registration_status=RegistrationStatus(r["registration_status"]),
        registration_data=from_json(r.get("registration_json")) or {},
        created_at=r.get("created_at"),
        archived_at=r.get("archived_at"),
        archived_reason=r.get("archived_reason"),
    )


class MySQLTeenRepository(TeenRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, teen_id: int) -> Optional[Teen]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teens WHERE teen_id=%s", (int(teen_id),))
            r = fetchone(cur)
            return _row_to_teen(r) if r else None

    def list_teens(
        self,
        *,
        search: Optional[str] = None,
        status: Optional[RegistrationStatus] = None,
        include_archived: bool = False,
        limit: int = 200,
    ) -> Sequence[Teen]:
        where = []
        params: list = []
        if not include_archived:
            where.append("archived_at IS NULL")
        if status is not None:
            where.append("registration_status=%s")
            params.append(status.value)
        if search:
            like = f"%{search.lower()}%"
            where.append(
                "(LOWER(first_name) LIKE %s OR LOWER(last_name) LIKE %s"
                " OR LOWER(email) LIKE %s OR LOWER(parent_email) LIKE %s)"
            )
            params.extend([like, like, like, like])
        clause = " AND ".join(where) or "1=1"
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM teens WHERE {clause} ORDER BY last_name ASC, first_name ASC, teen_id ASC LIMIT %s",
                tuple(params),
            )
            return [_row_to_teen(r) for r in fetchall(cur)]

    def create_teen(self, teen: Teen) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO teens(
                    public_id, first_name, last_name, dob, email, phone,
                    address_line1, address_line2, city, state, postal_code, parish,
                    emergency_contact_name, emergency_contact_phone,
                    parent_name, parent_email, parent_phone, parent_relationship,
                    registration_status, registration_json
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    teen.public_id,
                    teen.first_name,
                    teen.last_name,
                    teen.dob,
                    teen.email,
                    teen.phone,
                    teen.address_line1,
                    teen.address_line2,
                    teen.city,
                    teen.state,
                    teen.postal_code,
                    teen.parish,
                    teen.emergency_contact_name,
                    teen.emergency_contact_phone,
                    teen.parent_name,
                    teen.parent_email,
                    teen.parent_phone,
                    teen.parent_relationship,
                    teen.registration_status.value,
                    to_json(teen.registration_data or {}),
                ),
            )
            return int(cur.lastrowid)

    def update_teen(self, teen_id: int, changes: dict) -> bool:
        columns = [c for c in _UPDATABLE if c in changes]
        values = [
            changes[c].value if isinstance(changes[c], RegistrationStatus) else changes[c] for c in columns
        ]
        if "registration_data" in changes:
            columns.append("registration_json")
            values.append(to_json(changes["registration_data"]))
        if not columns:
            return False
        assignments = ", ".join(f"{c}=%s" for c in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE teens SET {assignments} WHERE teen_id=%s", tuple(values) + (int(teen_id),))
            return cur.rowcount > 0

    def set_archived(self, teen_id: int, *, archived_at: Optional[datetime], reason: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE teens SET archived_at=%s, archived_reason=%s WHERE teen_id=%s",
                (archived_at, reason, int(teen_id)),
            )
            return cur.rowcount > 0

    def archive_born_on_or_before(self, cutoff: date, *, archived_at: datetime, reason: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE teens SET archived_at=%s, archived_reason=%s WHERE archived_at IS NULL AND dob <= %s",
                (archived_at, reason, cutoff),
            )
            return int(cur.rowcount)

    def delete_by_id(self, teen_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM teens WHERE teen_id=%s", (int(teen_id),))
            return cur.rowcount > 0
