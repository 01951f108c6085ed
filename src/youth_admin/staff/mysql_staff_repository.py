from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from ..permissions.model import Permission
from ..permissions.service import normalize_permissions, permission_codes
from .model import PROFILE_FIELDS, StaffUser
from .repository import StaffRepository

_COLUMNS = """
    user_id, email, username, password_hash, role, permissions_json,
    first_name, last_name, display_name, title, phone, bio,
    created_at, archived_at, archived_reason
"""


def _row_to_user(r: dict) -> StaffUser:
    return StaffUser(
        user_id=int(r["user_id"]),
        email=r["email"],
        username=r["username"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        permissions=normalize_permissions(from_json(r.get("permissions_json"))),
        first_name=r.get("first_name"),
        last_name=r.get("last_name"),
        display_name=r.get("display_name"),
        title=r.get("title"),
        phone=r.get("phone"),
        bio=r.get("bio"),
        created_at=r.get("created_at"),
        archived_at=r.get("archived_at"),
        archived_reason=r.get("archived_reason"),
    )


class MySQLStaffRepository(StaffRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[StaffUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def get_by_login(self, login: str) -> Optional[StaffUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE username=%s OR email=%s LIMIT 1",
                (login, login),
            )
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def find_conflicting(self, *, email: str, username: str) -> Optional[StaffUser]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM users WHERE email=%s OR username=%s LIMIT 1",
                (email, username),
            )
            r = fetchone(cur)
            return _row_to_user(r) if r else None

    def list_staff(self, *, include_archived: bool = False) -> Sequence[StaffUser]:
        where = "1=1" if include_archived else "archived_at IS NULL"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE {where} ORDER BY created_at ASC, user_id ASC")
            return [_row_to_user(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(email, username, password_hash, role, permissions_json, first_name, last_name)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    email,
                    username,
                    password_hash,
                    role.value,
                    to_json(permission_codes(permissions)),
                    first_name,
                    last_name,
                ),
            )
            return int(cur.lastrowid)

    def update_profile(self, user_id: int, changes: dict) -> bool:
        columns = [k for k in PROFILE_FIELDS if k in changes]
        if not columns:
            return False
        assignments = ", ".join(f"{c}=%s" for c in columns)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {assignments} WHERE user_id=%s",
                tuple(changes[c] for c in columns) + (int(user_id),),
            )
            return cur.rowcount > 0

    def set_permissions(self, user_id: int, permissions: Sequence[Permission]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET permissions_json=%s WHERE user_id=%s",
                (to_json(permission_codes(permissions)), int(user_id)),
            )
            return cur.rowcount > 0

    def set_archived(self, user_id: int, *, archived_at: Optional[datetime], reason: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET archived_at=%s, archived_reason=%s WHERE user_id=%s",
                (archived_at, reason, int(user_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
