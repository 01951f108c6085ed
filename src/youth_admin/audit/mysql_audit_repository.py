from __future__ import annotations

from typing import Sequence

from ..core.enums import AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_json, to_json
from .model import AuditEntry
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, entry: AuditEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(user_id, action, entity_type, entity_id, before_json, after_json)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(entry.user_id),
                    entry.action.value,
                    entry.entity_type,
                    int(entry.entity_id),
                    to_json(entry.before),
                    to_json(entry.after),
                ),
            )
            return int(cur.lastrowid)

    def list_for_entity(self, *, entity_type: str, entity_id: int, limit: int = 200) -> Sequence[AuditEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT audit_id, user_id, action, entity_type, entity_id, before_json, after_json, created_at
                FROM audit_logs
                WHERE entity_type=%s AND entity_id=%s
                ORDER BY created_at DESC, audit_id DESC
                LIMIT %s
                """,
                (entity_type, int(entity_id), int(limit)),
            )
            return [
                AuditEntry(
                    audit_id=int(r["audit_id"]),
                    user_id=int(r["user_id"]),
                    action=AuditAction(r["action"]),
                    entity_type=r["entity_type"],
                    entity_id=int(r["entity_id"]),
                    before=from_json(r.get("before_json")),
                    after=from_json(r.get("after_json")),
                    created_at=r["created_at"],
                )
                for r in fetchall(cur)
            ]
