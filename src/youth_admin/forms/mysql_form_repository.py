from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..core.enums import FieldType, FormCategory, FormStatus, ValidityUnit
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, in_clause, to_json
from .model import FieldDraft, FieldOptions, FormDefinition, FormField, ValidityPolicy
from .repository import FormRepository

_FORM_COLUMNS = """
    form_id, name, description, status, category,
    valid_for_value, valid_for_unit, valid_until, created_by_id, created_at
"""

_FIELD_COLUMNS = """
    field_id, form_id, label, field_type, required, help_text, options_json, sort_order, archived_at
"""

_METADATA = ("name", "description", "status", "category")


def _row_to_field(r: dict) -> FormField:
    return FormField(
        field_id=int(r["field_id"]),
        form_id=int(r["form_id"]),
        label=r["label"],
        field_type=FieldType(r["field_type"]),
        required=bool(r["required"]),
        help_text=r.get("help_text"),
        options=FieldOptions.from_json(from_json(r.get("options_json"))),
        order=int(r["sort_order"]),
        archived_at=r.get("archived_at"),
    )


def _row_to_form(r: dict, fields: Sequence[FormField]) -> FormDefinition:
    unit = r.get("valid_for_unit")
    return FormDefinition(
        form_id=int(r["form_id"]),
        name=r["name"],
        description=r.get("description"),
        status=FormStatus(r["status"]),
        category=FormCategory(r["category"]),
        validity=ValidityPolicy(
            valid_for_value=r.get("valid_for_value"),
            valid_for_unit=ValidityUnit(unit) if unit else None,
            valid_until=r.get("valid_until"),
        ),
        fields=tuple(fields),
        created_by_id=r.get("created_by_id"),
        created_at=r.get("created_at"),
    )


def _options_json(draft: FieldDraft) -> Optional[str]:
    return to_json(draft.options.to_json()) if draft.options else None


class MySQLFormRepository(FormRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _live_fields(self, cur, form_ids: Sequence[int]) -> Dict[int, List[FormField]]:
        by_form: Dict[int, List[FormField]] = {int(f): [] for f in form_ids}
        if not form_ids:
            return by_form
        cur.execute(
            f"""
            SELECT {_FIELD_COLUMNS}
            FROM form_fields
            WHERE form_id IN ({in_clause(form_ids)}) AND archived_at IS NULL
            ORDER BY form_id ASC, sort_order ASC, field_id ASC
            """,
            tuple(int(f) for f in form_ids),
        )
        for r in fetchall(cur):
            field = _row_to_field(r)
            by_form[field.form_id].append(field)
        return by_form

    def list_forms(self) -> Sequence[FormDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_FORM_COLUMNS} FROM forms ORDER BY created_at DESC, form_id DESC")
            rows = fetchall(cur)
            fields = self._live_fields(cur, [int(r["form_id"]) for r in rows])
            return [_row_to_form(r, fields[int(r["form_id"])]) for r in rows]

    def get_form(self, form_id: int) -> Optional[FormDefinition]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_FORM_COLUMNS} FROM forms WHERE form_id=%s", (int(form_id),))
            r = fetchone(cur)
            if not r:
                return None
            fields = self._live_fields(cur, [int(form_id)])
            return _row_to_form(r, fields[int(form_id)])

    def create_form(
        self,
        *,
        name: str,
        description: Optional[str],
        status: FormStatus,
        category: FormCategory,
        validity: ValidityPolicy,
        created_by_id: int,
        fields: Sequence[FieldDraft],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO forms(name, description, status, category, valid_for_value, valid_for_unit, valid_until, created_by_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    name,
                    description,
                    status.value,
                    category.value,
                    validity.valid_for_value,
                    validity.valid_for_unit.value if validity.valid_for_unit else None,
                    validity.valid_until,
                    int(created_by_id),
                ),
            )
            form_id = int(cur.lastrowid)
            for draft in fields:
                self._insert_field(cur, form_id, draft)
            return form_id

    def update_form(
        self,
        form_id: int,
        *,
        changes: Mapping[str, Any],
        validity: ValidityPolicy,
        fields: Sequence[FieldDraft],
        removed_field_ids: Sequence[int],
        now: datetime,
    ) -> bool:
        columns = [c for c in _METADATA if c in changes]
        values: List[Any] = [getattr(changes[c], "value", changes[c]) for c in columns]
        columns += ["valid_for_value", "valid_for_unit", "valid_until"]
        values += [
            validity.valid_for_value,
            validity.valid_for_unit.value if validity.valid_for_unit else None,
            validity.valid_until,
        ]
        assignments = ", ".join(f"{c}=%s" for c in columns)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"UPDATE forms SET {assignments} WHERE form_id=%s", tuple(values) + (int(form_id),))
            if cur.rowcount == 0:
                return False

            for draft in fields:
                if draft.field_id is None:
                    self._insert_field(cur, int(form_id), draft)
                    continue
                cur.execute(
                    """
                    UPDATE form_fields
                    SET label=%s, field_type=%s, required=%s, help_text=%s, options_json=%s, sort_order=%s, archived_at=NULL
                    WHERE field_id=%s AND form_id=%s
                    """,
                    (
                        draft.label,
                        draft.field_type.value,
                        bool(draft.required),
                        draft.help_text,
                        _options_json(draft),
                        int(draft.order),
                        int(draft.field_id),
                        int(form_id),
                    ),
                )

            if removed_field_ids:
                cur.execute(
                    f"""
                    UPDATE form_fields
                    SET archived_at=%s
                    WHERE form_id=%s AND archived_at IS NULL AND field_id IN ({in_clause(removed_field_ids)})
                    """,
                    (now, int(form_id)) + tuple(int(i) for i in removed_field_ids),
                )
            return True

    def set_status(self, form_id: int, status: FormStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE forms SET status=%s WHERE form_id=%s", (status.value, int(form_id)))
            return cur.rowcount > 0

    @staticmethod
    def _insert_field(cur, form_id: int, draft: FieldDraft) -> None:
        cur.execute(
            """
            INSERT INTO form_fields(form_id, label, field_type, required, help_text, options_json, sort_order)
            VALUES(%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(form_id),
                draft.label,
                draft.field_type.value,
                bool(draft.required),
                draft.help_text,
                _options_json(draft),
                int(draft.order),
            ),
        )
