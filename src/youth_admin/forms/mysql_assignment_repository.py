from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import IntegrityError, db_cursor, fetchall, fetchone, from_json, in_clause, to_json
from .model import FormAssignment, FormSubmission
from .repository import AssignmentRepository

_ASSIGNMENT_COLUMNS = """
    assignment_id, form_id, teen_id, assigned_by_id, due_at, required,
    created_at, completed_at, archived_at
"""

_SUBMISSION_COLUMNS = """
    submission_id, assignment_id, form_id, teen_id, submitted_by_id,
    data_json, submitted_at, expires_at
"""


def _row_to_assignment(r: dict) -> FormAssignment:
    return FormAssignment(
        assignment_id=int(r["assignment_id"]),
        form_id=int(r["form_id"]),
        teen_id=int(r["teen_id"]),
        assigned_by_id=r.get("assigned_by_id"),
        due_at=r.get("due_at"),
        required=bool(r["required"]),
        created_at=r.get("created_at"),
        completed_at=r.get("completed_at"),
        archived_at=r.get("archived_at"),
    )


def _row_to_submission(r: dict) -> FormSubmission:
    return FormSubmission(
        submission_id=int(r["submission_id"]),
        assignment_id=int(r["assignment_id"]),
        form_id=int(r["form_id"]),
        teen_id=int(r["teen_id"]),
        submitted_by_id=r.get("submitted_by_id"),
        data=from_json(r.get("data_json")) or {},
        submitted_at=r["submitted_at"],
        expires_at=r.get("expires_at"),
    )


class MySQLAssignmentRepository(AssignmentRepository):
    """Assignments and submissions.

    Two store-level guards back the lifecycle rules: a UNIQUE generated
    ``live_key`` on non-archived assignments (one live row per form and teen)
    and a UNIQUE ``form_submissions.assignment_id`` (one submission per
    assignment).
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_assignment(self, assignment_id: int) -> Optional[FormAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_ASSIGNMENT_COLUMNS} FROM form_assignments WHERE assignment_id=%s",
                (int(assignment_id),),
            )
            r = fetchone(cur)
            return _row_to_assignment(r) if r else None

    def latest_live_assignment(self, *, form_id: int, teen_id: int) -> Optional[FormAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM form_assignments
                WHERE form_id=%s AND teen_id=%s AND archived_at IS NULL
                ORDER BY created_at DESC, assignment_id DESC
                LIMIT 1
                """,
                (int(form_id), int(teen_id)),
            )
            r = fetchone(cur)
            return _row_to_assignment(r) if r else None

    def list_live_for_teen(self, teen_id: int) -> Sequence[FormAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_ASSIGNMENT_COLUMNS}
                FROM form_assignments
                WHERE teen_id=%s AND archived_at IS NULL
                ORDER BY created_at DESC, assignment_id DESC
                """,
                (int(teen_id),),
            )
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def create_assignment(
        self,
        *,
        form_id: int,
        teen_id: int,
        assigned_by_id: int,
        due_at: Optional[datetime],
        required: bool,
        supersede_id: Optional[int],
        now: datetime,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                if supersede_id is not None:
                    cur.execute(
                        "UPDATE form_assignments SET archived_at=%s WHERE assignment_id=%s AND archived_at IS NULL",
                        (now, int(supersede_id)),
                    )
                    if cur.rowcount == 0:
                        return None
                cur.execute(
                    """
                    INSERT INTO form_assignments(form_id, teen_id, assigned_by_id, due_at, required, created_at)
                    VALUES(%s,%s,%s,%s,%s,%s)
                    """,
                    (int(form_id), int(teen_id), int(assigned_by_id), due_at, bool(required), now),
                )
                return int(cur.lastrowid)
        except IntegrityError:
            # live_key collision: another live assignment for this pair exists.
            return None

    def archive_pending(self, assignment_id: int, *, now: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE form_assignments a
                SET a.archived_at=%s
                WHERE a.assignment_id=%s
                  AND a.archived_at IS NULL
                  AND a.completed_at IS NULL
                  AND NOT EXISTS (SELECT 1 FROM form_submissions s WHERE s.assignment_id = a.assignment_id)
                """,
                (now, int(assignment_id)),
            )
            return cur.rowcount > 0

    def record_submission(
        self,
        *,
        assignment_id: int,
        submitted_by_id: int,
        data: Dict[str, Any],
        submitted_at: datetime,
        expires_at: Optional[datetime],
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    f"SELECT {_ASSIGNMENT_COLUMNS} FROM form_assignments WHERE assignment_id=%s FOR UPDATE",
                    (int(assignment_id),),
                )
                r = fetchone(cur)
                if not r or r.get("archived_at") is not None or r.get("completed_at") is not None:
                    return None
                assignment = _row_to_assignment(r)

                cur.execute(
                    """
                    INSERT INTO form_submissions(
                        assignment_id, form_id, teen_id, submitted_by_id, data_json, submitted_at, expires_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        assignment.assignment_id,
                        assignment.form_id,
                        assignment.teen_id,
                        int(submitted_by_id),
                        to_json(data),
                        submitted_at,
                        expires_at,
                    ),
                )
                submission_id = int(cur.lastrowid)

                cur.execute(
                    "UPDATE form_assignments SET completed_at=%s WHERE assignment_id=%s AND completed_at IS NULL",
                    (submitted_at, assignment.assignment_id),
                )
                if cur.rowcount == 0:
                    raise IntegrityError(msg="assignment completed concurrently")
                return submission_id
        except IntegrityError:
            # Duplicate form_submissions.assignment_id; the transaction was rolled back.
            return None

    def get_submission(self, submission_id: int) -> Optional[FormSubmission]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_SUBMISSION_COLUMNS} FROM form_submissions WHERE submission_id=%s",
                (int(submission_id),),
            )
            r = fetchone(cur)
            return _row_to_submission(r) if r else None

    def latest_submission(self, assignment_id: int) -> Optional[FormSubmission]:
        return self.latest_submissions([assignment_id]).get(int(assignment_id))

    def latest_submissions(self, assignment_ids: Sequence[int]) -> Dict[int, FormSubmission]:
        if not assignment_ids:
            return {}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SUBMISSION_COLUMNS}
                FROM form_submissions
                WHERE assignment_id IN ({in_clause(assignment_ids)})
                ORDER BY submitted_at ASC, submission_id ASC
                """,
                tuple(int(a) for a in assignment_ids),
            )
            # Later rows overwrite earlier ones, leaving the latest per assignment.
            return {int(r["assignment_id"]): _row_to_submission(r) for r in fetchall(cur)}
