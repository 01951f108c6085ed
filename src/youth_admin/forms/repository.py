from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

from ..core.enums import FormCategory, FormStatus
from .model import FieldDraft, FormAssignment, FormDefinition, FormSubmission, ValidityPolicy


class FormRepository(Protocol):
    """Form templates and their ordered fields."""

    def list_forms(self) -> Sequence[FormDefinition]:
        """Newest first, each with its live fields."""

        raise NotImplementedError

    def get_form(self, form_id: int) -> Optional[FormDefinition]:
        """The form with its live fields in display order."""

        raise NotImplementedError

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
        raise NotImplementedError

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
        """Apply a metadata patch, field upserts and field archival atomically.

        Drafts with a ``field_id`` update that field in place; drafts without
        one are inserted. ``removed_field_ids`` are soft-archived.
        """

        raise NotImplementedError

    def set_status(self, form_id: int, status: FormStatus) -> bool:
        raise NotImplementedError


class AssignmentRepository(Protocol):
    """Assignments and their one-shot submissions."""

    def get_assignment(self, assignment_id: int) -> Optional[FormAssignment]:
        raise NotImplementedError

    def latest_live_assignment(self, *, form_id: int, teen_id: int) -> Optional[FormAssignment]:
        raise NotImplementedError

    def list_live_for_teen(self, teen_id: int) -> Sequence[FormAssignment]:
        """Non-archived assignments for a teen, newest first."""

        raise NotImplementedError

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
        """Archive ``supersede_id`` (if given) and insert the new assignment in one unit.

        Returns None when another live assignment for the pair won the race.
        """

        raise NotImplementedError

    def archive_pending(self, assignment_id: int, *, now: datetime) -> bool:
        """Archive an assignment that is live and has no submission."""

        raise NotImplementedError

    def record_submission(
        self,
        *,
        assignment_id: int,
        submitted_by_id: int,
        data: Dict[str, Any],
        submitted_at: datetime,
        expires_at: Optional[datetime],
    ) -> Optional[int]:
        """Insert the submission and stamp the assignment complete in one unit.

        Returns None, with nothing written, when the assignment is no longer
        open (already completed, archived, or a concurrent submit won).
        """

        raise NotImplementedError

    def get_submission(self, submission_id: int) -> Optional[FormSubmission]:
        raise NotImplementedError

    def latest_submission(self, assignment_id: int) -> Optional[FormSubmission]:
        raise NotImplementedError

    def latest_submissions(self, assignment_ids: Sequence[int]) -> Dict[int, FormSubmission]:
        raise NotImplementedError
