from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import parse_datetime
from ..common.validators import optional_text, positive_int
from ..core.enums import AssignmentStatus, FieldType, FormCategory, FormStatus
from ..core.exceptions import AlreadyAssigned, AlreadyCompleted, ConflictError, NotFoundError, ValidationError
from ..permissions.model import Principal
from ..permissions.service import authorize
from ..teens.repository import TeenRepository
from .expiration import apply_validity_patch, policy_from_payload, resolve_expiration
from .field_types import drawn_signature, format_field_value, normalize_field_drafts, validate_submission
from .lifecycle import derive_status, may_supersede
from .model import FieldDraft, FormAssignment, FormDefinition, FormField, FormSubmission
from .repository import AssignmentRepository, FormRepository
from .variables import build_variable_map, resolve_variables, variable_catalog

logger = logging.getLogger(__name__)


def _enum_or_none(enum_cls, value: Any):
    try:
        return enum_cls(value)
    except ValueError:
        return None


class FormService:
    """Use case: build and maintain form templates."""

    def __init__(self, forms: FormRepository):
        self._forms = forms

    def list_forms(self, *, principal: Optional[Principal]) -> Sequence[FormDefinition]:
        authorize(principal, "forms_view")
        return self._forms.list_forms()

    def get_form(self, *, principal: Optional[Principal], form_id: int) -> FormDefinition:
        authorize(principal, "forms_view")
        return self._require(form_id)

    def variables(self, *, principal: Optional[Principal]) -> List[dict]:
        authorize(principal, "forms_view")
        return variable_catalog()

    def create_form(self, *, principal: Optional[Principal], payload: Mapping[str, Any]) -> FormDefinition:
        authorize(principal, "forms_edit")

        name = optional_text(payload.get("name"))
        if not name:
            raise ValidationError("Form name is required.")

        form_id = self._forms.create_form(
            name=name,
            description=optional_text(payload.get("description")),
            status=_enum_or_none(FormStatus, payload.get("status")) or FormStatus.ACTIVE,
            category=_enum_or_none(FormCategory, payload.get("category")) or FormCategory.GENERAL,
            validity=policy_from_payload(payload),
            created_by_id=principal.user_id,
            fields=normalize_field_drafts(payload.get("fields")),
        )
        logger.info("form %s created by %s", form_id, principal.user_id)
        return self._require(form_id)

    def update_form(
        self,
        *,
        principal: Optional[Principal],
        form_id: int,
        payload: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> FormDefinition:
        """Patch metadata and validity, upsert fields, archive removed fields.

        The incoming field list defines the new order. Drafts naming a field id
        that is not a live field of this form are ignored; live fields the
        payload leaves out keep their relative order after the listed ones.
        """

        authorize(principal, "forms_edit")
        existing = self._require(form_id)

        changes: Dict[str, Any] = {}
        if isinstance(payload.get("name"), str):
            name = payload["name"].strip()
            if not name:
                raise ValidationError("Form name is required.")
            changes["name"] = name
        if "description" in payload:
            changes["description"] = optional_text(payload.get("description"))
        status = _enum_or_none(FormStatus, payload.get("status"))
        if status is not None:
            if status != existing.status:
                # Archiving or restoring carries the archive gate.
                authorize(principal, "forms_manage")
            changes["status"] = status
        category = _enum_or_none(FormCategory, payload.get("category"))
        if category is not None:
            changes["category"] = category

        validity = apply_validity_patch(existing.validity, payload)

        live_ids = {f.field_id for f in existing.live_fields}
        raw_removed = payload.get("removed_field_ids")
        removed = [i for i in (positive_int(v) for v in (raw_removed if isinstance(raw_removed, list) else [])) if i in live_ids]

        drafts = [d for d in normalize_field_drafts(payload.get("fields")) if d.field_id is None or d.field_id in live_ids]
        drafts += self._carry_over(existing, drafts, removed)

        self._forms.update_form(
            existing.form_id,
            changes=changes,
            validity=validity,
            fields=drafts,
            removed_field_ids=removed,
            now=now or datetime.now(),
        )
        return self._require(form_id)

    def archive_form(self, *, principal: Optional[Principal], form_id: int) -> FormDefinition:
        authorize(principal, "forms_manage")
        existing = self._require(form_id)
        self._forms.set_status(existing.form_id, FormStatus.ARCHIVED)
        logger.info("form %s archived by %s", existing.form_id, principal.user_id)
        return self._require(form_id)

    @staticmethod
    def _carry_over(existing: FormDefinition, drafts: Sequence[FieldDraft], removed: Sequence[int]) -> List[FieldDraft]:
        mentioned = {d.field_id for d in drafts if d.field_id is not None}
        next_order = max((d.order for d in drafts), default=-1) + 1
        carried: List[FieldDraft] = []
        for f in existing.live_fields:
            if f.field_id in mentioned or f.field_id in removed:
                continue
            carried.append(
                FieldDraft(
                    field_id=f.field_id,
                    label=f.label,
                    field_type=f.field_type,
                    required=f.required,
                    help_text=f.help_text,
                    options=f.options,
                    order=next_order + len(carried),
                )
            )
        return carried

    def _require(self, form_id: int) -> FormDefinition:
        form = self._forms.get_form(int(form_id))
        if not form:
            raise NotFoundError("Form not found.")
        return form


@dataclass(frozen=True)
class FieldView:
    """A live field with its text resolved for one teen."""

    field: FormField
    label: str
    help_text: str
    value: Optional[str] = None
    signature_url: Optional[str] = None

    @property
    def is_section(self) -> bool:
        return self.field.field_type == FieldType.SECTION


@dataclass(frozen=True)
class AssignmentView:
    assignment: FormAssignment
    form: FormDefinition
    submission: Optional[FormSubmission]
    status: AssignmentStatus
    fields: Sequence[FieldView]


@dataclass(frozen=True)
class PrintableSubmission:
    form_name: str
    teen_name: str
    submitted_at: datetime
    fields: Sequence[FieldView]


def _field_views(
    form: FormDefinition,
    variables: Mapping[str, str],
    submission: Optional[FormSubmission],
) -> List[FieldView]:
    data = submission.data if submission else {}
    views: List[FieldView] = []
    for f in form.live_fields:
        views.append(
            FieldView(
                field=f,
                label=resolve_variables(f.label, variables, data),
                help_text=resolve_variables(f.help_text, variables, data),
                value=format_field_value(f, data, variables) if submission else None,
                signature_url=drawn_signature(f, data) if submission else None,
            )
        )
    return views


class AssignmentService:
    """Use case: assign forms to teens and record their one submission."""

    def __init__(self, forms: FormRepository, assignments: AssignmentRepository, teens: TeenRepository):
        self._forms = forms
        self._assignments = assignments
        self._teens = teens

    def assign(
        self,
        *,
        principal: Optional[Principal],
        teen_id: Any,
        form_id: Any,
        due_at: Any = None,
        required: bool = True,
        allow_reassign: bool = False,
        now: Optional[datetime] = None,
    ) -> FormAssignment:
        authorize(principal, "forms_edit")
        teen_pk = positive_int(teen_id)
        form_pk = positive_int(form_id)
        if not teen_pk or not form_pk:
            raise ValidationError("Missing teen or form id.")

        teen = self._teens.get_by_id(teen_pk)
        form = self._forms.get_form(form_pk)
        if not teen or not form:
            raise NotFoundError("Invalid teen or form.")
        if form.is_archived:
            raise ConflictError("Archived forms cannot be assigned.")

        due = parse_datetime(due_at, "due date")
        now = now or datetime.now()

        supersede_id = None
        prior = self._assignments.latest_live_assignment(form_id=form.form_id, teen_id=teen.teen_id)
        if prior:
            prior_submission = self._assignments.latest_submission(prior.assignment_id)
            if not may_supersede(prior, prior_submission, allow_reassign=allow_reassign, now=now):
                raise AlreadyAssigned("This form is already assigned.")
            supersede_id = prior.assignment_id

        assignment_id = self._assignments.create_assignment(
            form_id=form.form_id,
            teen_id=teen.teen_id,
            assigned_by_id=principal.user_id,
            due_at=due,
            required=required,
            supersede_id=supersede_id,
            now=now,
        )
        if assignment_id is None:
            raise AlreadyAssigned("This form is already assigned.")

        if supersede_id is not None:
            logger.info("assignment %s superseded by %s", supersede_id, assignment_id)
        return self._require_assignment(assignment_id)

    def unassign(
        self,
        *,
        principal: Optional[Principal],
        assignment_id: int,
        now: Optional[datetime] = None,
    ) -> FormAssignment:
        authorize(principal, "forms_edit")
        assignment = self._require_live(assignment_id)
        if assignment.is_completed or self._assignments.latest_submission(assignment.assignment_id):
            raise ConflictError("Completed forms cannot be unassigned.")

        if not self._assignments.archive_pending(assignment.assignment_id, now=now or datetime.now()):
            # A submission or another unassign got there first.
            self._require_live(assignment_id)
            raise ConflictError("Completed forms cannot be unassigned.")
        return self._require_assignment(assignment_id)

    def submit(
        self,
        *,
        principal: Optional[Principal],
        assignment_id: Any,
        data: Any,
        now: Optional[datetime] = None,
    ) -> FormSubmission:
        authorize(principal, "forms_edit")
        assignment_pk = positive_int(assignment_id)
        if not assignment_pk:
            raise ValidationError("Missing assignment id.")
        if not isinstance(data, Mapping):
            raise ValidationError("Invalid submission payload.")

        assignment = self._require_live(assignment_pk)
        if assignment.is_completed or self._assignments.latest_submission(assignment.assignment_id):
            raise AlreadyCompleted("Form already completed. Reassign to renew.")

        form = self._forms.get_form(assignment.form_id)
        if not form:
            raise NotFoundError("Form not found.")

        normalized = validate_submission(form.live_fields, data)
        now = now or datetime.now()
        submission_id = self._assignments.record_submission(
            assignment_id=assignment.assignment_id,
            submitted_by_id=principal.user_id,
            data=normalized,
            submitted_at=now,
            expires_at=resolve_expiration(now, form.validity),
        )
        if submission_id is None:
            self._require_live(assignment_pk)
            raise AlreadyCompleted("Form already completed. Reassign to renew.")

        logger.info("submission %s recorded for assignment %s", submission_id, assignment.assignment_id)
        submission = self._assignments.get_submission(submission_id)
        if not submission:
            raise NotFoundError("Submission not found.")
        return submission

    def teen_overview(
        self,
        *,
        principal: Optional[Principal],
        teen_id: int,
        now: Optional[datetime] = None,
    ) -> List[AssignmentView]:
        authorize(principal, "forms_view")
        teen = self._teens.get_by_id(int(teen_id))
        if not teen:
            raise NotFoundError("Teen not found.")

        now = now or datetime.now()
        variables = build_variable_map(teen)
        assignments = self._assignments.list_live_for_teen(teen.teen_id)
        latest = self._assignments.latest_submissions([a.assignment_id for a in assignments])

        forms: Dict[int, Optional[FormDefinition]] = {}
        views: List[AssignmentView] = []
        for a in assignments:
            if a.form_id not in forms:
                forms[a.form_id] = self._forms.get_form(a.form_id)
            form = forms[a.form_id]
            if form is None:
                continue
            submission = latest.get(a.assignment_id)
            views.append(
                AssignmentView(
                    assignment=a,
                    form=form,
                    submission=submission,
                    status=derive_status(a, submission, now),
                    fields=_field_views(form, variables, submission),
                )
            )
        return views

    def printable(self, *, principal: Optional[Principal], submission_id: int) -> PrintableSubmission:
        authorize(principal, "forms_view")
        submission = self._assignments.get_submission(int(submission_id))
        if not submission:
            raise NotFoundError("Submission not found.")
        form = self._forms.get_form(submission.form_id)
        if not form:
            raise NotFoundError("Form not found.")
        teen = self._teens.get_by_id(submission.teen_id)

        return PrintableSubmission(
            form_name=form.name,
            teen_name=teen.full_name if teen else "",
            submitted_at=submission.submitted_at,
            fields=_field_views(form, build_variable_map(teen), submission),
        )

    def _require_assignment(self, assignment_id: int) -> FormAssignment:
        assignment = self._assignments.get_assignment(int(assignment_id))
        if not assignment:
            raise NotFoundError("Assignment not found.")
        return assignment

    def _require_live(self, assignment_id: int) -> FormAssignment:
        assignment = self._require_assignment(assignment_id)
        if assignment.is_archived:
            raise NotFoundError("Assignment not found.")
        return assignment
