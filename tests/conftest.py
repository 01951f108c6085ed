"""In-memory repositories and shared fixtures.

The fakes mirror the MySQL repositories' contracts closely enough for the
services to be exercised without a database, including the "lost race"
``None`` returns of the assignment repository.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional

import pytest
from werkzeug.security import generate_password_hash

from youth_admin.audit.model import AuditEntry
from youth_admin.attendance.model import AttendanceRecord
from youth_admin.container import wire_services
from youth_admin.core.enums import FormStatus, Role
from youth_admin.database.mysql_base import IntegrityError
from youth_admin.forms.model import FormAssignment, FormDefinition, FormField, FormSubmission
from youth_admin.permissions.model import Principal
from youth_admin.permissions.service import normalize_permissions
from youth_admin.staff.model import StaffUser
from youth_admin.teens.model import Teen

CREATED_AT = datetime(2026, 1, 1, 9, 0, 0)


class FakeStaffRepo:
    def __init__(self):
        self._next_id = 1
        self.users: Dict[int, StaffUser] = {}

    def add(self, *, username: str, role: Role = Role.STAFF, permissions=(), password: str = "secret123", **kw) -> StaffUser:
        user = StaffUser(
            user_id=self._next_id,
            email=kw.pop("email", f"{username}@example.com"),
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
            permissions=normalize_permissions(list(permissions)),
            first_name=kw.pop("first_name", username.capitalize()),
            last_name=kw.pop("last_name", "Staff"),
            created_at=CREATED_AT,
            **kw,
        )
        self.users[user.user_id] = user
        self._next_id += 1
        return user

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def get_by_login(self, login):
        for u in self.users.values():
            if u.username == login or u.email == login:
                return u
        return None

    def find_conflicting(self, *, email, username):
        for u in self.users.values():
            if u.email == email or u.username == username:
                return u
        return None

    def list_staff(self, *, include_archived=False):
        return [u for u in self.users.values() if include_archived or not u.is_archived]

    def create_user(self, *, email, username, password_hash, role, first_name, last_name, permissions):
        user_id = self._next_id
        self._next_id += 1
        self.users[user_id] = StaffUser(
            user_id=user_id,
            email=email,
            username=username,
            password_hash=password_hash,
            role=role,
            permissions=tuple(permissions),
            first_name=first_name,
            last_name=last_name,
            created_at=CREATED_AT,
        )
        return user_id

    def update_profile(self, user_id, changes):
        if int(user_id) not in self.users:
            return False
        self.users[int(user_id)] = replace(self.users[int(user_id)], **changes)
        return True

    def set_permissions(self, user_id, permissions):
        self.users[int(user_id)] = replace(self.users[int(user_id)], permissions=tuple(permissions))
        return True

    def set_archived(self, user_id, *, archived_at, reason):
        self.users[int(user_id)] = replace(self.users[int(user_id)], archived_at=archived_at, archived_reason=reason)
        return True

    def delete_by_id(self, user_id):
        return self.users.pop(int(user_id), None) is not None


class FakeAuditRepo:
    def __init__(self):
        self.entries: List[AuditEntry] = []

    def record(self, entry):
        self.entries.append(replace(entry, audit_id=len(self.entries) + 1))
        return len(self.entries)

    def list_for_entity(self, *, entity_type, entity_id, limit=200):
        return [e for e in self.entries if e.entity_type == entity_type and e.entity_id == int(entity_id)][:limit]


def make_teen(teen_id: int = 0, **overrides) -> Teen:
    values = dict(
        teen_id=teen_id,
        public_id=f"T-TEST{teen_id:02d}",
        first_name="Maya",
        last_name="Lopez",
        dob=date(2010, 4, 12),
        email="maya@example.com",
        parent_name="Rosa Lopez",
        parent_email="rosa@example.com",
        parent_phone="(555)201-1000",
        parent_relationship="Mother",
        created_at=CREATED_AT,
    )
    values.update(overrides)
    return Teen(**values)


class FakeTeenRepo:
    def __init__(self):
        self._next_id = 1
        self.teens: Dict[int, Teen] = {}
        self.collisions_left = 0

    def add(self, **overrides) -> Teen:
        teen = make_teen(self._next_id, **overrides)
        self.teens[teen.teen_id] = teen
        self._next_id += 1
        return teen

    def get_by_id(self, teen_id):
        return self.teens.get(int(teen_id))

    def list_teens(self, *, search=None, status=None, include_archived=False, limit=200):
        out = []
        for t in self.teens.values():
            if not include_archived and t.is_archived:
                continue
            if status is not None and t.registration_status != status:
                continue
            if search:
                haystack = [t.first_name, t.last_name, t.email or "", t.parent_email or ""]
                if not any(search.lower() in h.lower() for h in haystack):
                    continue
            out.append(t)
        out.sort(key=lambda t: (t.last_name, t.first_name, t.teen_id))
        return out[:limit]

    def create_teen(self, teen):
        if self.collisions_left:
            self.collisions_left -= 1
            raise IntegrityError(msg="Duplicate entry for key uq_teens_public_id")
        teen_id = self._next_id
        self._next_id += 1
        self.teens[teen_id] = replace(teen, teen_id=teen_id, created_at=CREATED_AT)
        return teen_id

    def update_teen(self, teen_id, changes):
        if int(teen_id) not in self.teens:
            return False
        self.teens[int(teen_id)] = replace(self.teens[int(teen_id)], **changes)
        return True

    def set_archived(self, teen_id, *, archived_at, reason):
        self.teens[int(teen_id)] = replace(self.teens[int(teen_id)], archived_at=archived_at, archived_reason=reason)
        return True

    def archive_born_on_or_before(self, cutoff, *, archived_at, reason):
        count = 0
        for teen_id, t in list(self.teens.items()):
            if not t.is_archived and t.dob <= cutoff:
                self.teens[teen_id] = replace(t, archived_at=archived_at, archived_reason=reason)
                count += 1
        return count

    def delete_by_id(self, teen_id):
        return self.teens.pop(int(teen_id), None) is not None


class FakeAttendanceRepo:
    def __init__(self):
        self.records: List[AttendanceRecord] = []

    def list_between(self, *, start, end):
        return sorted((r for r in self.records if start <= r.check_in_at < end), key=lambda r: r.check_in_at)

    def open_teen_ids(self, teen_ids, *, start, end):
        return {r.teen_id for r in self.list_between(start=start, end=end) if r.is_open and r.teen_id in teen_ids}

    def create_checkins(self, teen_ids, *, check_in_at):
        for teen_id in teen_ids:
            self.records.append(AttendanceRecord(len(self.records) + 1, int(teen_id), check_in_at))
        return len(teen_ids)

    def close_open(self, teen_ids, *, start, end, check_out_at):
        closed = 0
        for i, r in enumerate(self.records):
            if r.teen_id in teen_ids and r.is_open and start <= r.check_in_at < end:
                self.records[i] = replace(r, check_out_at=check_out_at)
                closed += 1
        return closed


class FakeFormRepo:
    def __init__(self):
        self._next_form_id = 1
        self._next_field_id = 1
        self.forms: Dict[int, FormDefinition] = {}
        self.fields: Dict[int, FormField] = {}

    def _insert_field(self, form_id, draft):
        field_id = self._next_field_id
        self._next_field_id += 1
        self.fields[field_id] = FormField(
            field_id=field_id,
            form_id=form_id,
            label=draft.label,
            field_type=draft.field_type,
            required=draft.required,
            help_text=draft.help_text,
            options=draft.options,
            order=draft.order,
        )

    def list_forms(self):
        return [self.get_form(form_id) for form_id in sorted(self.forms, reverse=True)]

    def get_form(self, form_id):
        form = self.forms.get(int(form_id))
        if form is None:
            return None
        live = [f for f in self.fields.values() if f.form_id == form.form_id and not f.is_archived]
        return replace(form, fields=tuple(sorted(live, key=lambda f: (f.order, f.field_id))))

    def create_form(self, *, name, description, status, category, validity, created_by_id, fields):
        form_id = self._next_form_id
        self._next_form_id += 1
        self.forms[form_id] = FormDefinition(
            form_id=form_id,
            name=name,
            description=description,
            status=status,
            category=category,
            validity=validity,
            created_by_id=created_by_id,
            created_at=CREATED_AT,
        )
        for draft in fields:
            self._insert_field(form_id, draft)
        return form_id

    def update_form(self, form_id, *, changes, validity, fields, removed_field_ids, now):
        form_id = int(form_id)
        self.forms[form_id] = replace(self.forms[form_id], validity=validity, **changes)
        for draft in fields:
            if draft.field_id is None:
                self._insert_field(form_id, draft)
                continue
            self.fields[draft.field_id] = replace(
                self.fields[draft.field_id],
                label=draft.label,
                field_type=draft.field_type,
                required=draft.required,
                help_text=draft.help_text,
                options=draft.options,
                order=draft.order,
                archived_at=None,
            )
        for field_id in removed_field_ids:
            self.fields[field_id] = replace(self.fields[field_id], archived_at=now)
        return True

    def set_status(self, form_id, status: FormStatus):
        self.forms[int(form_id)] = replace(self.forms[int(form_id)], status=status)
        return True


class FakeAssignmentRepo:
    def __init__(self):
        self.assignments: Dict[int, FormAssignment] = {}
        self.submissions: Dict[int, FormSubmission] = {}

    def _live_for_pair(self, form_id, teen_id):
        return [a for a in self.assignments.values() if a.form_id == form_id and a.teen_id == teen_id and not a.is_archived]

    def get_assignment(self, assignment_id):
        return self.assignments.get(int(assignment_id))

    def latest_live_assignment(self, *, form_id, teen_id):
        live = self._live_for_pair(int(form_id), int(teen_id))
        return max(live, key=lambda a: (a.created_at, a.assignment_id)) if live else None

    def list_live_for_teen(self, teen_id):
        live = [a for a in self.assignments.values() if a.teen_id == int(teen_id) and not a.is_archived]
        return sorted(live, key=lambda a: (a.created_at, a.assignment_id), reverse=True)

    def create_assignment(self, *, form_id, teen_id, assigned_by_id, due_at, required, supersede_id, now):
        if supersede_id is not None:
            prior = self.assignments.get(int(supersede_id))
            if prior is None or prior.is_archived:
                return None
        others = [a for a in self._live_for_pair(form_id, teen_id) if a.assignment_id != supersede_id]
        if others:
            return None

        if supersede_id is not None:
            self.assignments[supersede_id] = replace(self.assignments[supersede_id], archived_at=now)
        assignment_id = len(self.assignments) + 1
        self.assignments[assignment_id] = FormAssignment(
            assignment_id=assignment_id,
            form_id=form_id,
            teen_id=teen_id,
            assigned_by_id=assigned_by_id,
            due_at=due_at,
            required=required,
            created_at=now,
        )
        return assignment_id

    def archive_pending(self, assignment_id, *, now):
        a = self.assignments.get(int(assignment_id))
        if a is None or a.is_archived or a.is_completed or self.latest_submission(a.assignment_id):
            return False
        self.assignments[a.assignment_id] = replace(a, archived_at=now)
        return True

    def record_submission(self, *, assignment_id, submitted_by_id, data, submitted_at, expires_at):
        a = self.assignments.get(int(assignment_id))
        if a is None or a.is_archived or a.is_completed or self.latest_submission(a.assignment_id):
            return None
        submission_id = len(self.submissions) + 1
        self.submissions[submission_id] = FormSubmission(
            submission_id=submission_id,
            assignment_id=a.assignment_id,
            form_id=a.form_id,
            teen_id=a.teen_id,
            submitted_by_id=submitted_by_id,
            data=dict(data),
            submitted_at=submitted_at,
            expires_at=expires_at,
        )
        self.assignments[a.assignment_id] = replace(a, completed_at=submitted_at)
        return submission_id

    def get_submission(self, submission_id):
        return self.submissions.get(int(submission_id))

    def latest_submission(self, assignment_id):
        return self.latest_submissions([assignment_id]).get(int(assignment_id))

    def latest_submissions(self, assignment_ids):
        wanted = {int(a) for a in assignment_ids}
        out: Dict[int, FormSubmission] = {}
        for s in sorted(self.submissions.values(), key=lambda s: (s.submitted_at, s.submission_id)):
            if s.assignment_id in wanted:
                out[s.assignment_id] = s
        return out


def make_principal(*codes: str, user_id: int = 50, role: Role = Role.STAFF) -> Principal:
    return Principal(user_id=user_id, role=role, permissions=normalize_permissions(list(codes)))


@pytest.fixture
def admin() -> Principal:
    return make_principal(user_id=900, role=Role.ADMIN)


@pytest.fixture
def staff_repo():
    return FakeStaffRepo()


@pytest.fixture
def audit_repo():
    return FakeAuditRepo()


@pytest.fixture
def teens_repo():
    return FakeTeenRepo()


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def forms_repo():
    return FakeFormRepo()


@pytest.fixture
def assignments_repo():
    return FakeAssignmentRepo()


@pytest.fixture
def container(staff_repo, audit_repo, teens_repo, attendance_repo, forms_repo, assignments_repo):
    return wire_services(
        conn=None,
        staff_repo=staff_repo,
        audit_repo=audit_repo,
        teens_repo=teens_repo,
        attendance_repo=attendance_repo,
        forms_repo=forms_repo,
        assignments_repo=assignments_repo,
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from youth_admin.main import create_app

    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()
