from __future__ import annotations

from datetime import datetime, timedelta

from youth_admin.core.enums import AssignmentStatus
from youth_admin.forms.lifecycle import derive_status, is_expired, may_supersede
from youth_admin.forms.model import FormAssignment, FormSubmission

NOW = datetime(2026, 3, 10, 12, 0, 0)


def _assignment(due_at=None):
    return FormAssignment(assignment_id=1, form_id=1, teen_id=1, due_at=due_at, created_at=NOW - timedelta(days=30))


def _submission(expires_at=None):
    return FormSubmission(
        submission_id=1,
        assignment_id=1,
        form_id=1,
        teen_id=1,
        submitted_by_id=1,
        data={},
        submitted_at=NOW - timedelta(days=1),
        expires_at=expires_at,
    )


def test_open_assignment_statuses():
    assert derive_status(_assignment(), None, NOW) == AssignmentStatus.MISSING
    assert derive_status(_assignment(NOW - timedelta(minutes=1)), None, NOW) == AssignmentStatus.OVERDUE
    assert derive_status(_assignment(NOW + timedelta(days=6, hours=23)), None, NOW) == AssignmentStatus.DUE_SOON
    assert derive_status(_assignment(NOW + timedelta(days=7)), None, NOW) == AssignmentStatus.MISSING
    assert derive_status(_assignment(NOW + timedelta(days=30)), None, NOW) == AssignmentStatus.MISSING


def test_submitted_statuses():
    overdue = _assignment(NOW - timedelta(days=3))

    assert derive_status(overdue, _submission(), NOW) == AssignmentStatus.COMPLETED
    assert derive_status(overdue, _submission(NOW + timedelta(days=1)), NOW) == AssignmentStatus.COMPLETED
    assert derive_status(overdue, _submission(NOW), NOW) == AssignmentStatus.EXPIRED


def test_expiry_boundary_is_inclusive():
    assert is_expired(_submission(NOW), NOW) is True
    assert is_expired(_submission(NOW + timedelta(seconds=1)), NOW) is False
    assert is_expired(_submission(None), NOW) is False
    assert is_expired(None, NOW) is False


def test_supersede_rules():
    prior = _assignment()

    assert may_supersede(prior, None, allow_reassign=False, now=NOW) is False
    assert may_supersede(prior, _submission(NOW + timedelta(days=1)), allow_reassign=False, now=NOW) is False
    assert may_supersede(prior, _submission(NOW - timedelta(days=1)), allow_reassign=False, now=NOW) is True
    assert may_supersede(prior, None, allow_reassign=True, now=NOW) is True
