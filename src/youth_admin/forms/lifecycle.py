"""Assignment state, derived on read.

Nothing here is stored: status is a pure function of an assignment, its
latest submission and the clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import DUE_SOON_DAYS
from ..core.enums import AssignmentStatus
from .model import FormAssignment, FormSubmission


def is_expired(submission: Optional[FormSubmission], now: datetime) -> bool:
    if submission is None or submission.expires_at is None:
        return False
    return now >= submission.expires_at


def derive_status(
    assignment: FormAssignment,
    submission: Optional[FormSubmission],
    now: datetime,
) -> AssignmentStatus:
    if submission is not None:
        return AssignmentStatus.EXPIRED if is_expired(submission, now) else AssignmentStatus.COMPLETED
    if assignment.due_at is None:
        return AssignmentStatus.MISSING
    if assignment.due_at < now:
        return AssignmentStatus.OVERDUE
    if assignment.due_at - now < timedelta(days=DUE_SOON_DAYS):
        return AssignmentStatus.DUE_SOON
    return AssignmentStatus.MISSING


def may_supersede(
    prior: FormAssignment,
    prior_submission: Optional[FormSubmission],
    *,
    allow_reassign: bool,
    now: datetime,
) -> bool:
    """Whether a new assignment may archive and replace ``prior``.

    ``allow_reassign`` forces a redo in any state. Without it only completed
    paperwork that has expired is renewed.
    """

    if allow_reassign:
        return True
    return prior_submission is not None and is_expired(prior_submission, now)
