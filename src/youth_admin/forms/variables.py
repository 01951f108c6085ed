"""``$token`` interpolation for form labels and help text.

A token is ``$`` followed by a letter and any run of word characters. Each
token resolves to, in order: a non-empty string override stored under the
submission's ``__vars__`` map, the teen's attribute map, or ``""``.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional

from ..common.datetime_utils import format_us_date
from ..core.constants import VARS_KEY
from ..teens.model import EventContext, Teen

TOKEN_PATTERN = re.compile(r"\$([A-Za-z]\w*)", re.ASCII)

# (token, label, description) shown to form authors.
VARIABLE_DEFINITIONS = (
    ("parentName", "Parent Name", "Parent/guardian full name from registration."),
    ("parentEmail", "Parent Email", "Parent/guardian email from registration."),
    ("parentPhone", "Parent Phone", "Parent/guardian phone from registration."),
    ("parentRelationship", "Parent Relationship", "Relationship to student."),
    ("studentName", "Student Name", "Student full name."),
    ("studentFirstName", "Student First Name", "Student first name."),
    ("studentLastName", "Student Last Name", "Student last name."),
    ("studentEmail", "Student Email", "Student email from registration."),
    ("studentPhone", "Student Phone", "Student phone from registration."),
    ("dob", "Date of Birth", "Student date of birth."),
    ("addressLine1", "Address Line 1", "Student address line 1."),
    ("addressLine2", "Address Line 2", "Student address line 2."),
    ("city", "City", "Student city."),
    ("state", "State", "Student state."),
    ("postalCode", "Postal Code", "Student postal code."),
    ("parish", "Parish", "Student parish."),
    ("emergencyContactName", "Emergency Contact Name", "Emergency contact name."),
    ("emergencyContactPhone", "Emergency Contact Phone", "Emergency contact phone."),
    ("eventName", "Event Name", "Event name (when events are connected)."),
    ("eventDate", "Event Date", "Event date (when events are connected)."),
    ("eventLocation", "Event Location", "Event location (when events are connected)."),
)


def variable_catalog() -> list[dict]:
    return [
        {"token": f"${token}", "label": label, "description": description}
        for token, label, description in VARIABLE_DEFINITIONS
    ]


def build_variable_map(teen: Optional[Teen], event: Optional[EventContext] = None) -> Dict[str, str]:
    """Token values for one teen. Missing attributes map to ``""``."""

    if teen is None:
        return {token: "" for token, _, _ in VARIABLE_DEFINITIONS}

    event = event or EventContext()
    return {
        "parentName": teen.parent_name or "",
        "parentEmail": teen.parent_email or "",
        "parentPhone": teen.parent_phone or "",
        "parentRelationship": teen.parent_relationship or "",
        "studentName": " ".join(p for p in (teen.first_name, teen.last_name) if p),
        "studentFirstName": teen.first_name or "",
        "studentLastName": teen.last_name or "",
        "studentEmail": teen.email or "",
        "studentPhone": teen.phone or "",
        "dob": format_us_date(teen.dob),
        "addressLine1": teen.address_line1 or "",
        "addressLine2": teen.address_line2 or "",
        "city": teen.city or "",
        "state": teen.state or "",
        "postalCode": teen.postal_code or "",
        "parish": teen.parish or "",
        "emergencyContactName": teen.emergency_contact_name or "",
        "emergencyContactPhone": teen.emergency_contact_phone or "",
        "eventName": event.name or "",
        "eventDate": format_us_date(event.starts_at.date()) if event.starts_at else "",
        "eventLocation": event.location or "",
    }


def _overrides(data: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    if not data:
        return {}
    overrides = data.get(VARS_KEY)
    return overrides if isinstance(overrides, Mapping) else {}


def resolve_variables(text: Optional[str], variables: Mapping[str, str], data: Optional[Mapping[str, Any]] = None) -> str:
    if not text:
        return ""
    overrides = _overrides(data)

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        value = overrides.get(key)
        if isinstance(value, str) and value:
            return value
        return variables.get(key) or ""

    return TOKEN_PATTERN.sub(_replace, text)
