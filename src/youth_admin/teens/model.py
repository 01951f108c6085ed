from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Optional

from ..core.enums import RegistrationStatus


@dataclass(frozen=True)
class Teen:
    """Domain entity: a registered teen and the parent/guardian on file."""

    teen_id: int
    public_id: str
    first_name: str
    last_name: str
    dob: date
    email: Optional[str] = None
    phone: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    parish: Optional[str] = None
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_relationship: Optional[str] = None
    registration_status: RegistrationStatus = RegistrationStatus.PENDING_PARENT_VERIFICATION
    registration_data: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    archived_reason: Optional[str] = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# Columns a staff edit may touch besides the required name/dob trio.
EDITABLE_TEXT_FIELDS = (
    "email",
    "phone",
    "address_line1",
    "address_line2",
    "city",
    "state",
    "postal_code",
    "parish",
    "emergency_contact_name",
    "emergency_contact_phone",
    "parent_name",
    "parent_email",
    "parent_phone",
    "parent_relationship",
)


@dataclass(frozen=True)
class EventContext:
    """Optional event details used when resolving form text."""

    name: Optional[str] = None
    starts_at: Optional[datetime] = None
    location: Optional[str] = None
