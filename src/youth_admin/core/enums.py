from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Staff account role. ADMIN bypasses permission checks."""

    ADMIN = "ADMIN"
    STAFF = "STAFF"


class PermissionModule(str, Enum):
    ROSTER = "roster"
    KIOSK = "kiosk"
    EVENTS = "events"
    FORMS = "forms"
    PRAYERS = "prayers"
    NOTIFICATIONS = "notifications"
    STAFF = "staff"


class PermissionLevel(str, Enum):
    """Tiers within a module, ranked view < edit < manage."""

    VIEW = "view"
    EDIT = "edit"
    MANAGE = "manage"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    PermissionLevel.VIEW: 1,
    PermissionLevel.EDIT: 2,
    PermissionLevel.MANAGE: 3,
}


class RegistrationStatus(str, Enum):
    PENDING_PARENT_VERIFICATION = "PENDING_PARENT_VERIFICATION"
    PENDING_ADDITIONAL_INFO = "PENDING_ADDITIONAL_INFO"
    COMPLETE = "COMPLETE"


class FormStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class FormCategory(str, Enum):
    GENERAL = "GENERAL"
    RELEASE = "RELEASE"
    EVENT = "EVENT"
    MEDICAL = "MEDICAL"


class ValidityUnit(str, Enum):
    DAYS = "DAYS"
    MONTHS = "MONTHS"
    YEARS = "YEARS"


class FieldType(str, Enum):
    SECTION = "SECTION"
    SHORT_TEXT = "SHORT_TEXT"
    LONG_TEXT = "LONG_TEXT"
    NUMBER = "NUMBER"
    DATE = "DATE"
    EMAIL = "EMAIL"
    PHONE = "PHONE"
    CHECKBOX = "CHECKBOX"
    SELECT = "SELECT"
    MULTI_SELECT = "MULTI_SELECT"
    SIGNATURE = "SIGNATURE"


class AssignmentStatus(str, Enum):
    """Display status derived from an assignment and its latest submission."""

    MISSING = "MISSING"
    DUE_SOON = "DUE_SOON"
    OVERDUE = "OVERDUE"
    COMPLETED = "COMPLETED"
    EXPIRED = "EXPIRED"


class AuditAction(str, Enum):
    UPDATE = "UPDATE"
    ARCHIVE = "ARCHIVE"
    RESTORE = "RESTORE"
    DELETE = "DELETE"
