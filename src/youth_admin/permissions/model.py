from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..core.enums import PermissionLevel, PermissionModule, Role


@dataclass(frozen=True)
class Permission:
    """A (module, level) pair, serialized as ``"{module}_{level}"``."""

    module: PermissionModule
    level: PermissionLevel

    @property
    def code(self) -> str:
        return f"{self.module.value}_{self.level.value}"

    @classmethod
    def parse(cls, code: str) -> Optional["Permission"]:
        module_s, sep, level_s = (code or "").partition("_")
        if not sep:
            return None
        try:
            return cls(PermissionModule(module_s), PermissionLevel(level_s))
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True)
class Principal:
    """The signed-in staff account as seen by permission checks."""

    user_id: int
    role: Role
    permissions: Tuple[Permission, ...] = ()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


ALL_PERMISSIONS: Tuple[Permission, ...] = tuple(
    Permission(module, level) for module in PermissionModule for level in PermissionLevel
)

# Bare module names from older records grant the top level of that module.
LEGACY_PERMISSIONS = {module.value: Permission(module, PermissionLevel.MANAGE) for module in PermissionModule}

MODULE_DETAILS = {
    PermissionModule.ROSTER: ("Roster", "Teen roster access and record management."),
    PermissionModule.KIOSK: ("Kiosk", "Attendance kiosk access."),
    PermissionModule.EVENTS: ("Events", "Event calendar access."),
    PermissionModule.FORMS: ("Forms", "Form builder and submissions."),
    PermissionModule.PRAYERS: ("Prayers", "Prayer requests visibility and actions."),
    PermissionModule.NOTIFICATIONS: ("Notifications", "Email and message sending."),
    PermissionModule.STAFF: ("Staff", "Staff roster and permissions."),
}

PERMISSION_DETAILS = {
    "roster_view": "View teen lists and profiles.",
    "roster_edit": "Edit teen registrations and attendance notes.",
    "roster_manage": "Archive, restore, or delete teen records.",
    "kiosk_view": "View the kiosk list and attendance status.",
    "kiosk_edit": "Check teens in and out on the kiosk.",
    "kiosk_manage": "Configure kiosk settings and bulk actions.",
    "events_view": "View the events calendar.",
    "events_edit": "Create and edit event details.",
    "events_manage": "Delete events and manage event settings.",
    "forms_view": "View form submissions and templates.",
    "forms_edit": "Create and update custom forms.",
    "forms_manage": "Delete forms and manage form settings.",
    "prayers_view": "View prayer requests.",
    "prayers_edit": "Respond to or update prayer requests.",
    "prayers_manage": "Delete requests and manage prayer settings.",
    "notifications_view": "View notification history.",
    "notifications_edit": "Draft and send notifications.",
    "notifications_manage": "Manage notification templates and settings.",
    "staff_view": "View the staff roster and profiles.",
    "staff_edit": "Edit staff profile details.",
    "staff_manage": "Invite staff and change permissions.",
}


def describe(permission: Permission) -> dict:
    module_label, _ = MODULE_DETAILS[permission.module]
    return {
        "code": permission.code,
        "module": permission.module.value,
        "level": permission.level.value,
        "label": f"{module_label} · {permission.level.value.capitalize()}",
        "description": PERMISSION_DETAILS[permission.code],
    }
