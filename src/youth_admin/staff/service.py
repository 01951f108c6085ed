from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..audit.model import AuditEntry
from ..audit.repository import AuditRepository
from ..common.formatters import normalize_email
from ..common.validators import optional_text, require_min_length, require_non_empty
from ..core.constants import MANUAL_ARCHIVE_REASON
from ..core.enums import AuditAction, Role
from ..core.exceptions import AuthenticationError, NotFoundError, ValidationError
from ..permissions.model import Principal
from ..permissions.service import authorize, normalize_permissions, permission_codes
from .model import PROFILE_FIELDS, StaffUser
from .repository import StaffRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    full_name: str
    role: Role


class AuthService:
    """Use case: authenticate staff and resolve the current principal."""

    def __init__(self, staff: StaffRepository):
        self._staff = staff

    def authenticate(self, login: str, password: str) -> SessionUser:
        login = (login or "").strip()
        user = self._staff.get_by_login(login) if login else None
        if not user or user.is_archived:
            raise AuthenticationError("Invalid username or password.")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid username or password.")

        return SessionUser(user_id=user.user_id, full_name=user.full_name, role=user.role)

    def load_principal(self, user_id: Optional[int]) -> Optional[Principal]:
        if not user_id:
            return None
        user = self._staff.get_by_id(int(user_id))
        if not user or user.is_archived:
            return None
        return Principal(user_id=user.user_id, role=user.role, permissions=user.permissions)


class StaffService:
    """Use case: manage staff accounts and their permissions."""

    def __init__(self, staff: StaffRepository, audit: AuditRepository):
        self._staff = staff
        self._audit = audit

    def list_staff(self, *, principal: Optional[Principal], include_archived: bool = False) -> Sequence[StaffUser]:
        authorize(principal, "staff_view")
        return self._staff.list_staff(include_archived=include_archived)

    def get_staff(self, *, principal: Optional[Principal], user_id: int) -> StaffUser:
        authorize(principal, "staff_view")
        return self._require(user_id)

    def create_staff(
        self,
        *,
        principal: Optional[Principal],
        email: Any,
        username: Any,
        first_name: Any,
        last_name: Any,
        password: Any,
        role: Any = Role.STAFF.value,
        permissions: Any = None,
    ) -> int:
        authorize(principal, "staff_manage")

        email = normalize_email(require_non_empty(email, "Email"), "Email")
        username = require_non_empty(username, "Username")
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        require_non_empty(password, "Password")
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        account_role = Role.ADMIN if role == Role.ADMIN.value or role == Role.ADMIN else Role.STAFF

        if self._staff.find_conflicting(email=email, username=username):
            raise ValidationError("User already exists.")

        user_id = self._staff.create_user(
            email=email,
            username=username,
            password_hash=generate_password_hash(password),
            role=account_role,
            first_name=first_name,
            last_name=last_name,
            permissions=normalize_permissions(permissions),
        )
        logger.info("staff account %s created by %s", user_id, principal.user_id)
        return user_id

    def update_staff(self, *, principal: Optional[Principal], user_id: int, changes: Mapping[str, Any]) -> StaffUser:
        authorize(principal, "staff_edit")

        has_permissions_update = isinstance(changes.get("permissions"), list)
        profile = _profile_changes(changes)
        if has_permissions_update:
            authorize(principal, "staff_manage")

        existing = self._require(user_id)
        if has_permissions_update and existing.role == Role.ADMIN:
            raise ValidationError("Cannot edit admin permissions.")
        if not has_permissions_update and not profile:
            raise ValidationError("No updates provided.")

        if has_permissions_update:
            permissions = normalize_permissions(changes["permissions"])
            self._staff.set_permissions(existing.user_id, permissions)
            self._audit.record(
                AuditEntry(
                    user_id=principal.user_id,
                    action=AuditAction.UPDATE,
                    entity_type="Staff",
                    entity_id=existing.user_id,
                    before={"permissions": permission_codes(existing.permissions)},
                    after={"permissions": permission_codes(permissions)},
                )
            )
        if profile:
            self._staff.update_profile(existing.user_id, profile)

        return self._require(user_id)

    def get_own_profile(self, *, principal: Optional[Principal]) -> StaffUser:
        if principal is None:
            raise AuthenticationError("Sign in to continue.")
        return self._require(principal.user_id)

    def update_own_profile(self, *, principal: Optional[Principal], changes: Mapping[str, Any]) -> StaffUser:
        if principal is None:
            raise AuthenticationError("Sign in to continue.")
        profile = {key: optional_text(changes.get(key)) for key in PROFILE_FIELDS}
        self._staff.update_profile(principal.user_id, profile)
        return self._require(principal.user_id)

    def archive_staff(
        self,
        *,
        principal: Optional[Principal],
        user_id: int,
        reason: Any = None,
        now: Optional[datetime] = None,
    ) -> StaffUser:
        authorize(principal, "staff_manage")
        if int(user_id) == principal.user_id:
            raise ValidationError("Cannot archive your own account.")
        existing = self._require(user_id)
        if existing.role == Role.ADMIN:
            raise ValidationError("Cannot archive admin accounts.")

        archived_at = now or datetime.now()
        archived_reason = optional_text(reason) or MANUAL_ARCHIVE_REASON
        self._staff.set_archived(existing.user_id, archived_at=archived_at, reason=archived_reason)
        self._record_archive_change(principal, existing, AuditAction.ARCHIVE, archived_at, archived_reason)
        return self._require(user_id)

    def restore_staff(self, *, principal: Optional[Principal], user_id: int) -> StaffUser:
        authorize(principal, "staff_manage")
        existing = self._require(user_id)
        if existing.role == Role.ADMIN:
            raise ValidationError("Cannot restore admin accounts.")

        self._staff.set_archived(existing.user_id, archived_at=None, reason=None)
        self._record_archive_change(principal, existing, AuditAction.RESTORE, None, None)
        return self._require(user_id)

    def delete_staff(self, *, principal: Optional[Principal], user_id: int) -> None:
        authorize(principal, "staff_manage")
        if int(user_id) == principal.user_id:
            raise ValidationError("Cannot delete your own account.")
        existing = self._require(user_id)
        if existing.role == Role.ADMIN:
            raise ValidationError("Cannot delete admin accounts.")

        if not self._staff.delete_by_id(existing.user_id):
            raise NotFoundError("Staff account not found.")
        self._audit.record(
            AuditEntry(
                user_id=principal.user_id,
                action=AuditAction.DELETE,
                entity_type="Staff",
                entity_id=existing.user_id,
                before={"email": existing.email, "username": existing.username, "role": existing.role.value},
            )
        )

    def _require(self, user_id: int) -> StaffUser:
        user = self._staff.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("Staff account not found.")
        return user

    def _record_archive_change(
        self,
        principal: Principal,
        existing: StaffUser,
        action: AuditAction,
        archived_at: Optional[datetime],
        reason: Optional[str],
    ) -> None:
        self._audit.record(
            AuditEntry(
                user_id=principal.user_id,
                action=action,
                entity_type="Staff",
                entity_id=existing.user_id,
                before={"archived_at": existing.archived_at, "archived_reason": existing.archived_reason},
                after={"archived_at": archived_at, "archived_reason": reason},
            )
        )


def _profile_changes(changes: Mapping[str, Any]) -> dict:
    """Profile keys that carry a string; blank strings clear the column."""

    out: dict = {}
    for key in PROFILE_FIELDS:
        if key in changes and isinstance(changes[key], str):
            out[key] = optional_text(changes[key])
    return out
