from __future__ import annotations

import logging
from dataclasses import asdict, replace
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Sequence

from dateutil.relativedelta import relativedelta

from ..audit.model import AuditEntry
from ..audit.repository import AuditRepository
from ..common.formatters import normalize_email
from ..common.public_id import generate_public_id
from ..common.validators import optional_text, require_non_empty
from ..core.constants import ADULT_AGE_YEARS, AUTO_ARCHIVE_REASON, MANUAL_ARCHIVE_REASON, TEEN_PUBLIC_ID_PREFIX
from ..core.enums import AuditAction, RegistrationStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..database.mysql_base import IntegrityError
from ..forms.variables import build_variable_map
from ..permissions.model import Principal
from ..permissions.service import authorize
from .model import EDITABLE_TEXT_FIELDS, EventContext, Teen
from .repository import TeenRepository

logger = logging.getLogger(__name__)

_PUBLIC_ID_ATTEMPTS = 5


def _parse_dob(value: Any) -> date:
    raw = require_non_empty(value, "Date of birth")
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        raise ValidationError("Invalid date of birth.")


def _snapshot(teen: Teen) -> Dict[str, Any]:
    data = asdict(teen)
    data["registration_status"] = teen.registration_status.value
    return data


class TeenService:
    """Use case: registration intake and roster management."""

    def __init__(self, teens: TeenRepository, audit: AuditRepository):
        self._teens = teens
        self._audit = audit

    def register(self, payload: Mapping[str, Any]) -> Teen:
        """Public self-registration; no principal required."""

        first_name = require_non_empty(payload.get("first_name"), "First name")
        last_name = require_non_empty(payload.get("last_name"), "Last name")
        dob = _parse_dob(payload.get("dob"))
        email = normalize_email(require_non_empty(payload.get("email"), "Teen email"), "teen email")
        address_line1 = require_non_empty(payload.get("address_line1"), "Address line 1")
        city = require_non_empty(payload.get("city"), "City")
        state = require_non_empty(payload.get("state"), "State")
        postal_code = require_non_empty(payload.get("postal_code"), "Postal code")
        parent_name = require_non_empty(payload.get("parent_name"), "Parent name")
        parent_email = normalize_email(require_non_empty(payload.get("parent_email"), "Parent email"), "parent email")
        parent_phone = require_non_empty(payload.get("parent_phone"), "Parent phone")
        parent_relationship = require_non_empty(payload.get("parent_relationship"), "Parent relationship")
        registration_data = payload.get("registration_data")

        draft = Teen(
            teen_id=0,
            public_id="",
            first_name=first_name,
            last_name=last_name,
            dob=dob,
            email=email,
            phone=optional_text(payload.get("phone")),
            address_line1=address_line1,
            address_line2=optional_text(payload.get("address_line2")),
            city=city,
            state=state,
            postal_code=postal_code,
            parish=optional_text(payload.get("parish")),
            emergency_contact_name=optional_text(payload.get("emergency_contact_name")),
            emergency_contact_phone=optional_text(payload.get("emergency_contact_phone")),
            parent_name=parent_name,
            parent_email=parent_email,
            parent_phone=parent_phone,
            parent_relationship=parent_relationship,
            registration_data=registration_data if isinstance(registration_data, dict) else {},
        )

        # Public ids are short and random; retry on the rare unique collision.
        for attempt in range(_PUBLIC_ID_ATTEMPTS):
            public_id = generate_public_id(TEEN_PUBLIC_ID_PREFIX)
            try:
                teen_id = self._teens.create_teen(replace(draft, public_id=public_id))
                break
            except IntegrityError:
                if attempt == _PUBLIC_ID_ATTEMPTS - 1:
                    raise
                logger.warning("public id %s collided; retrying", public_id)

        logger.info("registration received for teen %s (%s)", teen_id, public_id)
        return self._require(teen_id)

    def list_teens(
        self,
        *,
        principal: Optional[Principal],
        search: Optional[str] = None,
        status: Optional[str] = None,
        include_archived: bool = False,
        today: Optional[date] = None,
    ) -> Sequence[Teen]:
        authorize(principal, "roster_view")
        self.auto_archive_adults(today=today)

        try:
            status_filter = RegistrationStatus(status) if status else None
        except ValueError:
            status_filter = None

        return self._teens.list_teens(
            search=(search or "").strip() or None,
            status=status_filter,
            include_archived=include_archived,
        )

    def get_teen(self, *, principal: Optional[Principal], teen_id: int) -> Teen:
        authorize(principal, "roster_view")
        return self._require(teen_id)

    def update_teen(self, *, principal: Optional[Principal], teen_id: int, changes: Mapping[str, Any]) -> Teen:
        authorize(principal, "roster_edit")

        first_name = require_non_empty(changes.get("first_name"), "First name")
        last_name = require_non_empty(changes.get("last_name"), "Last name")
        dob = _parse_dob(changes.get("dob"))
        existing = self._require(teen_id)

        try:
            status = RegistrationStatus(changes.get("registration_status"))
        except ValueError:
            status = existing.registration_status

        update: Dict[str, Any] = {"first_name": first_name, "last_name": last_name, "dob": dob}
        for key in EDITABLE_TEXT_FIELDS:
            update[key] = optional_text(changes.get(key))
        update["registration_status"] = status
        if "registration_data" in changes:
            data = changes.get("registration_data")
            update["registration_data"] = data if isinstance(data, dict) else {}

        self._teens.update_teen(existing.teen_id, update)
        updated = self._require(teen_id)
        self._audit.record(
            AuditEntry(
                user_id=principal.user_id,
                action=AuditAction.UPDATE,
                entity_type="Teen",
                entity_id=existing.teen_id,
                before=_snapshot(existing),
                after=_snapshot(updated),
            )
        )
        return updated

    def archive_teen(
        self,
        *,
        principal: Optional[Principal],
        teen_id: int,
        reason: Any = None,
        now: Optional[datetime] = None,
    ) -> Teen:
        authorize(principal, "roster_manage")
        existing = self._require(teen_id)

        archived_at = now or datetime.now()
        archived_reason = optional_text(reason) or MANUAL_ARCHIVE_REASON
        self._teens.set_archived(existing.teen_id, archived_at=archived_at, reason=archived_reason)
        self._audit.record(
            AuditEntry(
                user_id=principal.user_id,
                action=AuditAction.ARCHIVE,
                entity_type="Teen",
                entity_id=existing.teen_id,
                before={"archived_at": existing.archived_at, "archived_reason": existing.archived_reason},
                after={"archived_at": archived_at, "archived_reason": archived_reason},
            )
        )
        return self._require(teen_id)

    def restore_teen(self, *, principal: Optional[Principal], teen_id: int) -> Teen:
        authorize(principal, "roster_manage")
        existing = self._require(teen_id)

        self._teens.set_archived(existing.teen_id, archived_at=None, reason=None)
        self._audit.record(
            AuditEntry(
                user_id=principal.user_id,
                action=AuditAction.RESTORE,
                entity_type="Teen",
                entity_id=existing.teen_id,
                before={"archived_at": existing.archived_at, "archived_reason": existing.archived_reason},
                after={"archived_at": None, "archived_reason": None},
            )
        )
        return self._require(teen_id)

    def delete_teen(self, *, principal: Optional[Principal], teen_id: int) -> None:
        authorize(principal, "roster_manage")
        existing = self._require(teen_id)

        if not self._teens.delete_by_id(existing.teen_id):
            raise NotFoundError("Teen not found.")
        self._audit.record(
            AuditEntry(
                user_id=principal.user_id,
                action=AuditAction.DELETE,
                entity_type="Teen",
                entity_id=existing.teen_id,
                before=_snapshot(existing),
            )
        )

    def auto_archive_adults(self, *, today: Optional[date] = None, now: Optional[datetime] = None) -> int:
        """Archive everyone who has turned 18. Safe to call repeatedly."""

        now = now or datetime.now()
        today = today or now.date()
        cutoff = today - relativedelta(years=ADULT_AGE_YEARS)
        count = self._teens.archive_born_on_or_before(cutoff, archived_at=now, reason=AUTO_ARCHIVE_REASON)
        if count:
            logger.info("auto-archived %s teen(s) born on or before %s", count, cutoff.isoformat())
        return count

    def variables_for(self, teen: Teen, event: Optional[EventContext] = None) -> Dict[str, str]:
        return build_variable_map(teen, event)

    def _require(self, teen_id: int) -> Teen:
        teen = self._teens.get_by_id(int(teen_id))
        if not teen:
            raise NotFoundError("Teen not found.")
        return teen
