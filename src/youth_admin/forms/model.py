from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..core.enums import FieldType, FormCategory, FormStatus, ValidityUnit


@dataclass(frozen=True)
class FieldOptions:
    """Choice list for SELECT / MULTI_SELECT / CHECKBOX fields."""

    options: Tuple[str, ...] = ()
    allow_other: bool = False

    def to_json(self) -> Dict[str, Any]:
        return {"options": list(self.options), "allowOther": self.allow_other}

    @classmethod
    def from_json(cls, raw: Any) -> Optional["FieldOptions"]:
        # Older rows stored a bare list of options.
        if isinstance(raw, list):
            return cls(options=tuple(str(o) for o in raw))
        if isinstance(raw, dict):
            options = raw.get("options") or []
            return cls(
                options=tuple(str(o) for o in options if isinstance(o, str)),
                allow_other=bool(raw.get("allowOther")),
            )
        return None


@dataclass(frozen=True)
class FormField:
    field_id: int
    form_id: int
    label: str
    field_type: FieldType
    required: bool = False
    help_text: Optional[str] = None
    options: Optional[FieldOptions] = None
    order: int = 0
    archived_at: Optional[datetime] = None

    @property
    def key(self) -> str:
        """Key of this field's value inside a submission's data map."""

        return str(self.field_id)

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def choices(self) -> Tuple[str, ...]:
        return self.options.options if self.options else ()

    @property
    def allow_other(self) -> bool:
        return bool(self.options and self.options.allow_other)

    @property
    def has_options(self) -> bool:
        return bool(self.choices) or self.allow_other


@dataclass(frozen=True)
class FieldDraft:
    """A normalized incoming field, before it is persisted."""

    label: str
    field_type: FieldType
    order: int
    required: bool = False
    help_text: Optional[str] = None
    options: Optional[FieldOptions] = None
    field_id: Optional[int] = None


@dataclass(frozen=True)
class ValidityPolicy:
    """How long a submission stays valid.

    Exactly one of: nothing (never expires), a relative period
    (``valid_for_value`` + ``valid_for_unit``), or a fixed ``valid_until``.
    """

    valid_for_value: Optional[int] = None
    valid_for_unit: Optional[ValidityUnit] = None
    valid_until: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.valid_until is not None and self.valid_for_value is not None:
            raise ValueError("validity policy cannot be both relative and fixed")

    @property
    def is_fixed(self) -> bool:
        return self.valid_until is not None

    @property
    def is_relative(self) -> bool:
        return self.valid_for_value is not None

    @property
    def unit(self) -> ValidityUnit:
        return self.valid_for_unit or ValidityUnit.DAYS

    def describe(self) -> str:
        if self.valid_until:
            return f"Valid until {self.valid_until.strftime('%m/%d/%Y')}"
        if self.valid_for_value:
            return f"Valid {self.valid_for_value} {self.unit.value.lower()}"
        return ""


@dataclass(frozen=True)
class FormDefinition:
    form_id: int
    name: str
    status: FormStatus = FormStatus.ACTIVE
    category: FormCategory = FormCategory.GENERAL
    description: Optional[str] = None
    validity: ValidityPolicy = field(default_factory=ValidityPolicy)
    fields: Tuple[FormField, ...] = ()
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    @property
    def is_archived(self) -> bool:
        return self.status == FormStatus.ARCHIVED

    @property
    def live_fields(self) -> Tuple[FormField, ...]:
        return tuple(sorted((f for f in self.fields if not f.is_archived), key=lambda f: (f.order, f.field_id)))


@dataclass(frozen=True)
class FormAssignment:
    assignment_id: int
    form_id: int
    teen_id: int
    assigned_by_id: Optional[int] = None
    due_at: Optional[datetime] = None
    required: bool = True
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None


@dataclass(frozen=True)
class FormSubmission:
    """Immutable once recorded; renewal means a new assignment."""

    submission_id: int
    assignment_id: int
    form_id: int
    teen_id: int
    submitted_by_id: Optional[int]
    data: Dict[str, Any]
    submitted_at: datetime
    expires_at: Optional[datetime] = None
