"""Field type engine.

Every ``FieldType`` has one entry in ``FIELD_TYPES`` that knows how to turn a
submitted raw value into its stored shape (or ``None`` when unanswered).
Submission-level rules (required checks, "Other" free text, variable
overrides) live in ``validate_submission``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..common.formatters import format_phone, normalize_email
from ..common.validators import optional_text, positive_int
from ..core.constants import OTHER_SENTINEL, OTHER_SUFFIX, VARS_KEY
from ..core.enums import FieldType
from ..core.exceptions import ValidationError
from .model import FieldDraft, FieldOptions, FormField
from .variables import resolve_variables

_OPTION_SPLIT = re.compile(r"[\n,]")
_TRUE_STRINGS = ("true", "on", "yes", "1")
_FALSE_STRINGS = ("false", "off", "no", "0")

DRAWN_SIGNATURE_PREFIX = "data:image/"


# -- "Other" choices ---------------------------------------------------------


@dataclass(frozen=True)
class Selected:
    value: str


@dataclass(frozen=True)
class Other:
    text: str


Choice = Union[Selected, Other]


def other_key(field: FormField) -> str:
    return f"{field.key}{OTHER_SUFFIX}"


def read_choices(field: FormField, data: Mapping[str, Any]) -> Tuple[Choice, ...]:
    """Decode a stored choice answer (sentinel plus side key) into variants."""

    raw = data.get(field.key)
    if isinstance(raw, str):
        items: Sequence[Any] = [raw] if raw else []
    elif isinstance(raw, list):
        items = raw
    else:
        items = []

    choices: List[Choice] = []
    for item in items:
        if item == OTHER_SENTINEL:
            text = optional_text(data.get(other_key(field)))
            if text:
                choices.append(Other(text))
        elif isinstance(item, str) and item:
            choices.append(Selected(item))
    return tuple(choices)


# -- per-type normalizers ----------------------------------------------------


def _invalid(field: FormField) -> ValidationError:
    return ValidationError(f"Invalid value for {field.label}.")


def _text(field: FormField, raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, (bool, list, dict)):
        raise _invalid(field)
    value = raw if isinstance(raw, str) else str(raw)
    return value if value.strip() else None


def _email(field: FormField, raw: Any) -> Optional[str]:
    value = _text(field, raw)
    return None if value is None else normalize_email(value, field.label)


def _phone(field: FormField, raw: Any) -> Optional[str]:
    value = _text(field, raw)
    return None if value is None else format_phone(value, field.label)


def _pick(field: FormField, value: str) -> str:
    if value == OTHER_SENTINEL:
        if not field.allow_other:
            raise ValidationError(f"{field.label} does not accept other answers.")
        return value
    if field.choices and value not in field.choices:
        raise ValidationError(f"Invalid option for {field.label}.")
    return value


def _select(field: FormField, raw: Any) -> Optional[str]:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise _invalid(field)
    value = raw.strip()
    return _pick(field, value) if value else None


def _multi_select(field: FormField, raw: Any) -> Optional[List[str]]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise _invalid(field)

    picked: List[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise _invalid(field)
        value = item.strip()
        if value and value not in picked:
            picked.append(_pick(field, value))
    return picked or None


def _checkbox(field: FormField, raw: Any) -> Union[bool, List[str], None]:
    if field.has_options:
        return _multi_select(field, raw)
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in _TRUE_STRINGS + _FALSE_STRINGS:
        return raw.strip().lower() in _TRUE_STRINGS
    raise _invalid(field)


def _signature(field: FormField, raw: Any) -> Optional[Dict[str, str]]:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Invalid signature for {field.label}.")

    mode = raw.get("mode")
    if mode == "type":
        text = optional_text(raw.get("value"))
        return {"mode": "type", "value": text} if text else None
    if mode == "draw":
        url = raw.get("dataUrl")
        if not isinstance(url, str) or not url:
            return None
        if not url.startswith(DRAWN_SIGNATURE_PREFIX):
            raise ValidationError(f"Invalid signature for {field.label}.")
        return {"mode": "draw", "dataUrl": url}
    raise ValidationError(f"Invalid signature for {field.label}.")


def _display_only(field: FormField, raw: Any) -> None:
    return None


@dataclass(frozen=True)
class FieldTypeHandler:
    normalize: Callable[[FormField, Any], Any]
    display_only: bool = False
    choice: bool = False


FIELD_TYPES: Dict[FieldType, FieldTypeHandler] = {
    FieldType.SECTION: FieldTypeHandler(_display_only, display_only=True),
    FieldType.SHORT_TEXT: FieldTypeHandler(_text),
    FieldType.LONG_TEXT: FieldTypeHandler(_text),
    FieldType.NUMBER: FieldTypeHandler(_text),
    FieldType.DATE: FieldTypeHandler(_text),
    FieldType.EMAIL: FieldTypeHandler(_email),
    FieldType.PHONE: FieldTypeHandler(_phone),
    FieldType.CHECKBOX: FieldTypeHandler(_checkbox, choice=True),
    FieldType.SELECT: FieldTypeHandler(_select, choice=True),
    FieldType.MULTI_SELECT: FieldTypeHandler(_multi_select, choice=True),
    FieldType.SIGNATURE: FieldTypeHandler(_signature),
}


# -- submissions -------------------------------------------------------------


def _is_blank(value: Any) -> bool:
    return value is None or value is False or value == "" or value == []


def _split_other(field: FormField, value: Any, data: Mapping[str, Any]) -> Tuple[Any, Optional[str]]:
    """Pull the free text for a chosen "Other"; drop the sentinel when it is blank."""

    chosen = value if isinstance(value, list) else [value]
    if OTHER_SENTINEL not in chosen:
        return value, None

    text = optional_text(data.get(other_key(field)))
    if text:
        return value, text
    if field.required:
        raise ValidationError(f"Please describe the other answer for {field.label}.")
    if isinstance(value, list):
        return [v for v in value if v != OTHER_SENTINEL], None
    return None, None


def _variable_overrides(raw: Any) -> Dict[str, str]:
    if not isinstance(raw, Mapping):
        return {}
    return {str(k): v for k, v in raw.items() if isinstance(v, str) and v.strip()}


def validate_submission(fields: Iterable[FormField], data: Any) -> Dict[str, Any]:
    """Validate raw answers against a form's live fields.

    Returns the data map to store: one normalized value per answered field,
    ``{id}__other`` text for chosen "Other" answers, and the non-empty
    ``__vars__`` overrides. Unknown keys are dropped.
    """

    if not isinstance(data, Mapping):
        raise ValidationError("Invalid submission payload.")

    out: Dict[str, Any] = {}
    live = sorted((f for f in fields if not f.is_archived), key=lambda f: (f.order, f.field_id))
    for field in live:
        handler = FIELD_TYPES[field.field_type]
        if handler.display_only:
            continue

        value = handler.normalize(field, data.get(field.key))
        if handler.choice and not _is_blank(value) and not isinstance(value, bool):
            value, text = _split_other(field, value, data)
            if text:
                out[other_key(field)] = text

        if _is_blank(value):
            if field.required:
                raise ValidationError(f"{field.label} is required.")
            continue
        out[field.key] = value

    overrides = _variable_overrides(data.get(VARS_KEY))
    if overrides:
        out[VARS_KEY] = overrides
    return out


# -- summaries ---------------------------------------------------------------


def format_plain_value(value: Any) -> str:
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or "-"
    if isinstance(value, dict):
        return json.dumps(value)
    return str(value)


def format_field_value(field: FormField, data: Mapping[str, Any], variables: Mapping[str, str]) -> str:
    """Human-readable summary of one field's answer."""

    if field.field_type == FieldType.SECTION:
        title = resolve_variables(field.label, variables, data)
        body = resolve_variables(field.help_text, variables, data)
        return f"{title} — {body}".strip() if body else title.strip()

    raw = data.get(field.key)
    if field.field_type == FieldType.SIGNATURE and isinstance(raw, Mapping):
        if raw.get("mode") == "type":
            return raw.get("value") or "-"
        if raw.get("mode") == "draw":
            return "Signature (drawn)"

    if FIELD_TYPES[field.field_type].choice and raw and not isinstance(raw, bool):
        parts = [c.value if isinstance(c, Selected) else c.text for c in read_choices(field, data)]
        return ", ".join(parts) or "-"

    return format_plain_value(raw)


def drawn_signature(field: FormField, data: Mapping[str, Any]) -> Optional[str]:
    """Data URL of a drawn signature, if this field holds one."""

    raw = data.get(field.key)
    if field.field_type != FieldType.SIGNATURE or not isinstance(raw, Mapping):
        return None
    url = raw.get("dataUrl")
    if raw.get("mode") == "draw" and isinstance(url, str) and url.startswith(DRAWN_SIGNATURE_PREFIX):
        return url
    return None


# -- definitions -------------------------------------------------------------


def normalize_options(value: Any) -> Tuple[str, ...]:
    """Options from a list, or a string split on newlines and commas."""

    if isinstance(value, list):
        items = [v for v in value if isinstance(v, str)]
    elif isinstance(value, str):
        items = _OPTION_SPLIT.split(value)
    else:
        return ()
    return tuple(item.strip() for item in items if item.strip())


def build_field_options(options: Sequence[str], allow_other: Any) -> Optional[FieldOptions]:
    if not options and not allow_other:
        return None
    return FieldOptions(options=tuple(options), allow_other=bool(allow_other))


def parse_field_type(value: Any) -> FieldType:
    try:
        return FieldType(value)
    except ValueError:
        return FieldType.SHORT_TEXT


def normalize_field_drafts(raw_fields: Any) -> List[FieldDraft]:
    """Incoming field payloads to drafts; the list position becomes ``order``.

    Entries without a label are dropped.
    """

    if not isinstance(raw_fields, list):
        return []

    drafts: List[FieldDraft] = []
    for index, raw in enumerate(raw_fields):
        if not isinstance(raw, Mapping):
            continue
        label = optional_text(raw.get("label"))
        if not label:
            continue
        field_type = parse_field_type(raw.get("type"))
        drafts.append(
            FieldDraft(
                field_id=positive_int(raw.get("id")),
                label=label,
                field_type=field_type,
                required=bool(raw.get("required")) and field_type != FieldType.SECTION,
                help_text=optional_text(raw.get("help_text")),
                options=build_field_options(normalize_options(raw.get("options")), raw.get("allow_other")),
                order=index,
            )
        )
    return drafts
