"""Answer values and their coercion rules.

The answer set is a plain ``dict[str, Any]`` because it is persisted as a
single JSON document.  Value shapes depend on the declared field type:

    text, textarea   -> str
    number           -> int | float
    currency         -> float, rounded to cents
    date             -> ISO-8601 date string (YYYY-MM-DD)
    boolean          -> bool
    select           -> str, one of the field's options
    repeatable-group -> list of {item_field: str} records
    <section>_files  -> list of UploadedFileDescriptor dicts

Raw input from clients (form posts, imported spreadsheets) arrives as
strings more often than not.  :func:`coerce_answer` converts it to the
canonical shape once, at the service boundary; the resolvers and the wizard
operate on whatever is already stored and never coerce.

``None`` always means "unset".  Blank strings submitted for numeric or date
fields are coerced to ``None`` as well.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, Union

from pydantic import BaseModel, ConfigDict

from intake_rulesets.models.schema import FieldDefinition

AnswerValue = Union[str, int, float, bool, list, None]

_INT_RE = re.compile(r"^[+-]?\d+$")
_CENTS = Decimal("0.01")

_TRUE_STRINGS = {"true", "yes", "y", "1"}
_FALSE_STRINGS = {"false", "no", "n", "0"}


class UploadedFileDescriptor(BaseModel):
    """Metadata for one uploaded document.

    Appended to a section's file list after a successful upload, removed on
    explicit deletion, never mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    # Storage key, namespaced as "<token>/<section id>/<millis>-<name>"
    path: str
    size: int


# ---------------------------------------------------------------------------
# Type-specific coercers
# ---------------------------------------------------------------------------

def _invalid(field: FieldDefinition, value: Any) -> ValueError:
    return ValueError(f"Invalid {field.type} value for field '{field.id}': {value!r}")


def _coerce_text(field: FieldDefinition, value: Any) -> str:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise _invalid(field, value)
    return str(value)


def _coerce_number(field: FieldDefinition, value: Any) -> int | float | None:
    # bool is an int subclass; a checkbox value is never a count
    if isinstance(value, bool):
        raise _invalid(field, value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise _invalid(field, value)
        return value
    if not isinstance(value, str):
        raise _invalid(field, value)
    raw = value.strip().replace(",", "")
    if raw == "":
        return None
    try:
        number = int(raw) if _INT_RE.match(raw) else float(raw)
    except ValueError:
        raise _invalid(field, value) from None
    # float() accepts "nan" and "inf", and turns "1e400" into inf
    if isinstance(number, float) and not math.isfinite(number):
        raise _invalid(field, value)
    return number


def _coerce_currency(field: FieldDefinition, value: Any) -> float | None:
    if isinstance(value, bool):
        raise _invalid(field, value)
    if isinstance(value, str):
        raw = value.strip().replace("$", "").replace(",", "")
        if raw == "":
            return None
    elif isinstance(value, (int, float)):
        raw = str(value)
    else:
        raise _invalid(field, value)
    try:
        amount = Decimal(raw)
        if not amount.is_finite():
            raise _invalid(field, value)
        # Amounts past the context precision cannot be rounded to cents
        return float(amount.quantize(_CENTS, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise _invalid(field, value) from None


def _coerce_date(field: FieldDefinition, value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise _invalid(field, value)
    raw = value.strip()
    if raw == "":
        return None
    try:
        return date.fromisoformat(raw).isoformat()
    except ValueError:
        raise _invalid(field, value) from None


def coerce_boolean(key: str, value: Any) -> bool:
    """Coerce a yes/no answer; shared by boolean fields and gating questions."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean value for '{key}': {value!r}")


def _coerce_bool_field(field: FieldDefinition, value: Any) -> bool:
    return coerce_boolean(field.id, value)


def _coerce_select(field: FieldDefinition, value: Any) -> str:
    if not isinstance(value, str) or value not in (field.options or ()):
        raise ValueError(
            f"Invalid option for field '{field.id}': {value!r} "
            f"(expected one of {list(field.options or ())})"
        )
    return value


def _coerce_group(field: FieldDefinition, value: Any) -> list[dict[str, str]]:
    if not isinstance(value, list):
        raise _invalid(field, value)
    allowed = set(field.item_fields or ())
    records: list[dict[str, str]] = []
    for item in value:
        if not isinstance(item, dict):
            raise _invalid(field, value)
        unknown = set(item) - allowed
        if unknown:
            raise ValueError(
                f"Unknown item fields for '{field.id}': {sorted(unknown)}"
            )
        records.append(
            {k: "" if v is None else str(v) for k, v in item.items()}
        )
    return records


# Maps field type -> coercer, the same way question_type strings map to
# model classes elsewhere in the SDK.
_COERCERS: dict[str, Callable[[FieldDefinition, Any], Any]] = {
    "text": _coerce_text,
    "textarea": _coerce_text,
    "number": _coerce_number,
    "currency": _coerce_currency,
    "date": _coerce_date,
    "boolean": _coerce_bool_field,
    "select": _coerce_select,
    "repeatable-group": _coerce_group,
}


def coerce_answer(field: FieldDefinition, value: Any) -> Any:
    """Convert a raw client value into the canonical shape for ``field.type``.

    Raises:
        ValueError: if the value cannot represent the field's type.
    """
    if value is None:
        return None
    return _COERCERS[field.type](field, value)


def coerce_file_list(key: str, value: Any) -> list[dict]:
    """Validate a ``<section>_files`` value and return it as plain dicts."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"Invalid file list for '{key}': expected a list")
    return [UploadedFileDescriptor.model_validate(item).model_dump() for item in value]
