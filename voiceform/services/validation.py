"""
Field Validation.

Checks a stored value against its field definition and returns a
human-readable error, or None when the value is acceptable. Used on
engine output and on manual edits; the engine itself never validates.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Optional

from voiceform.logging_config import get_logger
from voiceform.schemas.form import FieldType, FormField
from voiceform.services.coercion import is_empty

logger = get_logger(__name__)

_PHONE_RE = re.compile(r"^\d{10}$")
_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}[ T]([01]\d|2[0-3]):[0-5]\d$")


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def _format_bound(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def validate_field(field: FormField, value: Any) -> Optional[str]:
    # Nothing is required at this level, so empty is always valid
    if is_empty(value):
        return None

    if field.type == FieldType.NUMBER:
        number = _as_number(value)
        if number is None:
            return f"{field.label} must be a number"
        if field.min is not None and number < field.min:
            return f"{field.label} must be ≥ {_format_bound(field.min)}"
        if field.max is not None and number > field.max:
            return f"{field.label} must be ≤ {_format_bound(field.max)}"

    elif field.type == FieldType.PHONE:
        if not _PHONE_RE.match(str(value)):
            return "Enter a 10-digit phone number"

    elif field.type == FieldType.DATE:
        m = _DATE_RE.match(str(value).strip())
        if not m:
            return "Use YYYY-MM-DD"
        try:
            date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            return "Invalid date"

    elif field.type == FieldType.TIME:
        if not _TIME_RE.match(str(value)):
            return "Use HH:mm (24h)"

    elif field.type == FieldType.DATETIME:
        if not _DATETIME_RE.match(str(value)):
            return "Use YYYY-MM-DD HH:mm"

    elif field.type in (FieldType.RADIO, FieldType.SELECT):
        if str(value) not in field.option_ids():
            return "Select a valid option"

    elif field.type == FieldType.CHECKBOX:
        ids = field.option_ids()
        values = value if isinstance(value, list) else []
        if not all(str(v) in ids for v in values):
            return "Contains invalid option(s)"

    # Email is never pattern-checked
    if field.pattern and field.type != FieldType.EMAIL:
        try:
            pattern = re.compile(field.pattern)
        except re.error as e:
            logger.debug("invalid_field_pattern", field=field.id, error=str(e))
            return None
        if not pattern.search(str(value)):
            return f"{field.label} is invalid"

    return None
