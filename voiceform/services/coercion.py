"""
Value coercion for form fields.

``coerce_value`` normalizes a value before it is stored in form state.
``coerce_raw`` turns a raw clause captured next to a field label into a
typed value, or returns None when the clause does not parse as that type.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from voiceform.schemas.form import DATE_TYPES, FieldType, FormField
from voiceform.services.date_parsing import DateParser, format_for_field

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"\+?\d[\d\-\s().]{6,}\d")
NUMBER_RE = re.compile(r"\b\d+(?:,\d{3})*(?:\.\d+)?\b")

EMAIL_CONFIDENCE = 0.95
PHONE_CONFIDENCE = 0.90
DATE_CONFIDENCE = 0.85
NUMBER_CONFIDENCE = 0.90

_TRUE_STRINGS = frozenset({"yes", "true", "on", "1", "y", "enabled"})
_FALSE_STRINGS = frozenset({"no", "false", "off", "0", "n", "disabled", ""})


@dataclass(frozen=True)
class CoercedValue:
    value: Any
    confidence: float
    evidence: str


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def parse_number(raw: str) -> int | float:
    """Parse a digit run with optional thousands separators and decimals."""
    cleaned = raw.replace(",", "")
    if "." in cleaned:
        return float(cleaned)
    return int(cleaned)


def normalize_phone(raw: str) -> str:
    return re.sub(r"\D", "", raw)


def coerce_value(field: FormField, value: Any) -> Any:
    """Return a type-correct value, or ``value`` unchanged if no coercion applies."""
    if is_empty(value):
        return value

    if field.type == FieldType.NUMBER:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value
        try:
            number = float(str(value).strip())
        except ValueError:
            return value
        if not math.isfinite(number):
            return value
        return int(number) if number.is_integer() and "." not in str(value) else number

    if field.type == FieldType.SWITCH:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        return bool(value)

    return value


def coerce_raw(
    field: FormField,
    raw: str,
    date_parser: Optional[DateParser] = None,
) -> Optional[CoercedValue]:
    """Typed coercion of a raw clause; None when the clause does not fit the type."""
    text = raw.strip()
    if not text:
        return None

    if field.type == FieldType.NUMBER:
        # Allow currency symbols and words around the digits ("$1,200 a month")
        m = NUMBER_RE.search(text)
        if not m:
            return None
        value = parse_number(m.group(0))
        if text[: m.start()].rstrip().endswith("-"):
            value = -value
        return CoercedValue(value, NUMBER_CONFIDENCE, "number")

    if field.type in DATE_TYPES:
        if date_parser is None:
            return None
        occurrences = date_parser.parse(text)
        if not occurrences:
            return None
        return CoercedValue(
            format_for_field(occurrences[0].value, field.type),
            DATE_CONFIDENCE,
            "chrono",
        )

    if field.type == FieldType.EMAIL:
        m = EMAIL_RE.search(text)
        return CoercedValue(m.group(0), EMAIL_CONFIDENCE, "email") if m else None

    if field.type == FieldType.PHONE:
        m = PHONE_RE.search(text)
        return CoercedValue(normalize_phone(m.group(0)), PHONE_CONFIDENCE, "phone") if m else None

    return None
