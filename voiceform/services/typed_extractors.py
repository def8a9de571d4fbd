"""
Typed-Pattern Extractors.

One pass per well-known value shape: email, phone, date/time and plain
numbers, run in that order. Each pass scans the whole transcript, skips
matches that overlap text already claimed, and routes the rest to a
target field resolved through ``rank_targets``.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, Optional

from voiceform.logging_config import get_logger
from voiceform.schemas.extraction import Span
from voiceform.schemas.form import DATE_TYPES, FieldType, FormField
from voiceform.services.coercion import (
    DATE_CONFIDENCE,
    EMAIL_CONFIDENCE,
    EMAIL_RE,
    NUMBER_CONFIDENCE,
    NUMBER_RE,
    PHONE_CONFIDENCE,
    PHONE_RE,
    normalize_phone,
    parse_number,
)
from voiceform.services.date_parsing import DateParser, format_for_field
from voiceform.services.extraction_state import ExtractionState

logger = get_logger(__name__)

EMAIL_KEYWORDS = ("email", "e-mail")
PHONE_KEYWORDS = ("phone", "mobile")

# Phone-shaped digit runs that are really calendar dates ("2024-03-15")
_DATE_SHAPE_RE = re.compile(r"\d{4}-\d{1,2}-\d{1,2}|\d{1,2}/\d{1,2}/\d{2,4}")


def rank_targets(
    fields: Iterable[FormField],
    field_type: FieldType,
    keywords: Iterable[str] = (),
    catch_all: bool = False,
) -> list[FormField]:
    """
    Candidate target fields for a typed match, best first.

    Ranking tiers:
    1. fields declared with ``field_type``
    2. fields whose label mentions one of ``keywords``
    3. the first plain text field, when ``catch_all`` is set
    """
    fields = list(fields)
    keywords = tuple(k.lower() for k in keywords)
    ranked: list[FormField] = [f for f in fields if f.type == field_type]
    seen = {f.id for f in ranked}

    for f in fields:
        if f.id not in seen and any(k in f.label.lower() for k in keywords):
            ranked.append(f)
            seen.add(f.id)

    if catch_all:
        fallback = next((f for f in fields if f.type == FieldType.TEXT and f.id not in seen), None)
        if fallback is not None:
            ranked.append(fallback)

    return ranked


def _extract_pattern(
    state: ExtractionState,
    kind: str,
    pattern: re.Pattern[str],
    targets: list[FormField],
    confidence: float,
    normalize: Callable[[str], object],
    skip: Optional[Callable[[str], bool]] = None,
) -> None:
    """Route every free match to the top-ranked target while it is unsatisfied."""
    for m in pattern.finditer(state.text):
        raw = m.group(0)
        span = Span(m.start(), m.end())

        if skip is not None and skip(raw):
            state.record(f"{kind}-skip-shape", match=raw)
            continue
        if not state.spans.is_free(span):
            state.record(f"{kind}-skip-overlap", match=raw, start=span.start, end=span.end)
            continue
        if not targets:
            state.record(f"{kind}-no-target", match=raw)
            continue

        target = targets[0]
        if state.is_satisfied(target.id):
            # Later matches are dropped rather than reassigned elsewhere
            state.record(f"{kind}-skip-satisfied", target.id, match=raw)
            continue

        state.add_update(target.id, normalize(raw), confidence, kind, span)
        state.record(f"{kind}-match", target.id, match=raw)


def extract_emails(state: ExtractionState) -> None:
    targets = rank_targets(state.fields, FieldType.EMAIL, EMAIL_KEYWORDS, catch_all=True)
    _extract_pattern(state, "email", EMAIL_RE, targets, EMAIL_CONFIDENCE, str)


def extract_phones(state: ExtractionState) -> None:
    targets = rank_targets(state.fields, FieldType.PHONE, PHONE_KEYWORDS, catch_all=True)
    _extract_pattern(
        state,
        "phone",
        PHONE_RE,
        targets,
        PHONE_CONFIDENCE,
        normalize_phone,
        skip=lambda raw: _DATE_SHAPE_RE.search(raw) is not None,
    )


def extract_dates(state: ExtractionState, date_parser: DateParser) -> None:
    """Each parsed occurrence fills the next date, time or datetime field."""
    if not state.unsatisfied(*DATE_TYPES):
        return

    try:
        occurrences = date_parser.parse(state.text)
    except Exception as e:
        logger.warning("date_parse_failed", error=str(e), transcript_length=len(state.text))
        state.record("chrono-error", error=str(e))
        return

    for occ in occurrences:
        span = Span(occ.start, occ.end)
        if not state.spans.is_free(span):
            state.record("chrono-skip-overlap", text=occ.text, start=span.start, end=span.end)
            continue

        candidates = state.unsatisfied(*DATE_TYPES)
        if not candidates:
            break

        target = candidates[0]
        value = format_for_field(occ.value, target.type)
        state.add_update(target.id, value, DATE_CONFIDENCE, "chrono", span)
        state.record("chrono-match", target.id, text=occ.text, value=value)


def extract_numbers(state: ExtractionState) -> None:
    """Each free digit run fills the next number field."""
    for m in NUMBER_RE.finditer(state.text):
        candidates = state.unsatisfied(FieldType.NUMBER)
        if not candidates:
            return

        raw = m.group(0)
        span = Span(m.start(), m.end())
        if not state.spans.is_free(span):
            state.record("number-skip-overlap", match=raw, start=span.start, end=span.end)
            continue

        target = candidates[0]
        value = parse_number(raw)
        state.add_update(target.id, value, NUMBER_CONFIDENCE, "digits", span)
        state.record("number-match", target.id, value=value)


def run_typed_extractors(state: ExtractionState, date_parser: DateParser) -> None:
    extract_emails(state)
    extract_phones(state)
    extract_dates(state, date_parser)
    extract_numbers(state)
