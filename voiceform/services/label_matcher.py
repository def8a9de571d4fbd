"""
Label/Key-Value Matcher.

Generic net for fields no earlier pass resolved: finds "<label> [is|:|=]
<value>" using the field's label, its synonyms and its raw id, then
coerces the value according to the field type.
"""

from __future__ import annotations

from typing import Optional

from voiceform.logging_config import get_logger
from voiceform.schemas.extraction import Span
from voiceform.schemas.form import DATE_TYPES, FieldType, FormField
from voiceform.services.coercion import CoercedValue, coerce_raw
from voiceform.services.date_parsing import DateParser
from voiceform.services.extraction_state import ExtractionState
from voiceform.services.text_match import Clause, contains_phrase, find_phrase, read_clause

logger = get_logger(__name__)

OPTION_CONFIDENCE = 0.85
TEXT_CONFIDENCE = 0.60

TYPED_FIELDS = frozenset({FieldType.NUMBER, FieldType.EMAIL, FieldType.PHONE, *DATE_TYPES})


def key_phrases(field: FormField) -> list[str]:
    """Label, synonyms and id, deduplicated case-insensitively, longest first."""
    seen: set[str] = set()
    phrases: list[str] = []
    for phrase in [field.label, *field.synonyms, field.id]:
        key = (phrase or "").strip().casefold()
        if key and key not in seen:
            seen.add(key)
            phrases.append(phrase.strip())
    return sorted(phrases, key=len, reverse=True)


def _find_key_value(state: ExtractionState, field: FormField) -> Optional[tuple[Span, Clause]]:
    # Earliest occurrence first; at the same offset the longer phrase wins
    occurrences = sorted(
        (span.start, -len(span), span)
        for phrase in key_phrases(field)
        for span in find_phrase(state.text, phrase, state.tokens)
    )
    for _, _, label_span in occurrences:
        clause = read_clause(state.text, label_span.end)
        if clause is None:
            continue
        span = Span(label_span.start, clause.end)
        if not state.spans.is_free(span):
            state.record("labelkv-skip-overlap", field.id, match=state.slice(span))
            continue
        return span, clause
    return None


def _coerce(
    state: ExtractionState,
    field: FormField,
    raw: str,
    date_parser: DateParser,
) -> Optional[CoercedValue]:
    try:
        return coerce_raw(field, raw, date_parser)
    except Exception as e:
        # Date parser failures leave the clause to the raw-text branch
        logger.warning("date_parse_failed", error=str(e), field_id=field.id)
        state.record("chrono-error", field.id, error=str(e))
        return None


def match_labels(state: ExtractionState, date_parser: DateParser) -> None:
    for field in state.unsatisfied():
        found = _find_key_value(state, field)
        if found is None:
            continue
        span, clause = found
        raw = clause.text

        coerced = _coerce(state, field, raw, date_parser) if field.type in TYPED_FIELDS else None
        if coerced is not None:
            state.add_update(field.id, coerced.value, coerced.confidence, "label-kv", span)
            state.record("labelkv-match-coerced", field.id, value=coerced.value, evidence=coerced.evidence)
            continue

        if field.has_options:
            ids = [o.id for o in field.options if contains_phrase(raw, o.label)]
            if ids:
                value = ids if field.type == FieldType.CHECKBOX else ids[0]
                state.add_update(field.id, value, OPTION_CONFIDENCE, "label-kv-option", span)
                state.record("labelkv-option", field.id, value=value)
                continue

        state.add_update(field.id, raw, TEXT_CONFIDENCE, "label-kv-text", span)
        state.record("labelkv-text", field.id, raw=raw)
