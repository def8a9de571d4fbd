"""
Option Matcher.

Resolves select, radio and checkbox fields. Exact phrase matches claim
their text; the fuzzy fallback only runs when no exact phrase was found
for the field, and never claims text because its words may be scattered.
"""

from __future__ import annotations

from voiceform.schemas.extraction import Span
from voiceform.schemas.form import OPTION_TYPES, FieldType, FormField
from voiceform.services.extraction_state import ExtractionState
from voiceform.services.text_match import contains_all_words, find_phrase

EXACT_CONFIDENCE = 0.92
EXACT_MULTI_CONFIDENCE = 0.90
FUZZY_CONFIDENCE = 0.75


def _match_exact(state: ExtractionState, field: FormField) -> bool:
    multi = field.type == FieldType.CHECKBOX
    selected: list[str] = []
    claimed: list[Span] = []

    for option in field.options:
        for phrase in option.phrases:
            span = next(
                (s for s in find_phrase(state.text, phrase, state.tokens)
                 if state.spans.is_free(s) and not any(s.overlaps(c) for c in claimed)),
                None,
            )
            if span is None:
                continue
            selected.append(option.id)
            claimed.append(span)
            state.record("option-exact", field.id, option=option.id, phrase=phrase)
            break
        if selected and not multi:
            break

    if not selected:
        return False

    if multi:
        state.add_update(field.id, selected, EXACT_MULTI_CONFIDENCE, "option-exact")
    else:
        state.add_update(field.id, selected[0], EXACT_CONFIDENCE, "option-exact")
    for span in claimed:
        state.claim(span, "option-exact")
    return True


def _match_fuzzy(state: ExtractionState, field: FormField) -> bool:
    multi = field.type == FieldType.CHECKBOX
    selected: list[str] = []

    for option in field.options:
        phrase = next(
            (p for p in [option.label, *option.synonyms] if p and contains_all_words(state.text, p, state.tokens)),
            None,
        )
        if phrase is None:
            continue
        selected.append(option.id)
        state.record("option-fuzzy", field.id, option=option.id, phrase=phrase)
        if not multi:
            break

    if not selected:
        return False

    value = selected if multi else selected[0]
    state.add_update(field.id, value, FUZZY_CONFIDENCE, "option-fuzzy")
    return True


def match_options(state: ExtractionState) -> None:
    for field in state.unsatisfied(*OPTION_TYPES):
        if not field.options:
            continue
        if not _match_exact(state, field):
            _match_fuzzy(state, field)
