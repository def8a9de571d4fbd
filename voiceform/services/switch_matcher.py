"""
Boolean/Switch Matcher.

Resolves toggle fields from phrases such as "newsletter: yes",
"notifications are off" or "turn dark mode on".
"""

from __future__ import annotations

from typing import Optional

from voiceform.schemas.extraction import Span
from voiceform.schemas.form import FieldType, FormField
from voiceform.services.extraction_state import ExtractionState
from voiceform.services.text_match import contains_phrase, find_phrase, read_clause, tokenize

SWITCH_CONFIDENCE = 0.90

TRUE_WORDS = ("yes", "true", "enable", "enabled", "on", "allow", "allowed")
FALSE_WORDS = ("no", "false", "disable", "disabled", "off", "don't", "do not", "not")


def classify_clause(clause: str) -> Optional[bool]:
    """True/False for a clear answer, None when neither or both polarities appear."""
    tokens = tokenize(clause)
    is_true = any(contains_phrase(clause, w, tokens) for w in TRUE_WORDS)
    is_false = any(contains_phrase(clause, w, tokens) for w in FALSE_WORDS)
    if is_true == is_false:
        return None
    return is_true


def _match_label_clause(state: ExtractionState, field: FormField) -> bool:
    for phrase in field.label_phrases:
        for label_span in find_phrase(state.text, phrase, state.tokens):
            clause = read_clause(state.text, label_span.end)
            if clause is None:
                continue

            value = classify_clause(clause.text)
            if value is None:
                state.record("switch-ambiguous", field.id, phrase=phrase, clause=clause.text)
                continue

            span = Span(label_span.start, clause.end)
            if not state.spans.is_free(span):
                state.record("switch-skip-overlap", field.id, phrase=phrase)
                continue

            state.add_update(field.id, value, SWITCH_CONFIDENCE, "label-boolean", span)
            state.record("switch-match", field.id, value=value, clause=clause.text)
            return True
    return False


def _match_turn_on_off(state: ExtractionState, field: FormField) -> bool:
    for phrase in field.label_phrases:
        hits = [
            (span.start, state_word, value)
            for state_word, value in (("on", True), ("off", False))
            for span in find_phrase(state.text, f"turn {phrase} {state_word}", state.tokens)
        ]
        if not hits:
            continue
        _, state_word, value = min(hits)
        # Best-effort tagging: the text stays available to later passes
        state.add_update(field.id, value, SWITCH_CONFIDENCE, "turn-on-off")
        state.record("switch-turn", field.id, value=state_word)
        return True
    return False


def match_switches(state: ExtractionState) -> None:
    for field in state.unsatisfied(FieldType.SWITCH):
        if not _match_label_clause(state, field):
            _match_turn_on_off(state, field)
