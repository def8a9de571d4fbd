"""
Leftover Clause Assigner.

Last and least precise pass: whatever text no earlier pass claimed is
split into clauses and handed, in order, to plain text fields that are
still empty.
"""

from __future__ import annotations

import re

from voiceform.schemas.form import FieldType
from voiceform.services.extraction_state import ExtractionState

FALLBACK_CONFIDENCE = 0.55
MIN_CLAUSE_CHARS = 2

_CLAUSE_SPLIT_RE = re.compile(r"[,;\n]|\band\b", re.IGNORECASE)


def leftover_text(state: ExtractionState) -> str:
    """Unclaimed fragments, in order, joined by single spaces."""
    fragments = [state.slice(s) for s in state.spans.free_segments(len(state.text))]
    return " ".join(fragments).strip()


def split_clauses(text: str) -> list[str]:
    clauses = (c.strip() for c in _CLAUSE_SPLIT_RE.split(text))
    return [c for c in clauses if len(c) >= MIN_CLAUSE_CHARS]


def assign_leftovers(state: ExtractionState) -> None:
    leftover = leftover_text(state)
    if not leftover:
        return

    clauses = split_clauses(leftover)
    empty_fields = state.unsatisfied(FieldType.TEXT)
    for field, clause in zip(empty_fields, clauses):
        state.add_update(field.id, clause, FALLBACK_CONFIDENCE, "fallback-clause")
        state.record("fallback-assign", field.id, clause=clause)
