"""
Per-run state shared by the extraction passes.

Each pass receives the state explicitly and may only append: new
candidate updates, new claimed spans and new trace events.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from voiceform.schemas.extraction import FieldUpdate, Span, TraceEvent
from voiceform.schemas.form import FieldType, FormField
from voiceform.services.spans import SpanTracker
from voiceform.services.text_match import Token, tokenize


@dataclass
class ExtractionState:
    text: str
    fields: list[FormField]
    spans: SpanTracker = field(default_factory=SpanTracker)
    updates: list[FieldUpdate] = field(default_factory=list)
    events: list[TraceEvent] = field(default_factory=list)
    tokens: list[Token] = field(init=False)

    def __post_init__(self) -> None:
        self.tokens = tokenize(self.text)

    def is_satisfied(self, field_id: str) -> bool:
        return any(u.field_id == field_id for u in self.updates)

    def unsatisfied(self, *types: FieldType) -> list[FormField]:
        """Fields with no update yet, optionally restricted to ``types``."""
        return [
            f for f in self.fields
            if (not types or f.type in types) and not self.is_satisfied(f.id)
        ]

    def record(self, kind: str, field_id: Optional[str] = None, **detail: Any) -> None:
        self.events.append(TraceEvent(kind=kind, field_id=field_id, detail=detail))

    def add_update(
        self,
        field_id: str,
        value: Any,
        confidence: float,
        evidence: str,
        span: Optional[Span] = None,
    ) -> FieldUpdate:
        """Append a candidate update; claim ``span`` when one is given."""
        update = FieldUpdate(field_id=field_id, value=value, confidence=confidence, evidence=evidence)
        self.updates.append(update)
        if span is not None:
            self.claim(span, evidence)
        return update

    def claim(self, span: Span, note: str) -> None:
        self.spans.mark_used(span)
        self.record("mark-span", start=span.start, end=span.end, note=note)

    def slice(self, span: Span) -> str:
        return self.text[span.start:span.end]
