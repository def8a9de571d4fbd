"""
Span Tracker.

Keeps the character ranges already claimed by field updates during one
extraction run. Passes run incrementally, so every query works on the
merged union of all prior claims.
"""

from __future__ import annotations

from typing import Iterable

from voiceform.schemas.extraction import Span


def merge_spans(spans: Iterable[Span]) -> list[Span]:
    """Sort by start and fold adjacent or overlapping ranges together."""
    ordered = sorted(spans)
    if not ordered:
        return []

    merged: list[Span] = []
    cur_start, cur_end = ordered[0].start, ordered[0].end
    for span in ordered[1:]:
        if span.start <= cur_end:
            cur_end = max(cur_end, span.end)
        else:
            merged.append(Span(cur_start, cur_end))
            cur_start, cur_end = span.start, span.end
    merged.append(Span(cur_start, cur_end))
    return merged


class SpanTracker:
    """Claimed ranges of one transcript."""

    def __init__(self, spans: Iterable[Span] = ()) -> None:
        self._merged: list[Span] = merge_spans(spans)

    def mark_used(self, span: Span) -> None:
        self._merged = merge_spans([*self._merged, span])

    def is_free(self, span: Span) -> bool:
        return not any(used.overlaps(span) for used in self._merged)

    def merged(self) -> list[Span]:
        return list(self._merged)

    def free_segments(self, length: int) -> list[Span]:
        """Complement of the used spans over [0, length)."""
        segments: list[Span] = []
        cursor = 0
        for used in self._merged:
            if cursor < used.start:
                segments.append(Span(cursor, min(used.start, length)))
            cursor = max(cursor, used.end)
        if cursor < length:
            segments.append(Span(cursor, length))
        return [s for s in segments if len(s) > 0]

    def __len__(self) -> int:
        return len(self._merged)
