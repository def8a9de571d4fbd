"""
Deduplicator: one update per field, the most confident one.
"""

from __future__ import annotations

from typing import Iterable

from voiceform.schemas.extraction import FieldUpdate


def dedupe_updates(updates: Iterable[FieldUpdate]) -> list[FieldUpdate]:
    """
    Keep the highest-confidence candidate per field id.

    Ties keep the earliest candidate, since pass order already ranks
    precise matches ahead of fallbacks. Output order follows the first
    appearance of each field id.
    """
    best: dict[str, FieldUpdate] = {}
    for update in updates:
        current = best.get(update.field_id)
        if current is None or update.confidence > current.confidence:
            best[update.field_id] = update
    return list(best.values())
