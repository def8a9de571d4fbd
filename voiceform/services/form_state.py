"""
Form State Service.

Applies extracted field updates to the values of a form being filled:
coerces each value to its field type, validates it, and sorts updates
into auto-applied and needs-review buckets by confidence.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

from voiceform.config import get_settings
from voiceform.logging_config import get_logger
from voiceform.schemas.extraction import ExtractionResult, FieldUpdate
from voiceform.schemas.form import FormSchema
from voiceform.services.coercion import coerce_value
from voiceform.services.validation import validate_field

logger = get_logger(__name__)


class FormState(BaseModel):
    """Values of a form after a round of updates."""
    values: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, Optional[str]] = Field(default_factory=dict)
    applied: list[str] = Field(default_factory=list)
    needs_review: list[str] = Field(default_factory=list)
    unknown_fields: list[str] = Field(default_factory=list)


def apply_updates(
    schema: FormSchema,
    values: dict[str, Any] | None,
    updates: Iterable[FieldUpdate],
    review_threshold: float | None = None,
) -> FormState:
    """
    Merge updates into a copy of ``values``.

    Every update for a known field is applied; those below the review
    threshold are also listed in ``needs_review``. Updates naming a field
    the schema does not have are skipped.
    """
    threshold = review_threshold if review_threshold is not None else get_settings().review_threshold
    state = FormState(values=dict(values or {}))

    for update in updates:
        field = schema.get(update.field_id)
        if field is None:
            logger.warning("update_skipped_unknown_field", field_id=update.field_id)
            state.unknown_fields.append(update.field_id)
            continue

        value = coerce_value(field, update.value)
        state.values[field.id] = value
        state.errors[field.id] = validate_field(field, value)
        state.applied.append(field.id)
        if update.confidence < threshold:
            state.needs_review.append(field.id)

    logger.info(
        "form_updates_applied",
        applied=len(state.applied),
        needs_review=len(state.needs_review),
        invalid=sum(1 for e in state.errors.values() if e),
    )
    return state


def fields_needing_review(updates: Iterable[FieldUpdate], threshold: float | None = None) -> list[FieldUpdate]:
    """Return updates that should be confirmed by the user."""
    threshold = threshold if threshold is not None else get_settings().review_threshold
    return [u for u in updates if u.confidence < threshold]


def fields_to_apply(updates: Iterable[FieldUpdate], threshold: float | None = None) -> list[FieldUpdate]:
    """Return updates confident enough to apply silently."""
    threshold = threshold if threshold is not None else get_settings().auto_apply_threshold
    return [u for u in updates if u.confidence >= threshold]


def summarize_result(result: ExtractionResult, transcript: str | None) -> str:
    """Build a human-readable summary of one extraction."""
    updates = result.updates
    if not updates:
        if transcript and transcript.strip():
            return "Could not extract anything from what was said. Try naming the field, e.g. 'email is ...'."
        return "Nothing was said."

    settings = get_settings()
    high = fields_to_apply(updates, settings.auto_apply_threshold)
    review = fields_needing_review(updates, settings.review_threshold)

    parts = [f"Filled {len(updates)} field{'s' if len(updates) != 1 else ''}."]
    if high:
        parts.append(f"{len(high)} high-confidence.")
    if review:
        parts.append(f"{len(review)} need confirmation.")
    return " ".join(parts)
