"""
Transcript Parser.

Local, deterministic transcript-to-field-update extraction. Runs the
extraction passes in a fixed order over one shared span tracker, so a
span claimed by a precise pass is never reused by a fallback:

1. typed patterns (email, phone, date/time, number)
2. option fields (exact phrase, then fuzzy words)
3. switches
4. label/key-value pairs
5. leftover clauses for empty text fields

and finally keeps the most confident candidate per field.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from voiceform.logging_config import get_logger
from voiceform.schemas.extraction import ExtractionResult, ExtractionTrace
from voiceform.schemas.form import FormField, FormSchema
from voiceform.services.date_parsing import DateParser, DateparserSearch
from voiceform.services.dedup import dedupe_updates
from voiceform.services.extraction_state import ExtractionState
from voiceform.services.label_matcher import match_labels
from voiceform.services.leftover import assign_leftovers
from voiceform.services.option_matcher import match_options
from voiceform.services.switch_matcher import match_switches
from voiceform.services.typed_extractors import run_typed_extractors

logger = get_logger(__name__)


def parse_transcript(
    schema: Union[FormSchema, Iterable[FormField]],
    transcript: Optional[str],
    date_parser: Optional[DateParser] = None,
) -> ExtractionResult:
    """
    Extract confidence-scored field updates from a transcript.

    Args:
        schema: The form, or its fields in display order.
        transcript: Raw utterance. Empty or blank input yields no updates.
        date_parser: Date/time collaborator; defaults to ``DateparserSearch``
            with the configured settings.

    Returns:
        ExtractionResult with at most one update per field, plus the merged
        claimed spans and a trace of every attempted match.
    """
    fields = list(schema.fields if isinstance(schema, FormSchema) else schema)
    text = transcript or ""
    if not text.strip():
        return ExtractionResult()

    parser = date_parser if date_parser is not None else DateparserSearch()
    state = ExtractionState(text=text, fields=fields)

    logger.info(
        "transcript_parse_started",
        fields=len(fields),
        transcript_length=len(text),
    )

    run_typed_extractors(state, parser)
    match_options(state)
    match_switches(state)
    match_labels(state, parser)
    assign_leftovers(state)

    updates = dedupe_updates(state.updates)
    result = ExtractionResult(
        updates=updates,
        trace=ExtractionTrace(used_spans=state.spans.merged(), events=state.events),
    )

    logger.info(
        "transcript_parse_complete",
        candidates=len(state.updates),
        fields_extracted=len(updates),
        avg_confidence=_avg_confidence(updates),
    )
    return result


def _avg_confidence(updates: list) -> float:
    if not updates:
        return 0.0
    return round(sum(u.confidence for u in updates) / len(updates), 3)
