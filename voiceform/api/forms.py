"""
API Router for Form Filling Endpoints.

Runs the local transcript parser against a caller-supplied form schema,
applies the resulting updates to form values, and validates single
field values.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from voiceform.config import get_settings
from voiceform.logging_config import get_logger
from voiceform.schemas.extraction import ExtractionTrace, FieldUpdate
from voiceform.schemas.form import FormField, FormSchema
from voiceform.services.date_parsing import DateparserSearch
from voiceform.services.form_state import FormState, apply_updates, summarize_result
from voiceform.services.transcript_parser import parse_transcript
from voiceform.services.validation import validate_field

logger = get_logger(__name__)
router = APIRouter(prefix="/forms", tags=["Forms"])


class ExtractRequest(BaseModel):
    form: FormSchema
    transcript: str = ""
    include_trace: bool = False
    reference_time: Optional[datetime] = None  # Base for "tomorrow", "next Friday"


class ExtractResponse(BaseModel):
    updates: list[FieldUpdate]
    summary: str
    trace: Optional[ExtractionTrace] = None


class ApplyRequest(ExtractRequest):
    values: dict[str, Any] = Field(default_factory=dict)


class ApplyResponse(BaseModel):
    state: FormState
    updates: list[FieldUpdate]
    summary: str


class ValidateRequest(BaseModel):
    field: FormField
    value: Any = None


class ValidateResponse(BaseModel):
    field_id: str
    error: Optional[str] = None


def _check_length(transcript: str) -> None:
    limit = get_settings().max_transcript_chars
    if len(transcript) > limit:
        raise HTTPException(status_code=422, detail=f"Transcript exceeds {limit} characters")


# Plain ``def`` handlers: parsing is CPU-bound, FastAPI runs them in its threadpool
@router.post("/extract", response_model=ExtractResponse)
def extract(body: ExtractRequest) -> ExtractResponse:
    """Extract field updates from a transcript."""
    _check_length(body.transcript)
    result = parse_transcript(
        body.form,
        body.transcript,
        date_parser=DateparserSearch(reference_time=body.reference_time),
    )
    return ExtractResponse(
        updates=result.updates,
        summary=summarize_result(result, body.transcript),
        trace=result.trace if body.include_trace else None,
    )


@router.post("/apply", response_model=ApplyResponse)
def apply(body: ApplyRequest) -> ApplyResponse:
    """Extract updates and merge them into the current form values."""
    _check_length(body.transcript)
    result = parse_transcript(
        body.form,
        body.transcript,
        date_parser=DateparserSearch(reference_time=body.reference_time),
    )
    state = apply_updates(body.form, body.values, result.updates)
    return ApplyResponse(
        state=state,
        updates=result.updates,
        summary=summarize_result(result, body.transcript),
    )


@router.post("/validate", response_model=ValidateResponse)
def validate(body: ValidateRequest) -> ValidateResponse:
    """Validate one value against its field definition."""
    return ValidateResponse(field_id=body.field.id, error=validate_field(body.field, body.value))
