"""
Data models for transcript extraction results.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True, order=True)
class Span:
    """Half-open character range [start, end) over the transcript."""
    start: int
    end: int

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end

    def __len__(self) -> int:
        return max(0, self.end - self.start)


class FieldUpdate(BaseModel):
    """A value proposed for one form field."""
    model_config = ConfigDict(populate_by_name=True)

    field_id: str = Field(alias="fieldId")
    value: Any
    confidence: float = Field(ge=0.0, le=1.0)
    evidence: Optional[str] = None  # Tag of the pass that produced it


class TraceEvent(BaseModel):
    """One attempted match, kept for diagnostics."""
    kind: str
    field_id: Optional[str] = None
    detail: Dict[str, Any] = Field(default_factory=dict)


class ExtractionTrace(BaseModel):
    used_spans: List[Span] = Field(default_factory=list)
    events: List[TraceEvent] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    """Deduplicated updates plus the diagnostic trace of the run."""
    updates: List[FieldUpdate] = Field(default_factory=list)
    trace: ExtractionTrace = Field(default_factory=ExtractionTrace)

    def get(self, field_id: str) -> Optional[FieldUpdate]:
        for update in self.updates:
            if update.field_id == field_id:
                return update
        return None
