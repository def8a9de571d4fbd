"""
Data models for dynamically defined forms.

A form schema is supplied by the caller (often generated by an LLM) and
is treated as read-only input for one extraction call.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    RADIO = "radio"
    SELECT = "select"
    CHECKBOX = "checkbox"
    SWITCH = "switch"
    EMAIL = "email"
    PHONE = "phone"


OPTION_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO, FieldType.CHECKBOX})
DATE_TYPES = frozenset({FieldType.DATE, FieldType.TIME, FieldType.DATETIME})


class FieldOption(BaseModel):
    """One choice of a select, radio or checkbox field."""
    id: str
    label: str
    synonyms: List[str] = Field(default_factory=list)

    @property
    def phrases(self) -> List[str]:
        """Label and synonyms, longest first."""
        return sorted((p for p in [self.label, *self.synonyms] if p), key=len, reverse=True)


class FormField(BaseModel):
    """A single field of the form."""
    id: str
    label: str
    type: FieldType
    options: List[FieldOption] = Field(default_factory=list)
    required: bool = False  # Not enforced by the extraction engine
    pattern: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    synonyms: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _label_defaults_to_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("label") and data.get("id"):
            data = {**data, "label": data["id"]}
        return data

    @property
    def has_options(self) -> bool:
        return self.type in OPTION_TYPES and bool(self.options)

    @property
    def label_phrases(self) -> List[str]:
        """Label and synonyms, longest first."""
        return sorted((p for p in [self.label, *self.synonyms] if p), key=len, reverse=True)

    def option_ids(self) -> List[str]:
        return [o.id for o in self.options]


class FormSchema(BaseModel):
    """Ordered sequence of fields."""
    fields: List[FormField]

    @model_validator(mode="after")
    def _unique_field_ids(self) -> "FormSchema":
        seen: set[str] = set()
        for field in self.fields:
            if field.id in seen:
                raise ValueError(f"Duplicate field id: {field.id}")
            seen.add(field.id)
        return self

    def get(self, field_id: str) -> Optional[FormField]:
        for field in self.fields:
            if field.id == field_id:
                return field
        return None
