"""
Pytest fixtures and configuration for voiceform tests.
Provides form schemas and a deterministic date parser stub.
"""

from datetime import datetime

import pytest

from voiceform.schemas.form import FieldOption, FieldType, FormField, FormSchema
from voiceform.services.date_parsing import DateOccurrence


class StaticDateParser:
    """Date parser stub returning fixed occurrences and recording calls."""

    def __init__(self, occurrences=()):
        self.occurrences = list(occurrences)
        self.calls = []

    def parse(self, text):
        self.calls.append(text)
        return list(self.occurrences)


class FailingDateParser:
    def parse(self, text):
        raise RuntimeError("parser exploded")


@pytest.fixture
def no_dates():
    return StaticDateParser()


@pytest.fixture
def static_dates():
    """Factory: ``static_dates(DateOccurrence(...), ...)``."""
    return StaticDateParser


@pytest.fixture
def failing_dates():
    return FailingDateParser()


@pytest.fixture
def march_15():
    return DateOccurrence(start=15, text="2024-03-15", value=datetime(2024, 3, 15))


@pytest.fixture
def city_field():
    return FormField(
        id="city",
        label="City",
        type=FieldType.SELECT,
        options=[
            FieldOption(id="blr", label="Bangalore"),
            FieldOption(id="mum", label="Mumbai"),
        ],
    )


@pytest.fixture
def signup_schema(city_field):
    """The sign-up form used across end-to-end tests."""
    return FormSchema(fields=[
        FormField(id="name", label="Name", type=FieldType.TEXT),
        FormField(id="email", label="Email", type=FieldType.EMAIL),
        FormField(id="phone", label="Phone", type=FieldType.PHONE),
        FormField(id="subscribe", label="Subscribe", type=FieldType.SWITCH, synonyms=["newsletter"]),
        city_field,
        FormField(id="age", label="Age", type=FieldType.NUMBER, min=0, max=120),
    ])
