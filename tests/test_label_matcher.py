"""Tests for the label/key-value fallback pass."""

from datetime import datetime

from voiceform.schemas.extraction import Span
from voiceform.schemas.form import FieldOption, FieldType, FormField
from voiceform.services.date_parsing import DateOccurrence
from voiceform.services.extraction_state import ExtractionState
from voiceform.services.label_matcher import key_phrases, match_labels
from voiceform.services.transcript_parser import parse_transcript


class TestKeyPhrases:

    def test_dedupes_and_sorts_longest_first(self):
        field = FormField(id="email", label="Email", type=FieldType.EMAIL, synonyms=["e-mail address", "EMAIL"])
        assert key_phrases(field) == ["e-mail address", "Email"]


class TestFreeText:

    def test_raw_text_value(self, no_dates):
        field = FormField(id="company", label="Company", type=FieldType.TEXT)
        state = ExtractionState(text="company is Acme Corp, thanks", fields=[field])
        match_labels(state, no_dates)

        update = state.updates[0]
        assert (update.value, update.confidence, update.evidence) == ("Acme Corp", 0.60, "label-kv-text")
        assert state.spans.merged() == [Span(0, 20)]

    def test_synonym(self, no_dates):
        field = FormField(id="employer", label="Company", type=FieldType.TEXT, synonyms=["works at"])
        state = ExtractionState(text="she works at Initech; remote", fields=[field])
        match_labels(state, no_dates)
        assert state.updates[0].value == "Initech"

    def test_longer_phrase_wins_at_same_offset(self, no_dates):
        field = FormField(id="home", label="Home address", type=FieldType.TEXT, synonyms=["home"])
        state = ExtractionState(text="home address is 12 Baker Street", fields=[field])
        match_labels(state, no_dates)
        assert state.updates[0].value == "12 Baker Street"

    def test_overlapping_occurrence_rejected(self, no_dates):
        field = FormField(id="name", label="Name", type=FieldType.TEXT)
        state = ExtractionState(text="Name: Bob. name: Alice", fields=[field])
        state.claim(Span(0, 9), "test")
        match_labels(state, no_dates)

        assert state.updates[0].value == "Alice"
        assert any(e.kind == "labelkv-skip-overlap" for e in state.events)

    def test_label_with_punctuation(self, no_dates):
        field = FormField(id="legal_name", label="Name (legal)", type=FieldType.TEXT)
        state = ExtractionState(text="Name (legal): Jane Roe", fields=[field])
        match_labels(state, no_dates)
        assert state.updates[0].value == "Jane Roe"

    def test_satisfied_field_skipped(self, no_dates):
        field = FormField(id="name", label="Name", type=FieldType.TEXT)
        state = ExtractionState(text="name is Bob", fields=[field])
        state.add_update("name", "Robert", 0.9, "test")
        match_labels(state, no_dates)
        assert len(state.updates) == 1


class TestTypedCoercion:

    def test_number(self, no_dates):
        field = FormField(id="age", label="Age", type=FieldType.NUMBER)
        state = ExtractionState(text="age: 42", fields=[field])
        match_labels(state, no_dates)

        update = state.updates[0]
        assert (update.value, update.confidence, update.evidence) == (42, 0.90, "label-kv")

    def test_unparseable_number_kept_as_text(self, no_dates):
        field = FormField(id="age", label="Age", type=FieldType.NUMBER)
        state = ExtractionState(text="age is unknown", fields=[field])
        match_labels(state, no_dates)

        update = state.updates[0]
        assert (update.value, update.confidence) == ("unknown", 0.60)

    def test_date_through_parser(self, static_dates):
        parser = static_dates([DateOccurrence(start=0, text="March 3 1990", value=datetime(1990, 3, 3))])
        field = FormField(id="dob", label="Date of birth", type=FieldType.DATE)
        state = ExtractionState(text="date of birth is March 3 1990", fields=[field])
        match_labels(state, parser)

        assert state.updates[0].value == "1990-03-03"
        assert state.updates[0].confidence == 0.85
        assert parser.calls == ["March 3 1990"]


class TestOptionValues:

    def _plan(self, field_type):
        return FormField(
            id="plan",
            label="Plan",
            type=field_type,
            options=[
                FieldOption(id="basic", label="Basic"),
                FieldOption(id="premium", label="Premium"),
            ],
        )

    def test_single_option(self, no_dates):
        state = ExtractionState(text="plan is premium please", fields=[self._plan(FieldType.SELECT)])
        match_labels(state, no_dates)

        update = state.updates[0]
        assert (update.value, update.confidence, update.evidence) == ("premium", 0.85, "label-kv-option")

    def test_checkbox_collects_all(self, no_dates):
        state = ExtractionState(text="plan: premium and basic", fields=[self._plan(FieldType.CHECKBOX)])
        match_labels(state, no_dates)
        assert state.updates[0].value == ["basic", "premium"]

    def test_unknown_option_kept_as_text(self, no_dates):
        state = ExtractionState(text="plan is gold", fields=[self._plan(FieldType.RADIO)])
        match_labels(state, no_dates)

        update = state.updates[0]
        assert (update.value, update.confidence, update.evidence) == ("gold", 0.60, "label-kv-text")


class TestDateParserFailure:

    def test_failure_falls_back_to_raw_text(self, failing_dates):
        field = FormField(id="dob", label="Birthday", type=FieldType.DATE)
        state = ExtractionState(text="birthday is tomorrow", fields=[field])
        match_labels(state, failing_dates)

        update = state.updates[0]
        assert (update.value, update.confidence, update.evidence) == ("tomorrow", 0.60, "label-kv-text")
        errors = [e for e in state.events if e.kind == "chrono-error"]
        assert [e.field_id for e in errors] == ["dob"]
        assert errors[0].detail["error"] == "parser exploded"

    def test_full_run_survives_failing_parser(self, failing_dates):
        field = FormField(id="dob", label="Birthday", type=FieldType.DATE)
        result = parse_transcript([field], "birthday is tomorrow", failing_dates)
        assert result.get("dob").value == "tomorrow"
