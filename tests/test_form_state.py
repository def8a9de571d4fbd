"""Tests for applying updates to form values."""

from voiceform.schemas.extraction import ExtractionResult, FieldUpdate
from voiceform.services.form_state import (
    apply_updates,
    fields_needing_review,
    fields_to_apply,
    summarize_result,
)


def _u(field_id, value, confidence):
    return FieldUpdate(field_id=field_id, value=value, confidence=confidence)


class TestApplyUpdates:

    def test_coerces_and_validates(self, signup_schema):
        state = apply_updates(
            signup_schema,
            {"name": "Old"},
            [_u("age", "150", 0.9), _u("subscribe", "yes", 0.9)],
        )
        assert state.values == {"name": "Old", "age": 150, "subscribe": True}
        assert state.errors == {"age": "Age must be ≤ 120", "subscribe": None}
        assert state.applied == ["age", "subscribe"]

    def test_low_confidence_flagged_for_review(self, signup_schema):
        state = apply_updates(
            signup_schema,
            None,
            [_u("name", "Alex", 0.55), _u("city", "blr", 0.92)],
            review_threshold=0.7,
        )
        assert state.needs_review == ["name"]
        assert state.values == {"name": "Alex", "city": "blr"}

    def test_unknown_field_skipped(self, signup_schema):
        state = apply_updates(signup_schema, {}, [_u("ghost", 1, 0.9)])
        assert state.unknown_fields == ["ghost"]
        assert state.values == {}

    def test_input_values_not_mutated(self, signup_schema):
        values = {"name": "Old"}
        apply_updates(signup_schema, values, [_u("name", "New", 0.9)])
        assert values == {"name": "Old"}


class TestThresholds:

    def test_buckets(self):
        updates = [_u("a", 1, 0.95), _u("b", 1, 0.85), _u("c", 1, 0.75), _u("d", 1, 0.55)]
        assert [u.field_id for u in fields_to_apply(updates)] == ["a", "b"]
        assert [u.field_id for u in fields_needing_review(updates)] == ["d"]

    def test_explicit_threshold(self):
        updates = [_u("a", 1, 0.6)]
        assert fields_to_apply(updates, 0.5) == updates
        assert fields_needing_review(updates, 0.5) == []


class TestSummarize:

    def test_nothing_said(self):
        assert summarize_result(ExtractionResult(), "  ") == "Nothing was said."

    def test_nothing_extracted(self):
        assert summarize_result(ExtractionResult(), "hmm").startswith("Could not extract anything")

    def test_counts(self):
        result = ExtractionResult(updates=[_u("a", 1, 0.95), _u("b", 1, 0.55)])
        assert summarize_result(result, "x") == "Filled 2 fields. 1 high-confidence. 1 need confirmation."

    def test_singular(self):
        result = ExtractionResult(updates=[_u("a", 1, 0.75)])
        assert summarize_result(result, "x") == "Filled 1 field."
