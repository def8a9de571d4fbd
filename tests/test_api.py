"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from voiceform.api.middleware import SlidingWindowLimiter, reset_rate_limits
from voiceform.api_server import app
from voiceform.config import get_settings

CITY_FORM = {
    "fields": [
        {
            "id": "city",
            "label": "City",
            "type": "select",
            "options": [{"id": "blr", "label": "Bangalore"}, {"id": "mum", "label": "Mumbai"}],
        }
    ]
}

PREFS_FORM = {
    "fields": [
        {"id": "subscribe", "label": "Subscribe", "type": "switch"},
        {"id": "age", "label": "Age", "type": "number", "min": 0, "max": 120},
    ]
}


@pytest.fixture(autouse=True)
def _fresh_rate_limits():
    reset_rate_limits()
    yield
    reset_rate_limits()


@pytest.fixture
def client():
    return TestClient(app)


class TestSystem:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "voiceform"}

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
        assert "X-Response-Time-Ms" in response.headers

    def test_rate_limit(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "rate_limit_max_requests", 2)
        assert client.get("/health").status_code == 200
        assert client.get("/health").status_code == 200
        response = client.get("/health")
        assert response.status_code == 429
        assert 1 <= int(response.headers["Retry-After"]) <= get_settings().rate_limit_window_seconds

    def test_limiter_window_slides(self):
        limiter = SlidingWindowLimiter()
        assert limiter.check("ip", 0.0, 10, 1) == 0.0
        assert limiter.check("ip", 4.0, 10, 1) == 6.0
        assert limiter.check("ip", 10.0, 10, 1) == 0.0


class TestExtract:

    def test_select_with_trace(self, client):
        response = client.post(
            "/forms/extract",
            json={"form": CITY_FORM, "transcript": "I live in Bangalore", "include_trace": True},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["updates"] == [
            {"fieldId": "city", "value": "blr", "confidence": 0.92, "evidence": "option-exact"}
        ]
        assert body["trace"]["used_spans"] == [{"start": 10, "end": 19}]
        assert body["summary"] == "Filled 1 field. 1 high-confidence."

    def test_trace_omitted_by_default(self, client):
        response = client.post("/forms/extract", json={"form": CITY_FORM, "transcript": "Mumbai"})
        assert response.json()["trace"] is None

    def test_empty_transcript(self, client):
        response = client.post("/forms/extract", json={"form": CITY_FORM, "transcript": ""})
        assert response.status_code == 200
        assert response.json()["updates"] == []
        assert response.json()["summary"] == "Nothing was said."

    def test_duplicate_field_ids_rejected(self, client):
        form = {"fields": [CITY_FORM["fields"][0], CITY_FORM["fields"][0]]}
        response = client.post("/forms/extract", json={"form": form, "transcript": "Mumbai"})
        assert response.status_code == 422

    def test_transcript_too_long(self, client, monkeypatch):
        monkeypatch.setattr(get_settings(), "max_transcript_chars", 5)
        response = client.post("/forms/extract", json={"form": CITY_FORM, "transcript": "I live in Mumbai"})
        assert response.status_code == 422
        assert "5 characters" in response.json()["detail"]


class TestApply:

    def test_merges_and_validates(self, client):
        response = client.post(
            "/forms/apply",
            json={"form": PREFS_FORM, "transcript": "Subscribe: yes, I'm 150", "values": {"age": 30}},
        )
        assert response.status_code == 200
        state = response.json()["state"]
        assert state["values"] == {"age": 150, "subscribe": True}
        assert state["errors"]["age"] == "Age must be ≤ 120"
        assert state["errors"]["subscribe"] is None
        assert state["needs_review"] == []


class TestValidate:

    def test_invalid_phone(self, client):
        response = client.post(
            "/forms/validate",
            json={"field": {"id": "phone", "label": "Phone", "type": "phone"}, "value": "123"},
        )
        assert response.json() == {"field_id": "phone", "error": "Enter a 10-digit phone number"}

    def test_valid_option(self, client):
        response = client.post("/forms/validate", json={"field": CITY_FORM["fields"][0], "value": "mum"})
        assert response.json()["error"] is None


class TestLimiterEviction:

    def test_idle_clients_forgotten(self):
        limiter = SlidingWindowLimiter()
        limiter.check("a", 0.0, 10, 5)
        limiter.check("b", 5.0, 10, 5)
        assert len(limiter) == 2

        limiter.check("b", 20.0, 10, 5)
        assert len(limiter) == 1

    def test_active_client_kept(self):
        limiter = SlidingWindowLimiter()
        limiter.check("a", 0.0, 10, 5)
        limiter.check("a", 8.0, 10, 5)
        limiter.check("b", 12.0, 10, 5)
        assert len(limiter) == 2
