"""
Tests for API Endpoints

Test Categories:
1. Health Endpoint
2. Request Validation
3. Progressive Generation (NDJSON)
4. Single-shot Generation
5. Scoring and Target Derivation
"""

import pytest

from ai_service import GenerationError, GenerationErrorKind, USER_MESSAGES
from json_utils import loads

from conftest import MATCHING_TEXT, SHORT_TEXT


def _events(response):
    return [loads(line) for line in response.text.splitlines() if line.strip()]


# ============================================================================
# Health
# ============================================================================

class TestHealthEndpoint:

    def test_health_returns_status(self, api_client):
        client, _ = api_client()
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "default_model" in data
        assert data["max_attempts"] >= 1
        assert set(data["providers"]) == {"anthropic", "openai"}


# ============================================================================
# Validation
# ============================================================================

class TestRequestValidation:

    @pytest.mark.parametrize("missing", ["topic", "language", "targetScore", "targetSentences", "targetWords", "targetLongWords"])
    def test_missing_field_is_rejected_without_generation(self, api_client, sample_request_body, missing):
        """Given: A required field is absent, Then: 400 and the generator is never called."""
        client, generator = api_client()
        body = dict(sample_request_body)
        body.pop(missing)

        response = client.post("/api/generate", json=body)

        assert response.status_code == 400
        data = response.json()
        assert set(data) == {"error", "details"}
        assert data["error"] == "Missing required parameters"
        assert data["details"]
        assert generator.calls == []

    def test_blank_topic_is_rejected(self, api_client, sample_request_body):
        client, _ = api_client()
        response = client.post("/api/generate/text", json={**sample_request_body, "topic": "   "})
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "topic"

    def test_negative_tolerance_is_rejected(self, api_client, sample_request_body):
        client, _ = api_client()
        response = client.post("/api/generate", json={**sample_request_body, "tolerance": -1})
        assert response.status_code == 400

    def test_browser_field_names_are_accepted(self, api_client):
        """Given: lix/sentences/model names, Then: The request validates and runs."""
        client, generator = api_client([MATCHING_TEXT])
        body = {
            "topic": "Elephants",
            "language": "English",
            "lix": 20,
            "sentences": 2,
            "targetWords": 6,
            "targetLongWords": 1,
            "model": "gpt-4o",
        }
        response = client.post("/api/generate/text", json=body)
        assert response.status_code == 200
        assert generator.models == ["gpt-4o"]


# ============================================================================
# Progressive generation
# ============================================================================

class TestProgressiveGeneration:

    def test_stream_is_ndjson_with_terminal_last(self, api_client, sample_request_body):
        client, _ = api_client([SHORT_TEXT, MATCHING_TEXT])

        response = client.post("/api/generate", json=sample_request_body)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/x-ndjson")
        events = _events(response)
        assert [event["type"] for event in events] == ["attempt", "attempt", "success"]
        assert events[-1]["text"] == MATCHING_TEXT
        assert len(events[-1]["attempts"]) == 2

    def test_attempt_event_wire_shape(self, api_client, sample_request_body):
        client, _ = api_client([SHORT_TEXT, MATCHING_TEXT])
        attempt = _events(client.post("/api/generate", json=sample_request_body))[0]["data"]

        assert attempt["index"] == 1
        assert attempt["candidateText"] == SHORT_TEXT
        assert attempt["rawText"] == SHORT_TEXT
        assert attempt["accepted"] is False
        assert attempt["stats"] == {"wordCount": 3, "sentenceCount": 1, "longWordCount": 0, "score": 3.0}
        assert attempt["violations"][0] == "sentence count: got 1, need exactly 2"

    def test_exhaustion_emits_warning(self, api_client, sample_request_body):
        client, generator = api_client([SHORT_TEXT])
        events = _events(client.post("/api/generate", json=sample_request_body))

        assert events[-1]["type"] == "warning"
        assert events[-1]["text"] == SHORT_TEXT
        assert events[-1]["warning"]
        assert sum(1 for event in events if event["type"] == "attempt") == len(generator.calls)

    def test_capability_error_is_terminal_event(self, api_client, sample_request_body):
        client, _ = api_client([GenerationError(GenerationErrorKind.OVERLOADED, "Overloaded")])
        events = _events(client.post("/api/generate", json=sample_request_body))

        assert events == [{"type": "error", "error": USER_MESSAGES[GenerationErrorKind.OVERLOADED]}]

    def test_configuration_error_returns_500_before_streaming(self, api_client, sample_request_body):
        message = "Server configuration error: no API key configured for anthropic (set ANTHROPIC_API_KEY)"
        client, generator = api_client(config_error=message)

        response = client.post("/api/generate", json=sample_request_body)

        assert response.status_code == 500
        assert response.json() == {"error": message}
        assert generator.calls == []


# ============================================================================
# Single-shot generation
# ============================================================================

class TestSingleShotGeneration:

    def test_returns_only_text(self, api_client, sample_request_body):
        client, _ = api_client([f"<thinking>plan</thinking><text>{MATCHING_TEXT}</text>"])
        response = client.post("/api/generate/text", json=sample_request_body)
        assert response.status_code == 200
        assert response.json() == {"text": MATCHING_TEXT}

    def test_best_effort_text_is_returned(self, api_client, sample_request_body):
        client, _ = api_client([SHORT_TEXT])
        response = client.post("/api/generate/text", json=sample_request_body)
        assert response.status_code == 200
        assert response.json() == {"text": SHORT_TEXT}

    @pytest.mark.parametrize("kind,status", [
        (GenerationErrorKind.UNAUTHORIZED, 401),
        (GenerationErrorKind.RATE_LIMITED, 429),
        (GenerationErrorKind.OVERLOADED, 503),
        (GenerationErrorKind.OTHER, 502),
    ])
    def test_capability_error_maps_to_status(self, api_client, sample_request_body, kind, status):
        client, _ = api_client([GenerationError(kind, "detail")])
        response = client.post("/api/generate/text", json=sample_request_body)
        assert response.status_code == status
        assert response.json() == {"error": USER_MESSAGES.get(kind, "Text generation failed: detail")}

    def test_configuration_error(self, api_client, sample_request_body):
        client, _ = api_client(config_error="Unsupported model 'llama'")
        response = client.post("/api/generate/text", json=sample_request_body)
        assert response.status_code == 500
        assert response.json() == {"error": "Unsupported model 'llama'"}


# ============================================================================
# Scoring and targets
# ============================================================================

class TestScoringEndpoints:

    def test_score_text(self, api_client):
        client, _ = api_client()
        response = client.post("/api/lix", json={"text": MATCHING_TEXT})
        assert response.status_code == 200
        assert response.json() == {"wordCount": 6, "sentenceCount": 2, "longWordCount": 1, "score": 19.7}

    def test_score_empty_text(self, api_client):
        client, _ = api_client()
        response = client.post("/api/lix", json={"text": ""})
        assert response.json() == {"wordCount": 0, "sentenceCount": 0, "longWordCount": 0, "score": 0.0}

    def test_score_requires_text(self, api_client):
        client, _ = api_client()
        response = client.post("/api/lix", json={})
        assert response.status_code == 400

    def test_targets(self, api_client):
        client, _ = api_client()
        response = client.post("/api/targets", json={"lix": 40, "sentences": 10})
        assert response.status_code == 200
        data = response.json()
        assert data["targetWords"] == 160
        assert data["targetLongWords"] == 38
        assert data["expectedScore"] == 39.8

    def test_targets_reject_non_positive_score(self, api_client):
        client, _ = api_client()
        response = client.post("/api/targets", json={"targetScore": 0, "targetSentences": 5})
        assert response.status_code == 400
