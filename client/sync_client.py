"""
Synchronous LIX Text Generator Client
=====================================

Blocking client for the LIX Text Generator API, built on requests.
For async usage, use AsyncLixClient instead.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, Optional

import requests
from requests import exceptions as requests_exceptions

from . import LixClientError
from ._common import (
    BASE_URL_ENV_VAR,
    DEFAULT_BASE_URL,
    error_message_from_body,
    is_terminal_event,
    iter_ndjson_lines,
    parse_event_line,
)

logger = logging.getLogger(__name__)


class LixClient:
    """
    Synchronous client for the LIX Text Generator.

    Usage:
        client = LixClient()
        stats = client.score_text("One sentence. Two sentences!")
    """

    DEFAULT_TIMEOUT = (30, 900)  # (connect, read)

    def __init__(self, base_url: Optional[str] = None, timeout: tuple = DEFAULT_TIMEOUT):
        self.base_url = (base_url or os.getenv(BASE_URL_ENV_VAR, DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout

    def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
        **kwargs
    ) -> requests.Response:
        """Make an HTTP request with error handling."""
        url = f"{self.base_url}{endpoint}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            return requests.request(method, url, json=json_data, **kwargs)
        except requests_exceptions.ConnectionError as e:
            raise LixClientError(
                f"Cannot connect to LIX API at {self.base_url}. Ensure the server is running."
            ) from e
        except requests_exceptions.Timeout as e:
            raise LixClientError(f"Request to {endpoint} timed out after {self.timeout}s") from e
        except requests_exceptions.RequestException as e:
            raise LixClientError(f"Request failed: {e}") from e

    @staticmethod
    def _raise_for_error(response: requests.Response, action: str) -> None:
        if response.status_code == 200:
            return
        try:
            body = response.json()
        except ValueError:
            body = None
        message = error_message_from_body(body, f"{action} failed: {response.status_code}")
        details = body if isinstance(body, dict) else None
        raise LixClientError(message, status_code=response.status_code, details=details)

    def _post_json(self, endpoint: str, payload: Dict[str, Any], action: str) -> Dict[str, Any]:
        response = self._request("POST", endpoint, json_data=payload)
        self._raise_for_error(response, action)
        return response.json()

    def health_check(self) -> Dict[str, Any]:
        """
        Check API health status.

        Returns:
            Dict with status, default_model, max_attempts and providers
        """
        response = self._request("GET", "/health")
        self._raise_for_error(response, "Health check")
        return response.json()

    def generate_streaming(
        self,
        request: Dict[str, Any],
        on_attempt: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> Dict[str, Any]:
        """
        Generate text progressively, reporting every attempt as it arrives.

        Returns:
            The terminal ``success`` or ``warning`` event

        Raises:
            LixClientError: non-2xx response, ``error`` event, or a stream
                that ends without a terminal event
        """
        response = self._request("POST", "/api/generate", json_data=request, stream=True)
        with response:
            self._raise_for_error(response, "Generation")
            for line in iter_ndjson_lines(response.iter_content(chunk_size=None)):
                event = parse_event_line(line)
                if event is None:
                    continue
                if event["type"] == "attempt":
                    if on_attempt is not None:
                        on_attempt(event.get("data") or {})
                    continue
                if not is_terminal_event(event):
                    logger.debug("Ignoring unknown event type %s", event["type"])
                    continue
                if event["type"] == "error":
                    raise LixClientError(event.get("error") or "Generation failed", details=event)
                return event

        raise LixClientError("Generation stream ended without a final result")

    def generate_text(self, request: Dict[str, Any]) -> str:
        """Single-shot generation. Returns only the final text."""
        return self._post_json("/api/generate/text", request, "Generation")["text"]

    def score_text(self, text: str) -> Dict[str, Any]:
        """Score a text on the server. Returns wordCount, sentenceCount, longWordCount, score."""
        return self._post_json("/api/lix", {"text": text}, "Scoring")

    def derive_targets(self, target_score: float, target_sentences: int) -> Dict[str, Any]:
        """Ask the server for word and long-word targets matching a LIX score."""
        payload = {"targetScore": target_score, "targetSentences": target_sentences}
        return self._post_json("/api/targets", payload, "Target derivation")
