"""
Asynchronous LIX Text Generator Client
======================================

Async client for the LIX Text Generator API, built on aiohttp.

Supports:
- Progressive generation with a per-attempt callback
- Single-shot generation
- Server-side scoring and target derivation

For synchronous usage, use LixClient instead.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from typing import Any, Awaitable, Callable, Dict, Optional, Union

import aiohttp

from . import LixClientError
from ._common import (
    BASE_URL_ENV_VAR,
    DEFAULT_BASE_URL,
    LineBuffer,
    error_message_from_body,
    is_terminal_event,
    parse_event_line,
)

logger = logging.getLogger(__name__)

AttemptCallback = Callable[[Dict[str, Any]], Union[None, Awaitable[None]]]


class AsyncLixClient:
    """
    Asynchronous client for the LIX Text Generator.

    Usage:
        async with AsyncLixClient() as client:
            final = await client.generate_streaming(request)
            print(final["text"])
    """

    DEFAULT_TIMEOUT = aiohttp.ClientTimeout(total=900, connect=30)

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
    ):
        self.base_url = (base_url or os.getenv(BASE_URL_ENV_VAR, DEFAULT_BASE_URL)).rstrip("/")
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        """Initialize the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "AsyncLixClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get the active session, raising if not connected."""
        if self._session is None or self._session.closed:
            raise RuntimeError(
                "Client not connected. Use 'async with AsyncLixClient()' or call connect()"
            )
        return self._session

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> aiohttp.ClientResponse:
        """Make an async HTTP request with error handling."""
        url = f"{self.base_url}{endpoint}"
        try:
            return await self.session.request(method, url, json=json_data)
        except aiohttp.ClientConnectorError as e:
            raise LixClientError(
                f"Cannot connect to LIX API at {self.base_url}. Ensure the server is running."
            ) from e
        except asyncio.TimeoutError as e:
            raise LixClientError(f"Request to {endpoint} timed out") from e
        except aiohttp.ClientError as e:
            raise LixClientError(f"Request failed: {e}") from e

    @staticmethod
    async def _raise_for_error(response: aiohttp.ClientResponse, action: str) -> None:
        if response.status == 200:
            return
        try:
            body = await response.json(content_type=None)
        except ValueError:
            body = None
        message = error_message_from_body(body, f"{action} failed: {response.status}")
        details = body if isinstance(body, dict) else None
        raise LixClientError(message, status_code=response.status, details=details)

    async def _post_json(self, endpoint: str, payload: Dict[str, Any], action: str) -> Dict[str, Any]:
        async with await self._request("POST", endpoint, json_data=payload) as response:
            await self._raise_for_error(response, action)
            return await response.json()

    # =========================================================================
    # Health
    # =========================================================================

    async def health_check(self) -> Dict[str, Any]:
        """
        Check API health status.

        Returns:
            Dict with status, default_model, max_attempts and providers
        """
        async with await self._request("GET", "/health") as response:
            await self._raise_for_error(response, "Health check")
            return await response.json()

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate_streaming(
        self,
        request: Dict[str, Any],
        on_attempt: Optional[AttemptCallback] = None,
    ) -> Dict[str, Any]:
        """
        Generate text progressively, reporting every attempt as it arrives.

        Args:
            request: Generation request body (camelCase keys)
            on_attempt: Called with each attempt record; may be a coroutine function

        Returns:
            The terminal ``success`` or ``warning`` event

        Raises:
            LixClientError: non-2xx response, ``error`` event, or a stream
                that ends without a terminal event
        """
        async with await self._request("POST", "/api/generate", json_data=request) as response:
            await self._raise_for_error(response, "Generation")

            buffer = LineBuffer()
            async for chunk in response.content.iter_any():
                for line in buffer.feed(chunk):
                    terminal = await self._handle_line(line, on_attempt)
                    if terminal is not None:
                        return terminal
            tail = buffer.flush()
            if tail is not None:
                terminal = await self._handle_line(tail, on_attempt)
                if terminal is not None:
                    return terminal

        raise LixClientError("Generation stream ended without a final result")

    @staticmethod
    async def _handle_line(line: str, on_attempt: Optional[AttemptCallback]) -> Optional[Dict[str, Any]]:
        event = parse_event_line(line)
        if event is None:
            return None
        if event["type"] == "attempt":
            if on_attempt is not None:
                result = on_attempt(event.get("data") or {})
                if inspect.isawaitable(result):
                    await result
            return None
        if not is_terminal_event(event):
            logger.debug("Ignoring unknown event type %s", event["type"])
            return None
        if event["type"] == "error":
            raise LixClientError(event.get("error") or "Generation failed", details=event)
        return event

    async def generate_text(self, request: Dict[str, Any]) -> str:
        """Single-shot generation. Returns only the final text."""
        data = await self._post_json("/api/generate/text", request, "Generation")
        return data["text"]

    # =========================================================================
    # Scoring
    # =========================================================================

    async def score_text(self, text: str) -> Dict[str, Any]:
        """Score a text on the server. Returns wordCount, sentenceCount, longWordCount, score."""
        return await self._post_json("/api/lix", {"text": text}, "Scoring")

    async def derive_targets(self, target_score: float, target_sentences: int) -> Dict[str, Any]:
        """Ask the server for word and long-word targets matching a LIX score."""
        payload = {"targetScore": target_score, "targetSentences": target_sentences}
        return await self._post_json("/api/targets", payload, "Target derivation")
