"""
Shared utilities for sync and async LIX clients.

Helpers for reading the progressive NDJSON
stream. No HTTP calls are made from this module.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
BASE_URL_ENV_VAR = "LIX_BASE_URL"

TERMINAL_EVENT_TYPES = frozenset({"success", "warning", "error"})


def parse_event_line(line: Union[str, bytes]) -> Optional[Dict[str, Any]]:
    """Parse one NDJSON line into an event dict.

    Blank lines return None. Lines that are not JSON objects with a ``type``
    field are logged and skipped.
    """
    if isinstance(line, bytes):
        line = line.decode("utf-8")
    stripped = line.strip()
    if not stripped:
        return None
    try:
        event = json.loads(stripped)
    except json.JSONDecodeError:
        logger.warning("Skipping malformed stream line: %.200s", stripped)
        return None
    if not isinstance(event, dict) or "type" not in event:
        logger.warning("Skipping stream line without an event type: %.200s", stripped)
        return None
    return event


class LineBuffer:
    """Accumulates stream chunks and hands back complete lines."""

    def __init__(self) -> None:
        self._pending = b""

    def feed(self, chunk: Union[str, bytes]) -> List[str]:
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self._pending += chunk
        *lines, self._pending = self._pending.split(b"\n")
        return [line.decode("utf-8") for line in lines]

    def flush(self) -> Optional[str]:
        """Return the trailing fragment that never got a newline, if any."""
        pending, self._pending = self._pending, b""
        if pending.strip():
            return pending.decode("utf-8")
        return None


def iter_ndjson_lines(chunks: Iterable[Union[str, bytes]]) -> Iterator[str]:
    """Reassemble complete lines from arbitrarily split chunks.

    A trailing fragment without a newline is yielded once the chunks run out.
    """
    buffer = LineBuffer()
    for chunk in chunks:
        yield from buffer.feed(chunk)
    tail = buffer.flush()
    if tail is not None:
        yield tail


def is_terminal_event(event: Dict[str, Any]) -> bool:
    return event.get("type") in TERMINAL_EVENT_TYPES


def error_message_from_body(body: Any, fallback: str) -> str:
    """Pull the server's ``error`` field out of a decoded JSON body."""
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return fallback
