"""
LIX Text Generator Client SDK
=============================

Python client library for the LIX Text Generator API.

Quick Start:
    from client import LixClient

    # Sync usage
    client = LixClient()
    final = client.generate_streaming(
        {"topic": "Volcanoes", "language": "English", "targetScore": 35,
         "targetSentences": 8, "targetWords": 90, "targetLongWords": 22},
        on_attempt=lambda attempt: print(attempt["stats"]),
    )
    print(final["text"])

    # Async usage
    from client import AsyncLixClient

    async with AsyncLixClient() as client:
        stats = await client.score_text("A short text. Another one!")
        print(stats["score"])
"""

from typing import Any, Dict, Optional


class LixClientError(Exception):
    """Exception raised for LIX client errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details or {}


from .sync_client import LixClient  # noqa: E402
from .async_client import AsyncLixClient  # noqa: E402

__all__ = [
    "LixClient",
    "AsyncLixClient",
    "LixClientError",
]

__version__ = "1.0.0"
