"""Shared pytest fixtures for LIX Text Generator tests."""

import os
import sys
from typing import List, Optional, Sequence, Union
from unittest.mock import patch

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from ai_service import TextGenerator  # noqa: E402
from config import ConfigurationError  # noqa: E402
from models import ConversationTurn, GenerationRequest  # noqa: E402


# 2 sentences, 6 words, 1 long word ("elephant"), LIX 19.7
MATCHING_TEXT = "The elephant sat. The dog ran."
# 1 sentence, 3 words, 0 long words
SHORT_TEXT = "The cat sat."


# ============================================================================
# Fake generation capability
# ============================================================================

class FakeGenerator(TextGenerator):
    """
    Scripted generation capability.

    Each call consumes the next scripted item: strings are returned as the
    raw model output, exceptions are raised. The last item repeats once the
    script runs out.
    """

    def __init__(self, responses: Sequence[Union[str, Exception]], config_error: Optional[str] = None):
        self.responses = list(responses)
        self.config_error = config_error
        self.calls: List[tuple] = []
        self.models: List[str] = []

    def check_configuration(self, model: str) -> None:
        if self.config_error:
            raise ConfigurationError(self.config_error)

    async def generate(self, conversation: Sequence[ConversationTurn], *, model, max_tokens, temperature, timeout=None) -> str:
        self.calls.append(tuple(conversation))
        self.models.append(model)
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        item = self.responses[index]
        if isinstance(item, Exception):
            raise item
        return item


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture
def mock_env_vars():
    """Provide test environment variables."""
    env = {
        "ANTHROPIC_API_KEY": "sk-ant-test-key-12345",
        "OPENAI_API_KEY": "sk-test-openai-key-12345",
        "MAX_ATTEMPTS": "3",
        "APP_HOST": "127.0.0.1",
        "APP_PORT": "8123",
    }
    with patch.dict(os.environ, env, clear=False):
        yield env


@pytest.fixture
def clean_env():
    """Provide clean environment without API keys."""
    keys_to_remove = [
        "ANTHROPIC_API_KEY", "LIX_ANTHROPIC_KEY", "OPENAI_API_KEY", "OPENAI_KEY",
        "MAX_ATTEMPTS", "VERBOSE", "EXTRA_VERBOSE", "DEFAULT_MODEL",
    ]
    with patch.dict(os.environ, {}, clear=False):
        for key in keys_to_remove:
            os.environ.pop(key, None)
        yield


# ============================================================================
# Request Fixtures
# ============================================================================

@pytest.fixture
def sample_request():
    """Request matched exactly by MATCHING_TEXT."""
    return GenerationRequest(
        topic="Elephants",
        language="English",
        target_score=20,
        target_sentences=2,
        target_words=6,
        target_long_words=1,
    )


@pytest.fixture
def sample_request_body():
    """Wire form of sample_request."""
    return {
        "topic": "Elephants",
        "language": "English",
        "targetScore": 20,
        "targetSentences": 2,
        "targetWords": 6,
        "targetLongWords": 1,
    }


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def api_client():
    """
    Build a TestClient whose generation capability is a FakeGenerator.

    Usage: client, generator = api_client(["<text>...</text>"])
    """
    from fastapi.testclient import TestClient
    from main import app
    from core.app_state import get_generator

    def _build(responses: Sequence[Union[str, Exception]] = (MATCHING_TEXT,), config_error: Optional[str] = None):
        generator = FakeGenerator(responses, config_error=config_error)
        app.dependency_overrides[get_generator] = lambda: generator
        return TestClient(app), generator

    yield _build
    app.dependency_overrides.clear()
