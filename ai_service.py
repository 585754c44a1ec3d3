"""
AI Service Module for the LIX Text Generator
============================================

Handles communication with the text generation providers (Anthropic, OpenAI)
behind one capability: submit a conversation, receive generated text.
Provider failures are classified into a small error taxonomy so the
generation loop can abort with a kind-specific message instead of retrying.
"""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import anthropic
import openai

from config import ConfigurationError, config, get_model_parameter_requirements
from models import ConversationTurn


logger = logging.getLogger(__name__)


class GenerationErrorKind(str, Enum):
    """Classification of capability-level failures"""
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    OVERLOADED = "overloaded"
    OTHER = "other"


USER_MESSAGES = {
    GenerationErrorKind.UNAUTHORIZED: (
        "Authentication with the text generation service failed. Check the configured API key."
    ),
    GenerationErrorKind.RATE_LIMITED: (
        "Rate limit reached on the text generation service. Please wait a moment and try again."
    ),
    GenerationErrorKind.OVERLOADED: (
        "The text generation service is overloaded or timed out. Please try again later."
    ),
}


class GenerationError(RuntimeError):
    """Raised when the generation capability itself fails (never a constraint mismatch)."""

    def __init__(
        self,
        kind: GenerationErrorKind,
        message: str,
        *,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.provider = provider
        self.model = model
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        """Human-readable message for the terminal error event."""
        if self.kind in USER_MESSAGES:
            return USER_MESSAGES[self.kind]
        return f"Text generation failed: {self.message}"


class TextGenerator(ABC):
    """The generation capability consumed by the generation loop."""

    @abstractmethod
    async def generate(
        self,
        conversation: Sequence[ConversationTurn],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: Optional[float] = None,
    ) -> str:
        """Send the conversation to a model and return only the generated text."""
        raise NotImplementedError

    def check_configuration(self, model: str) -> None:
        """Raise ConfigurationError when the model cannot be served."""
        return None


_TIMEOUT_ERRORS = (asyncio.TimeoutError, TimeoutError, anthropic.APITimeoutError, openai.APITimeoutError)
_AUTH_ERRORS = (
    anthropic.AuthenticationError,
    anthropic.PermissionDeniedError,
    openai.AuthenticationError,
    openai.PermissionDeniedError,
)
_RATE_LIMIT_ERRORS = (anthropic.RateLimitError, openai.RateLimitError)
_OVERLOADED_STATUS_CODES = {503, 529}


def _extract_error_message(exc: Exception) -> str:
    """Prefer the provider's own error message over the exception repr."""
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    message = getattr(exc, "message", None)
    if message:
        return str(message)
    return str(exc) or exc.__class__.__name__


def classify_exception(exc: Exception, *, provider: Optional[str] = None, model: Optional[str] = None) -> GenerationError:
    """Map an SDK or transport exception onto the GenerationError taxonomy."""
    if isinstance(exc, GenerationError):
        return exc

    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if not isinstance(status, int):
        status = None
    message = _extract_error_message(exc)

    if isinstance(exc, _TIMEOUT_ERRORS):
        kind = GenerationErrorKind.OVERLOADED
        message = f"Request timed out ({message})"
    elif isinstance(exc, _AUTH_ERRORS) or status in (401, 403):
        kind = GenerationErrorKind.UNAUTHORIZED
    elif isinstance(exc, _RATE_LIMIT_ERRORS) or status == 429:
        kind = GenerationErrorKind.RATE_LIMITED
    elif status in _OVERLOADED_STATUS_CODES or "overloaded" in message.lower():
        kind = GenerationErrorKind.OVERLOADED
    else:
        kind = GenerationErrorKind.OTHER

    return GenerationError(kind, message, provider=provider, model=model, status_code=status)


_shared_ai_service: Optional["AIService"] = None
_ai_service_init_lock = threading.Lock()


def get_ai_service() -> "AIService":
    """Return the shared AIService instance, creating it on first use."""
    global _shared_ai_service
    if _shared_ai_service is None:
        with _ai_service_init_lock:
            if _shared_ai_service is None:
                _shared_ai_service = AIService()
    return _shared_ai_service


class AIService(TextGenerator):
    """Stateless multi-provider client shared across requests"""

    def __init__(self):
        self.anthropic_client = None
        self.openai_client = None
        self._initialize_clients()

    def _initialize_clients(self):
        """Initialize API clients for each configured provider"""
        # SDK-level retries are disabled: capability failures end the request.
        if config.ANTHROPIC_API_KEY:
            self.anthropic_client = anthropic.AsyncAnthropic(
                api_key=config.ANTHROPIC_API_KEY,
                timeout=config.REQUEST_TIMEOUT,
                max_retries=0,
            )
            logger.info("Anthropic client initialized")
        else:
            logger.warning("Anthropic API key not found")

        if config.OPENAI_API_KEY:
            self.openai_client = openai.AsyncOpenAI(
                api_key=config.OPENAI_API_KEY,
                timeout=config.REQUEST_TIMEOUT,
                max_retries=0,
            )
            logger.info("OpenAI client initialized")
        else:
            logger.warning("OpenAI API key not found")

    def check_configuration(self, model: str) -> None:
        provider = config.require_credentials(model)
        if provider == "anthropic" and self.anthropic_client is None:
            raise ConfigurationError("Server configuration error: Anthropic client is not initialized")
        if provider == "openai" and self.openai_client is None:
            raise ConfigurationError("Server configuration error: OpenAI client is not initialized")

    async def generate(
        self,
        conversation: Sequence[ConversationTurn],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: Optional[float] = None,
    ) -> str:
        self.check_configuration(model)
        provider = config.get_provider_for_model(model)
        messages = [turn.as_message() for turn in conversation]

        try:
            if provider == "anthropic":
                return await self._generate_claude(messages, model, temperature, max_tokens, timeout)
            return await self._generate_openai(messages, model, temperature, max_tokens, timeout)
        except Exception as exc:
            error = classify_exception(exc, provider=provider, model=model)
            logger.warning(
                "Generation via %s (%s) failed [%s]: %s",
                provider,
                model,
                error.kind.value,
                error.message,
            )
            raise error from exc

    async def _generate_claude(
        self,
        messages: List[Dict[str, str]],
        model_id: str,
        temperature: float,
        max_tokens: int,
        request_timeout: Optional[float] = None,
    ) -> str:
        request_kwargs: Dict[str, Any] = {}
        if request_timeout and request_timeout > 0:
            request_kwargs["timeout"] = request_timeout

        response = await self.anthropic_client.messages.create(
            model=model_id,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
            **request_kwargs,
        )
        return self._extract_text_from_claude_response(response)

    @staticmethod
    def _extract_text_from_claude_response(response) -> str:
        """Join the text blocks of a Claude response, skipping thinking blocks."""
        text_content = []
        for content_block in getattr(response, "content", None) or []:
            block_type = getattr(content_block, "type", None)
            if block_type == "thinking":
                continue
            text = getattr(content_block, "text", None)
            if isinstance(text, str):
                text_content.append(text)
        return "".join(text_content)

    async def _generate_openai(
        self,
        messages: List[Dict[str, str]],
        model_id: str,
        temperature: float,
        max_tokens: int,
        request_timeout: Optional[float] = None,
    ) -> str:
        requirements = get_model_parameter_requirements(model_id)
        params: Dict[str, Any] = {"model": model_id, "messages": messages}
        if requirements["supports_temperature"]:
            params["temperature"] = temperature
        params[requirements["max_tokens_param"]] = max_tokens
        if request_timeout and request_timeout > 0:
            params["timeout"] = request_timeout

        response = await self.openai_client.chat.completions.create(**params)
        return response.choices[0].message.content or ""

    async def close(self):
        """Release HTTP connections held by the provider clients"""
        for client in (self.anthropic_client, self.openai_client):
            if client is not None:
                await client.close()


async def shutdown_ai_service() -> None:
    """Close the shared AIService if it was ever created."""
    global _shared_ai_service
    service = _shared_ai_service
    _shared_ai_service = None
    if service is not None:
        await service.close()
