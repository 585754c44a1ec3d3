"""
Configuration for the LIX Text Generator
========================================

Central configuration for API keys, the default generation backend and the
retry budget of the generation loop. Values are loaded from the environment
(and a local .env file) once, at import time.
"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

TRUTHY_ENV_VALUES = {"1", "true", "yes", "on"}

ANTHROPIC_MODEL_PREFIXES = ("claude",)
OPENAI_MODEL_PREFIXES = ("gpt", "o1", "o3", "o4")


class ConfigurationError(RuntimeError):
    """Raised when a required credential or setting is missing."""


class Config(BaseModel):
    """Configuration settings for the LIX Text Generator."""

    # API Keys (loaded from environment variables)
    ANTHROPIC_API_KEY: str = Field(default="", description="Anthropic Claude API key")
    OPENAI_API_KEY: str = Field(default="", description="OpenAI API key")

    # Generation defaults
    DEFAULT_MODEL: str = Field(
        default="claude-opus-4-1-20250805",
        description="Backend selector used when a request does not name one",
    )
    MAX_ATTEMPTS: int = Field(default=5, ge=1, le=20, description="Generation rounds per request")
    TEMPERATURE: float = Field(default=0.3, ge=0.0, le=2.0, description="Sampling temperature")
    MAX_TOKENS: int = Field(default=2000, gt=0, description="Maximum output tokens per generation call")
    REQUEST_TIMEOUT: float = Field(default=120.0, gt=0, description="Seconds allowed per generation call")

    # Server
    APP_HOST: str = Field(default="0.0.0.0", description="FastAPI host")
    APP_PORT: int = Field(default=8000, description="FastAPI port")
    APP_RELOAD: bool = Field(default=False, description="FastAPI reload mode")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    VERBOSE: bool = Field(default=False, description="Log per-attempt diagnostics")
    EXTRA_VERBOSE: bool = Field(default=False, description="Log full prompts and responses")

    def __init__(self, **data: Any):
        super().__init__(**data)
        self.load_from_environment()

    def load_from_environment(self):
        """Load configuration from environment variables"""
        self.ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "") or os.getenv("LIX_ANTHROPIC_KEY", "")
        self.OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "") or os.getenv("OPENAI_KEY", "")

        self.DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", self.DEFAULT_MODEL)
        self.MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", str(self.MAX_ATTEMPTS)))
        self.TEMPERATURE = float(os.getenv("TEMPERATURE", str(self.TEMPERATURE)))
        self.MAX_TOKENS = int(os.getenv("MAX_TOKENS", str(self.MAX_TOKENS)))
        self.REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", str(self.REQUEST_TIMEOUT)))

        self.APP_HOST = os.getenv("APP_HOST", self.APP_HOST)
        self.APP_PORT = int(os.getenv("APP_PORT", str(self.APP_PORT)))
        self.APP_RELOAD = os.getenv("APP_RELOAD", "false").lower() in TRUTHY_ENV_VALUES

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", self.LOG_LEVEL).upper()
        self.VERBOSE = os.getenv("VERBOSE", "false").lower() in TRUTHY_ENV_VALUES
        self.EXTRA_VERBOSE = os.getenv("EXTRA_VERBOSE", "false").lower() in TRUTHY_ENV_VALUES
        if self.EXTRA_VERBOSE:
            self.VERBOSE = True

    def get_provider_for_model(self, model_name: str) -> Optional[str]:
        """Return the provider key ("anthropic" / "openai") for a model, or None."""
        model_lower = (model_name or "").strip().lower()
        if model_lower.startswith(ANTHROPIC_MODEL_PREFIXES):
            return "anthropic"
        if model_lower.startswith(OPENAI_MODEL_PREFIXES):
            return "openai"
        return None

    def get_api_key(self, provider: str) -> str:
        if provider == "anthropic":
            return self.ANTHROPIC_API_KEY
        if provider == "openai":
            return self.OPENAI_API_KEY
        return ""

    def require_credentials(self, model_name: str) -> str:
        """
        Resolve the provider for a model and make sure its key is configured.

        Returns:
            The provider key.

        Raises:
            ConfigurationError: unknown model family or missing API key.
        """
        provider = self.get_provider_for_model(model_name)
        if provider is None:
            raise ConfigurationError(f"Unsupported model '{model_name}'")
        if not self.get_api_key(provider):
            env_hint = "ANTHROPIC_API_KEY" if provider == "anthropic" else "OPENAI_API_KEY"
            raise ConfigurationError(
                f"Server configuration error: no API key configured for {provider} (set {env_hint})"
            )
        return provider

    def validate_api_keys(self) -> Dict[str, bool]:
        """Report which providers have credentials."""
        return {
            "anthropic": bool(self.ANTHROPIC_API_KEY),
            "openai": bool(self.OPENAI_API_KEY),
        }


# Global configuration instance
config = Config()


def get_model_parameter_requirements(model_name: str) -> Dict[str, Any]:
    """
    Parameter rules for OpenAI chat models.
    Reasoning models take max_completion_tokens and reject custom temperatures.
    """
    model_lower = model_name.lower()

    if "gpt-5" in model_lower or model_lower.startswith(("o1", "o3", "o4")):
        return {
            "max_tokens_param": "max_completion_tokens",
            "supports_temperature": False,
        }

    return {
        "max_tokens_param": "max_tokens",
        "supports_temperature": True,
    }
