"""
LIX Text Generator - Constrained Readability Text API
=====================================================

Generates short texts that hit exact LIX readability targets by repeatedly
prompting a language model and validating each candidate with the same
deterministic scorer used to redisplay statistics.

Features:
- Anthropic and OpenAI backends behind one generation capability
- Bounded retry loop with corrective feedback between attempts
- Progressive (NDJSON) and single-shot responses
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ai_service import TextGenerator, get_ai_service, shutdown_ai_service
from config import config
from models import ErrorResponse

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
    ]
)

# Silence noisy third-party loggers to avoid cluttering output
_noisy_loggers = [
    'httpcore',
    'httpcore.connection',
    'httpcore.http11',
    'httpx',
    'openai._base_client',
    'anthropic._base_client',
]
for _logger_name in _noisy_loggers:
    logging.getLogger(_logger_name).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

VALIDATION_ERROR_MESSAGE = "Missing required parameters"

app = FastAPI(
    title="LIX Text Generator",
    description="Generate texts with exact LIX readability targets",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)


def get_generator() -> TextGenerator:
    """Dependency returning the shared generation capability."""
    return get_ai_service()


def _format_validation_errors(exc: RequestValidationError) -> list:
    details = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        details.append({
            "field": ".".join(location) or "body",
            "message": error.get("msg", "invalid value"),
        })
    return details


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Reject malformed requests before any generation is attempted"""
    details = _format_validation_errors(exc)
    logger.info("Rejected request to %s: %s", request.url.path, details)
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=VALIDATION_ERROR_MESSAGE, details=details).model_dump(),
    )


@app.on_event("startup")
async def startup_event():
    """Report configuration issues early without failing startup"""
    providers = config.validate_api_keys()
    if not any(providers.values()):
        logger.error("No generation API key configured; generation requests will be rejected")
    logger.info(
        "LIX Text Generator ready (default model %s, max %d attempts)",
        config.DEFAULT_MODEL,
        config.MAX_ATTEMPTS,
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown"""
    logger.info("Shutting down LIX Text Generator...")
    await shutdown_ai_service()
    logger.info("Shutdown complete")
