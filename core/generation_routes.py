"""
Generation, scoring and health API routes for the LIX Text Generator.
"""

from __future__ import annotations

import uuid
from typing import AsyncIterator

from fastapi import Depends
from fastapi.responses import JSONResponse, StreamingResponse

from ai_service import GenerationErrorKind, TextGenerator
from config import ConfigurationError
from json_utils import dumps_line
from lix_calculator import calculate_lix, derive_targets
from logging_utils import create_phase_logger
from models import (
    ErrorResponse,
    GenerationRequest,
    LixTargets,
    OutcomeStatus,
    ScoreRequest,
    TargetsRequest,
    TextResponse,
    TextStatistics,
)

from .app_state import app, config, get_generator, logger
from .generation_loop import GenerationLoop, stream_generation_events

NDJSON_MEDIA_TYPE = "application/x-ndjson"

ERROR_STATUS_CODES = {
    GenerationErrorKind.UNAUTHORIZED.value: 401,
    GenerationErrorKind.RATE_LIMITED.value: 429,
    GenerationErrorKind.OVERLOADED.value: 503,
    GenerationErrorKind.OTHER.value: 502,
}


def _configuration_error_response(exc: ConfigurationError) -> JSONResponse:
    logger.error("Rejecting generation request: %s", exc)
    return JSONResponse(status_code=500, content=ErrorResponse(error=str(exc)).model_dump(exclude_none=True))


def build_generation_loop(generator: TextGenerator) -> GenerationLoop:
    return GenerationLoop(generator)


@app.post("/api/generate")
async def generate_streaming(
    request: GenerationRequest,
    generator: TextGenerator = Depends(get_generator),
):
    """
    Progressive mode: one NDJSON line per attempt, then exactly one terminal
    line (success, warning or error).
    """
    loop = build_generation_loop(generator)
    try:
        generator.check_configuration(loop.resolve_model(request))
    except ConfigurationError as exc:
        return _configuration_error_response(exc)

    async def event_lines() -> AsyncIterator[bytes]:
        async for event in stream_generation_events(loop, request):
            yield dumps_line(event.to_wire())

    return StreamingResponse(
        event_lines(),
        media_type=NDJSON_MEDIA_TYPE,
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@app.post("/api/generate/text", response_model=TextResponse)
async def generate_text(
    request: GenerationRequest,
    generator: TextGenerator = Depends(get_generator),
):
    """Single-shot mode: only the final text, or an error mapped to a status code."""
    loop = build_generation_loop(generator)
    phase_logger = create_phase_logger(
        request_id=uuid.uuid4().hex[:8],
        verbose=config.VERBOSE,
        extra_verbose=config.EXTRA_VERBOSE,
    )
    try:
        outcome = await loop.run(request, phase_logger=phase_logger)
    except ConfigurationError as exc:
        return _configuration_error_response(exc)

    if outcome.status == OutcomeStatus.FAILED:
        status_code = ERROR_STATUS_CODES.get(outcome.error_kind, 502)
        body = ErrorResponse(error=outcome.error_message or "Text generation failed")
        return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

    return TextResponse(text=outcome.final_text or "")


@app.post("/api/lix", response_model=TextStatistics, response_model_by_alias=True)
async def score_text(request: ScoreRequest):
    """Score arbitrary text with the same scorer the generation loop uses."""
    return calculate_lix(request.text)


@app.post("/api/targets", response_model=LixTargets, response_model_by_alias=True)
async def calculate_targets(request: TargetsRequest):
    """Derive word and long-word targets for a LIX score and sentence count."""
    return derive_targets(request.target_score, request.target_sentences)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "default_model": config.DEFAULT_MODEL,
        "max_attempts": config.MAX_ATTEMPTS,
        "providers": config.validate_api_keys(),
    }
