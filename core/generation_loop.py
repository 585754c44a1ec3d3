"""
Constraint-driven generation loop.

Each request runs a bounded sequence of rounds: generate, extract, score,
judge, then either stop or append the model's own output plus a corrective
message to the conversation and try again. Events are written to a sink as
soon as they are ready so callers can report progress live.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from ai_service import GenerationError, GenerationErrorKind, TextGenerator, classify_exception
from config import ConfigurationError, config
from lix_calculator import calculate_lix, find_long_words
from logging_utils import Phase, PhaseLogger, create_phase_logger
from models import (
    Attempt,
    AttemptEvent,
    Conversation,
    ConversationTurn,
    ErrorEvent,
    GenerationEvent,
    GenerationOutcome,
    GenerationRequest,
    OutcomeStatus,
    SuccessEvent,
    TERMINAL_EVENT_TYPES,
    WarningEvent,
)

from .extraction import extract_answer
from .feedback_formatter import build_feedback_message, evaluate_constraints
from .prompt_templates import build_generation_prompt

logger = logging.getLogger(__name__)

EventSink = Callable[[GenerationEvent], Awaitable[None]]

EXHAUSTED_WARNING_TEMPLATE = (
    "Could not meet all constraints after {attempts} attempts. "
    "Showing the last attempt; check the statistics before using it."
)
EMPTY_RESPONSE_PLACEHOLDER = "(empty response)"
STREAM_QUEUE_SIZE = 16


async def discard_event(event: GenerationEvent) -> None:
    """Sink used by single-shot callers that only need the outcome."""
    return None


class GenerationLoop:
    """
    Drives up to ``max_attempts`` generation rounds for one request at a time.

    The loop keeps no state between ``run`` calls; the conversation and the
    attempt history live in local variables owned by the running call.
    """

    def __init__(
        self,
        generator: TextGenerator,
        *,
        max_attempts: Optional[int] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        request_timeout: Optional[float] = None,
        default_model: Optional[str] = None,
    ):
        self.generator = generator
        self.max_attempts = max_attempts if max_attempts is not None else config.MAX_ATTEMPTS
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.temperature = temperature if temperature is not None else config.TEMPERATURE
        self.max_tokens = max_tokens if max_tokens is not None else config.MAX_TOKENS
        self.request_timeout = request_timeout if request_timeout is not None else config.REQUEST_TIMEOUT
        self.default_model = default_model or config.DEFAULT_MODEL

    def resolve_model(self, request: GenerationRequest) -> str:
        return request.backend_selector or self.default_model

    async def _generate(self, conversation: Conversation, model: str, phase_logger: PhaseLogger) -> str:
        """One bounded generation call. Every failure surfaces as GenerationError."""
        with phase_logger.phase(Phase.GENERATION, sub_label=model):
            phase_logger.log_conversation(
                model,
                conversation,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            try:
                raw_text = await asyncio.wait_for(
                    self.generator.generate(
                        conversation,
                        model=model,
                        max_tokens=self.max_tokens,
                        temperature=self.temperature,
                        timeout=self.request_timeout,
                    ),
                    timeout=self.request_timeout,
                )
            except GenerationError:
                raise
            except asyncio.TimeoutError as exc:
                raise GenerationError(
                    GenerationErrorKind.OVERLOADED,
                    f"Generation timed out after {self.request_timeout:g}s",
                    model=model,
                ) from exc
            except Exception as exc:
                raise classify_exception(exc, model=model) from exc

            raw_text = raw_text or ""
            phase_logger.log_response(model, raw_text)
            return raw_text

    async def run(
        self,
        request: GenerationRequest,
        sink: EventSink = discard_event,
        phase_logger: Optional[PhaseLogger] = None,
    ) -> GenerationOutcome:
        """
        Run the loop for one request.

        Args:
            request: Validated generation request
            sink: Awaited with every event, in order; the terminal event is last
            phase_logger: Optional logger bound to this request

        Returns:
            GenerationOutcome mirroring the terminal event

        Raises:
            ConfigurationError: the backend cannot serve the model (before any attempt)
        """
        model = self.resolve_model(request)
        self.generator.check_configuration(model)

        phase_logger = phase_logger or create_phase_logger(
            request_id=uuid.uuid4().hex[:8],
            verbose=config.VERBOSE,
            extra_verbose=config.EXTRA_VERBOSE,
        )
        phase_logger.info(
            f"Generating '{request.topic}' in {request.language} with {model}: "
            f"LIX {request.target_score:g}, {request.target_sentences} sentences, "
            f"{request.target_long_words} long words, ~{request.target_words} words, "
            f"tolerance {request.tolerance}, up to {self.max_attempts} attempts"
        )

        conversation: Conversation = (
            ConversationTurn(role="user", content=build_generation_prompt(request)),
        )
        attempts: List[Attempt] = []

        for index in range(1, self.max_attempts + 1):
            phase_logger.set_attempt(index)

            try:
                raw_text = await self._generate(conversation, model, phase_logger)
            except GenerationError as exc:
                phase_logger.error(f"Generation failed on attempt {index} [{exc.kind.value}]: {exc.message}")
                await sink(ErrorEvent(error=exc.user_message))
                return GenerationOutcome(
                    status=OutcomeStatus.FAILED,
                    attempts=list(attempts),
                    error_message=exc.user_message,
                    error_kind=exc.kind.value,
                )

            with phase_logger.phase(Phase.SCORING):
                candidate_text = extract_answer(raw_text)
                stats = calculate_lix(candidate_text)
                report = evaluate_constraints(stats, request)
                attempt = Attempt(
                    index=index,
                    raw_text=raw_text,
                    candidate_text=candidate_text,
                    stats=stats,
                    accepted=report.accepted,
                    violations=tuple(report.violations),
                )
                phase_logger.log_decision(attempt.accepted, stats.score, report.violations)
                if report.word_deviation:
                    phase_logger.debug(
                        f"Word count {stats.word_count} vs ~{request.target_words} "
                        f"(advisory, deviation {report.word_deviation:+d})"
                    )

            attempts.append(attempt)
            await sink(AttemptEvent(data=attempt))

            if attempt.accepted:
                with phase_logger.phase(Phase.COMPLETION, sub_label="accepted"):
                    phase_logger.info(f"Accepted on attempt {index} (LIX {stats.score:.1f})")
                    await sink(SuccessEvent(text=candidate_text, attempts=list(attempts)))
                phase_logger.log_timing_summary()
                return GenerationOutcome(
                    status=OutcomeStatus.SUCCESS,
                    final_text=candidate_text,
                    attempts=list(attempts),
                )

            if index < self.max_attempts:
                with phase_logger.phase(Phase.FEEDBACK):
                    feedback = build_feedback_message(report, request, find_long_words(candidate_text))
                    phase_logger.debug(feedback)
                conversation = conversation + (
                    ConversationTurn(role="assistant", content=raw_text.strip() or EMPTY_RESPONSE_PLACEHOLDER),
                    ConversationTurn(role="user", content=feedback),
                )

        last_attempt = attempts[-1]
        warning = EXHAUSTED_WARNING_TEMPLATE.format(attempts=len(attempts))
        with phase_logger.phase(Phase.COMPLETION, sub_label="best effort"):
            phase_logger.warning(warning)
            await sink(
                WarningEvent(
                    text=last_attempt.candidate_text,
                    attempts=list(attempts),
                    warning=warning,
                )
            )
        phase_logger.log_timing_summary()
        return GenerationOutcome(
            status=OutcomeStatus.EXHAUSTED_WITH_BEST_EFFORT,
            final_text=last_attempt.candidate_text,
            attempts=list(attempts),
            warning=warning,
        )


async def stream_generation_events(
    loop: GenerationLoop,
    request: GenerationRequest,
    queue_size: int = STREAM_QUEUE_SIZE,
) -> AsyncIterator[GenerationEvent]:
    """
    Run the loop in a background task and yield its events in order.

    If the consumer stops iterating (client disconnect), the producer task is
    cancelled and any in-flight generation call is abandoned.
    """
    queue: "asyncio.Queue[GenerationEvent]" = asyncio.Queue(maxsize=queue_size)

    async def sink(event: GenerationEvent) -> None:
        await queue.put(event)

    async def produce() -> None:
        try:
            await loop.run(request, sink)
        except ConfigurationError as exc:
            logger.error("Configuration error before generation: %s", exc)
            await queue.put(ErrorEvent(error=str(exc)))
        except Exception as exc:
            logger.exception("Generation loop failed unexpectedly")
            await queue.put(ErrorEvent(error=f"Text generation failed: {exc}"))

    task = asyncio.create_task(produce())
    try:
        while True:
            event = await queue.get()
            yield event
            if event.type in TERMINAL_EVENT_TYPES:
                break
        await task
    finally:
        if not task.done():
            task.cancel()
