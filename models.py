"""
Data Models for the LIX Text Generator
======================================

Pydantic models for request/response handling and the records produced by
the generation loop. Wire names are camelCase; Python attributes stay
snake_case.
"""

from enum import Enum
from typing import List, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for records that travel over the wire with camelCase names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class TextStatistics(WireModel):
    """Output of the readability scorer."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    word_count: int = Field(default=0, ge=0)
    sentence_count: int = Field(default=0, ge=0)
    long_word_count: int = Field(default=0, ge=0)
    score: float = Field(default=0.0, ge=0.0)


class LixTargets(WireModel):
    """Word and long-word targets derived from a composite score."""

    target_score: float
    target_sentences: int
    target_words: int
    target_long_words: int
    expected_score: float


class GenerationRequest(BaseModel):
    """Input to the generation loop."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    topic: str = Field(..., min_length=1, description="What the text is about")
    language: str = Field(..., min_length=1, description="Language of the generated text")
    target_score: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("targetScore", "lix", "target_score"),
        serialization_alias="targetScore",
        description="Desired LIX score",
    )
    target_sentences: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("targetSentences", "sentences", "target_sentences"),
        serialization_alias="targetSentences",
    )
    target_words: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("targetWords", "target_words"),
        serialization_alias="targetWords",
        description="Approximate total word count (advisory)",
    )
    target_long_words: int = Field(
        ...,
        ge=0,
        validation_alias=AliasChoices("targetLongWords", "target_long_words"),
        serialization_alias="targetLongWords",
        description="Exact number of words longer than 6 letters",
    )
    tolerance: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("tolerance", "fuzziness"),
        description="Allowed deviation for sentence and long-word counts",
    )
    backend_selector: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("backendSelector", "model", "backend_selector"),
        serialization_alias="backendSelector",
        description="Generation model; defaults to the configured model",
    )


class TargetsRequest(BaseModel):
    """Input for target derivation."""

    model_config = ConfigDict(populate_by_name=True)

    target_score: float = Field(
        ...,
        gt=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("targetScore", "lix", "target_score"),
    )
    target_sentences: int = Field(
        ...,
        ge=1,
        validation_alias=AliasChoices("targetSentences", "sentences", "target_sentences"),
    )


class ScoreRequest(BaseModel):
    text: str = Field(..., description="Text to score")


class ConversationTurn(BaseModel):
    """One immutable message of the running conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str

    def as_message(self) -> dict:
        return {"role": self.role, "content": self.content}


Conversation = Tuple[ConversationTurn, ...]


class Attempt(WireModel):
    """One generate-extract-score-judge round. Never mutated once built."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    index: int = Field(..., ge=1)
    raw_text: str
    candidate_text: str
    stats: TextStatistics
    accepted: bool
    violations: Tuple[str, ...] = ()


class OutcomeStatus(str, Enum):
    """Terminal state of one request"""
    SUCCESS = "success"
    EXHAUSTED_WITH_BEST_EFFORT = "exhausted_with_best_effort"
    FAILED = "failed"


class GenerationOutcome(WireModel):
    """Terminal result of the generation loop."""

    status: OutcomeStatus
    final_text: Optional[str] = None
    attempts: List[Attempt] = Field(default_factory=list)
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    warning: Optional[str] = None


class AttemptEvent(WireModel):
    type: Literal["attempt"] = "attempt"
    data: Attempt


class SuccessEvent(WireModel):
    type: Literal["success"] = "success"
    text: str
    attempts: List[Attempt]


class WarningEvent(WireModel):
    type: Literal["warning"] = "warning"
    text: str
    attempts: List[Attempt]
    warning: str


class ErrorEvent(WireModel):
    type: Literal["error"] = "error"
    error: str


GenerationEvent = Union[AttemptEvent, SuccessEvent, WarningEvent, ErrorEvent]

TERMINAL_EVENT_TYPES = frozenset({"success", "warning", "error"})


class TextResponse(BaseModel):
    """Single-shot response body."""
    text: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[list] = None
