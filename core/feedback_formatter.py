"""
Constraint checks and corrective feedback for rejected attempts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from models import GenerationRequest, TextStatistics

from .prompt_templates import build_format_reminder, build_long_word_definition


@dataclass(frozen=True)
class ConstraintReport:
    """Outcome of comparing one attempt's statistics with the request targets."""

    stats: TextStatistics
    target_sentences: int
    target_long_words: int
    target_words: int
    tolerance: int
    sentence_match: bool
    long_word_match: bool
    violations: List[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        # Word count is advisory and never gates acceptance.
        return self.sentence_match and self.long_word_match

    @property
    def sentence_delta(self) -> int:
        return self.target_sentences - self.stats.sentence_count

    @property
    def long_word_delta(self) -> int:
        return self.target_long_words - self.stats.long_word_count

    @property
    def word_deviation(self) -> int:
        return self.stats.word_count - self.target_words


def describe_requirement(target: int, tolerance: int) -> str:
    """'exactly 8' or '8 (±1)' depending on tolerance."""
    if tolerance <= 0:
        return f"exactly {target}"
    return f"{target} (±{tolerance})"


def evaluate_constraints(stats: TextStatistics, request: GenerationRequest) -> ConstraintReport:
    """
    Judge one attempt.

    Args:
        stats: Scorer output for the candidate text
        request: Generation request holding the targets

    Returns:
        ConstraintReport with ordered, human-readable violations
    """
    tolerance = request.tolerance
    sentence_match = abs(stats.sentence_count - request.target_sentences) <= tolerance
    long_word_match = abs(stats.long_word_count - request.target_long_words) <= tolerance

    violations: List[str] = []
    if not sentence_match:
        violations.append(
            f"sentence count: got {stats.sentence_count}, "
            f"need {describe_requirement(request.target_sentences, tolerance)}"
        )
    if not long_word_match:
        violations.append(
            f"long word count: got {stats.long_word_count}, "
            f"need {describe_requirement(request.target_long_words, tolerance)}"
        )

    return ConstraintReport(
        stats=stats,
        target_sentences=request.target_sentences,
        target_long_words=request.target_long_words,
        target_words=request.target_words,
        tolerance=tolerance,
        sentence_match=sentence_match,
        long_word_match=long_word_match,
        violations=violations,
    )


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _sentence_directive(delta: int) -> str:
    count = abs(delta)
    noun = _plural(count, "sentence", "sentences")
    if delta > 0:
        return f"Add {count} {noun}."
    return f"Remove {count} {noun} (or merge sentences together)."


def _long_word_directive(delta: int) -> str:
    count = abs(delta)
    if delta > 0:
        noun = _plural(count, "word", "words")
        return f"Replace {count} shorter {noun} with long words (7 or more letters)."
    noun = _plural(count, "long word", "long words")
    return f"Replace {count} {noun} with shorter ones (6 letters or fewer)."


def build_feedback_message(
    report: ConstraintReport,
    request: GenerationRequest,
    long_words: Sequence[str] = (),
) -> str:
    """
    Build the corrective user turn sent after a rejected attempt.

    Lists, per unmet constraint, the required value, the observed value and
    what to change, then names the long words that were counted.
    """
    stats = report.stats
    lines: List[str] = ["Your text does not meet the requirements yet.", ""]

    if not report.sentence_match:
        lines.append(
            f"- Sentences: required {describe_requirement(request.target_sentences, request.tolerance)}, "
            f"found {stats.sentence_count}. {_sentence_directive(report.sentence_delta)}"
        )
    if not report.long_word_match:
        lines.append(
            f"- Long words: required {describe_requirement(request.target_long_words, request.tolerance)}, "
            f"found {stats.long_word_count}. {_long_word_directive(report.long_word_delta)}"
        )

    if long_words:
        lines.append("")
        lines.append(f"Long words counted in your text ({len(long_words)}): {', '.join(long_words)}")

    lines.append("")
    lines.append(
        f"Keep the total close to {request.target_words} words (your text has {stats.word_count})."
    )
    lines.append("")
    lines.append(build_long_word_definition())
    lines.append("")
    lines.append(build_format_reminder())
    return "\n".join(lines)
