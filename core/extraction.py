"""
Answer extraction from raw generator output.

The generator is asked to plan inside <thinking> tags and to place the final
answer inside <text> tags. Models do not always comply, so extraction runs an
ordered chain of strategies and the first one that applies wins.
"""

from __future__ import annotations

import re
from typing import Optional, Sequence

ANSWER_TAG = "text"
REASONING_TAG = "thinking"

_ANSWER_RE = re.compile(rf"<{ANSWER_TAG}>(.*?)</{ANSWER_TAG}>", re.IGNORECASE | re.DOTALL)
_ANSWER_OPEN_RE = re.compile(rf"<{ANSWER_TAG}>", re.IGNORECASE)
_REASONING_RE = re.compile(rf"<{REASONING_TAG}>.*?</{REASONING_TAG}>", re.IGNORECASE | re.DOTALL)
# Tag tokens left behind by unbalanced markup; never part of the answer
_STRAY_TAG_RE = re.compile(rf"</?(?:{ANSWER_TAG}|{REASONING_TAG})>", re.IGNORECASE)

# Opening -> closing quote characters stripped when they wrap the whole answer
QUOTE_PAIRS = {
    '"': '"',
    "'": "'",
    "“": "”",
    "„": "“",
    "«": "»",
}


def strip_stray_tags(text: str) -> str:
    """Delete leftover <text>/<thinking> tag tokens."""
    return _STRAY_TAG_RE.sub("", text)


class AnswerExtractor:
    """
    One extraction strategy.

    Returns None when the strategy does not apply. An empty string means it
    applied and found an empty answer, which ends the chain.
    """

    name = "base"

    def extract(self, raw_text: str) -> Optional[str]:
        raise NotImplementedError


class TaggedAnswerExtractor(AnswerExtractor):
    """
    Content of the first <text>...</text> block outside any reasoning block.

    An opening tag without a closing one (output cut off at the token limit)
    yields everything after the tag.
    """

    name = "tagged_answer"

    def extract(self, raw_text: str) -> Optional[str]:
        visible = _REASONING_RE.sub("", raw_text)
        match = _ANSWER_RE.search(visible)
        if match:
            return strip_stray_tags(match.group(1)).strip()
        opening = _ANSWER_OPEN_RE.search(visible)
        if opening is None:
            return None
        return strip_stray_tags(visible[opening.end():]).strip()


class ReasoningStrippingExtractor(AnswerExtractor):
    """Everything left after removing <thinking> blocks."""

    name = "reasoning_stripped"

    def extract(self, raw_text: str) -> Optional[str]:
        if not _REASONING_RE.search(raw_text):
            return None
        return strip_stray_tags(_REASONING_RE.sub("", raw_text)).strip() or None


class RawTextExtractor(AnswerExtractor):
    name = "raw"

    def extract(self, raw_text: str) -> Optional[str]:
        return strip_stray_tags(raw_text).strip() or None


DEFAULT_EXTRACTORS: Sequence[AnswerExtractor] = (
    TaggedAnswerExtractor(),
    ReasoningStrippingExtractor(),
    RawTextExtractor(),
)


def strip_wrapping_quotes(text: str) -> str:
    """Remove a single pair of quotes wrapping the whole text."""
    if len(text) >= 2:
        closing = QUOTE_PAIRS.get(text[0])
        if closing is not None and text[-1] == closing:
            return text[1:-1].strip()
    return text


def extract_answer(raw_text: str, extractors: Sequence[AnswerExtractor] = DEFAULT_EXTRACTORS) -> str:
    """
    Extract the final answer from raw generator output.

    Args:
        raw_text: Model output before extraction
        extractors: Ordered strategies; the first one that applies wins

    Returns:
        The candidate text, possibly empty when the output or the answer
        block is blank
    """
    raw_text = raw_text or ""
    for extractor in extractors:
        candidate = extractor.extract(raw_text)
        if candidate is not None:
            return strip_wrapping_quotes(candidate)
    return ""
