"""
LIX Readability Utilities
=========================

Deterministic LIX (Läsbarhetsindex) scoring and target derivation.

LIX = words / sentences + long_words * 100 / words, where a long word has
more than 6 characters once punctuation is removed. The segmentation rules
below must stay byte-for-byte compatible with the browser redisplay of the
statistics, so the same text always yields the same numbers on both sides.
"""

import math
import re
from typing import List

from models import LixTargets, TextStatistics

LONG_WORD_MIN_LENGTH = 7

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_WORD_PUNCTUATION_RE = re.compile(r"[.!?,\"'();:]")

# Share of the score attributed to sentence length when deriving targets
SENTENCE_LENGTH_SHARE = 0.4
MIN_WORDS_PER_SENTENCE = 3.0
MAX_WORDS_PER_SENTENCE = 30.0


def round_half_up(value: float, digits: int = 0) -> float:
    """Round like JavaScript's Math.round (halves go up)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def normalize_text(text: str) -> str:
    """Trim and collapse all whitespace runs to single spaces."""
    return _WHITESPACE_RE.sub(" ", text.strip())


def split_sentences(text: str) -> List[str]:
    """Split on runs of . ! ? and drop fragments that are blank."""
    clean_text = normalize_text(text)
    return [s for s in _SENTENCE_SPLIT_RE.split(clean_text) if s.strip()]


def split_words(text: str) -> List[str]:
    """Delete counted punctuation, then split on single spaces."""
    clean_text = normalize_text(text)
    stripped = _WORD_PUNCTUATION_RE.sub("", clean_text)
    return [w for w in stripped.split(" ") if w]


def is_long_word(word: str) -> bool:
    return len(word) >= LONG_WORD_MIN_LENGTH


def find_long_words(text: str) -> List[str]:
    """Return the long words of text in order of appearance (duplicates kept)."""
    return [w for w in split_words(text) if is_long_word(w)]


def calculate_lix(text: str) -> TextStatistics:
    """
    Compute LIX statistics for a text.

    Empty or whitespace-only input returns all zeros; this is the only case
    where the sentence count is 0. Otherwise sentence and word counts are
    floored at 1 so the formula never divides by zero.

    Args:
        text: Text to analyse

    Returns:
        TextStatistics with score rounded to one decimal place
    """
    if not text or not text.strip():
        return TextStatistics(word_count=0, sentence_count=0, long_word_count=0, score=0.0)

    sentence_count = len(split_sentences(text)) or 1
    words = split_words(text)
    word_count = len(words) or 1
    long_word_count = sum(1 for w in words if is_long_word(w))

    score = (word_count / sentence_count) + (long_word_count * 100 / word_count)

    return TextStatistics(
        word_count=word_count,
        sentence_count=sentence_count,
        long_word_count=long_word_count,
        score=round_half_up(score, 1),
    )


def derive_targets(target_score: float, sentences: int) -> LixTargets:
    """
    Derive word and long-word targets that reproduce a LIX score.

    Roughly 40% of the score is carried by sentence length and the rest by
    long-word density, with sentence length kept between 3 and 30 words.
    """
    if target_score <= 0:
        raise ValueError("target_score must be positive")
    if sentences < 1:
        raise ValueError("sentences must be at least 1")

    words_per_sentence = min(
        MAX_WORDS_PER_SENTENCE,
        max(MIN_WORDS_PER_SENTENCE, target_score * SENTENCE_LENGTH_SHARE),
    )
    target_words = max(1, int(round_half_up(words_per_sentence * sentences)))

    long_word_percent = min(100.0, max(0.0, target_score - target_words / sentences))
    target_long_words = int(round_half_up(long_word_percent * target_words / 100))
    target_long_words = min(target_words, max(0, target_long_words))

    expected = target_words / sentences + target_long_words * 100 / target_words

    return LixTargets(
        target_score=target_score,
        target_sentences=sentences,
        target_words=target_words,
        target_long_words=target_long_words,
        expected_score=round_half_up(expected, 1),
    )
