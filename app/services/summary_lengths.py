"""Summary length profiles and word-count checks."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from app.core.config import settings


class SummaryLength(str, enum.Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


@dataclass(slots=True, frozen=True)
class LengthProfile:
    """Word-count window and token budget for one summary length."""

    min_words: int
    target_words: int
    max_words: int
    max_tokens: int


LENGTH_PROFILES: dict[SummaryLength, LengthProfile] = {
    SummaryLength.SHORT: LengthProfile(min_words=60, target_words=90, max_words=120, max_tokens=350),
    SummaryLength.MEDIUM: LengthProfile(min_words=150, target_words=200, max_words=250, max_tokens=550),
    SummaryLength.LONG: LengthProfile(min_words=300, target_words=400, max_words=500, max_tokens=1000),
}

_SMALLER_SIBLING: dict[SummaryLength, SummaryLength] = {
    SummaryLength.MEDIUM: SummaryLength.SHORT,
    SummaryLength.LONG: SummaryLength.MEDIUM,
}


@dataclass(slots=True, frozen=True)
class LengthCheck:
    valid: bool
    word_count: int
    issue: str | None = None


def count_words(text: str) -> int:
    return len(text.split())


def validate_summary_length(summary: str, length: SummaryLength) -> LengthCheck:
    """Check ``summary`` against the word window for ``length``.

    The upper bound is relaxed by ``settings.summary_length_tolerance`` words.
    """

    profile = LENGTH_PROFILES[length]
    words = count_words(summary)
    upper = profile.max_words + settings.summary_length_tolerance

    if words < profile.min_words:
        return LengthCheck(False, words, f"too short: {words} words, expected at least {profile.min_words}")
    if words > upper:
        return LengthCheck(False, words, f"too long: {words} words, expected at most {upper}")
    return LengthCheck(True, words)


def smaller_sibling(length: SummaryLength) -> SummaryLength | None:
    """Return the next shorter length a summary of ``length`` must outgrow."""

    return _SMALLER_SIBLING.get(length)


def minimum_words_for(sibling_word_count: int) -> int:
    """Word floor for a summary whose shorter sibling has ``sibling_word_count`` words."""

    return math.ceil(sibling_word_count * settings.summary_min_growth_ratio)
