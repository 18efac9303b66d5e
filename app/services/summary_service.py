"""End-to-end summary pipeline: identify, cache, transcribe, summarise."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from app.core.config import settings
from app.services.summary_cache import ApiKeyStore, SummaryCache
from app.services.summary_client import (
    MalformedSummaryResponse,
    build_summary_request,
    request_summary,
    resolve_api_key,
)
from app.services.summary_lengths import (
    LengthCheck,
    SummaryLength,
    count_words,
    minimum_words_for,
    smaller_sibling,
    validate_summary_length,
)
from app.services.transcript_service import acquire_transcript
from app.services.video_identifier import extract_video_id

logger = logging.getLogger(__name__)

Requester = Callable[..., Awaitable[str]]


class VideoIdentificationError(ValueError):
    """Raised when a URL does not point at a recognisable YouTube video."""


@dataclass(slots=True)
class SummaryAttempt:
    """The accepted output of the generation loop."""

    summary: str
    check: LengthCheck
    attempts: int
    min_words: int | None = None

    @property
    def word_count(self) -> int:
        return self.check.word_count


@dataclass(slots=True)
class SummaryOutcome:
    video_id: str
    length: SummaryLength
    summary: str
    word_count: int
    cached: bool


async def generate_summary(
    transcript: str,
    length: SummaryLength,
    *,
    api_key: str | None,
    sibling_summary: str | None = None,
    requester: Requester = request_summary,
) -> SummaryAttempt:
    """Summarise ``transcript``, regenerating once if it fails to outgrow its shorter sibling.

    The last result is returned once ``settings.summary_max_attempts`` is reached,
    whether or not it satisfies the word floor.
    """

    min_words = minimum_words_for(count_words(sibling_summary)) if sibling_summary else None
    max_attempts = max(settings.summary_max_attempts, 1)
    summary: str | None = None
    check: LengthCheck | None = None

    for attempt in range(1, max_attempts + 1):
        retrying = attempt > 1
        payload = build_summary_request(
            transcript,
            length,
            min_words=min_words,
            emphatic=retrying and min_words is not None,
            temperature=settings.summary_retry_temperature if retrying else settings.summary_temperature,
        )

        try:
            summary = await requester(payload, api_key=api_key)
        except MalformedSummaryResponse:
            if attempt == max_attempts:
                if summary is not None:
                    break
                raise
            logger.warning("Malformed summary response; retrying", extra={"length": length.value, "attempt": attempt})
            continue

        check = validate_summary_length(summary, length)
        if not check.valid:
            logger.info(
                "Summary outside word window",
                extra={"length": length.value, "attempt": attempt, "issue": check.issue},
            )

        if min_words is None or check.word_count >= min_words:
            return SummaryAttempt(summary=summary, check=check, attempts=attempt, min_words=min_words)

        logger.info(
            "Summary shorter than its sibling allows; regenerating",
            extra={"length": length.value, "attempt": attempt, "word_count": check.word_count, "min_words": min_words},
        )

    if summary is None or check is None:
        raise MalformedSummaryResponse("No summary was produced")
    return SummaryAttempt(summary=summary, check=check, attempts=max_attempts, min_words=min_words)


async def summarize_video(
    url: str,
    length: SummaryLength,
    *,
    cache: SummaryCache,
    key_store: ApiKeyStore,
    acquire: Callable[[str], Awaitable[str]] = acquire_transcript,
    requester: Requester = request_summary,
) -> SummaryOutcome:
    """Return a summary for the video at ``url``, from cache when possible."""

    video_id = extract_video_id(url)
    if not video_id:
        raise VideoIdentificationError("Please enter a valid YouTube URL")

    cached = await cache.get(video_id, length)
    if cached is not None:
        logger.info("Summary cache hit", extra={"video_id": video_id, "length": length.value})
        return SummaryOutcome(video_id, length, cached, count_words(cached), cached=True)

    transcript = await acquire(video_id)

    sibling = smaller_sibling(length)
    sibling_summary = await cache.get(video_id, sibling) if sibling else None

    api_key = resolve_api_key(await key_store.get())
    result = await generate_summary(
        transcript,
        length,
        api_key=api_key,
        sibling_summary=sibling_summary,
        requester=requester,
    )

    await cache.set(video_id, length, result.summary)
    logger.info(
        "Summary generated",
        extra={"video_id": video_id, "length": length.value, "words": result.word_count, "attempts": result.attempts},
    )
    return SummaryOutcome(video_id, length, result.summary, result.word_count, cached=False)


__all__ = [
    "SummaryAttempt",
    "SummaryOutcome",
    "VideoIdentificationError",
    "generate_summary",
    "summarize_video",
]
