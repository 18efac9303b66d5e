"""Ordered fallback chain for acquiring a video transcript."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Sequence

import httpx

from app.core.config import settings
from app.services.caption_tracks import CaptionTrackError
from app.services.transcript_strategies import (
    EmptyTranscriptError,
    NoTranscriptFound,
    TranscriptsDisabled,
    fetch_from_backend,
    fetch_with_library,
    guess_timedtext,
    scrape_watch_page,
)

logger = logging.getLogger(__name__)

# Failures that say something about the video itself rather than the route taken to it.
_CONTENT_FAILURES: tuple[type[BaseException], ...] = (
    CaptionTrackError,
    EmptyTranscriptError,
    NoTranscriptFound,
    TranscriptsDisabled,
)


@dataclass(slots=True, frozen=True)
class TranscriptStrategy:
    """A named transport route that turns a video id into transcript text."""

    name: str
    fetch: Callable[[str], Awaitable[str]]


class TranscriptUnavailableError(RuntimeError):
    """Raised when every strategy failed to produce a transcript."""

    def __init__(self, reason: BaseException | None = None) -> None:
        self.reason = reason
        message = "No transcript available for this video"
        if reason is not None and str(reason):
            message = f"{message}: {reason}"
        super().__init__(message)

    @property
    def is_content_failure(self) -> bool:
        return isinstance(self.reason, _CONTENT_FAILURES)


def build_default_strategies(client: httpx.AsyncClient) -> list[TranscriptStrategy]:
    """Strategies in priority order for a caller outside the transcript backend."""

    return [
        TranscriptStrategy("library", fetch_with_library),
        TranscriptStrategy("proxied_page_scrape", partial(scrape_watch_page, client, via_proxy=True)),
        TranscriptStrategy("timedtext_guess", partial(guess_timedtext, client)),
        TranscriptStrategy("server_proxy", partial(fetch_from_backend, client)),
    ]


def server_side_strategies(client: httpx.AsyncClient) -> list[TranscriptStrategy]:
    """Strategies used by the transcript backend itself, which needs no proxy."""

    return [
        TranscriptStrategy("library", fetch_with_library),
        TranscriptStrategy("page_scrape", partial(scrape_watch_page, client, via_proxy=False)),
    ]


def _most_specific(failures: Sequence[BaseException]) -> BaseException | None:
    for failure in failures:
        if isinstance(failure, _CONTENT_FAILURES):
            return failure
    return failures[-1] if failures else None


async def run_strategies(video_id: str, strategies: Sequence[TranscriptStrategy]) -> str:
    """Return the first non-empty transcript produced by ``strategies``, in order."""

    failures: list[BaseException] = []

    for strategy in strategies:
        try:
            transcript = await strategy.fetch(video_id)
        except Exception as exc:
            logger.warning(
                "Transcript strategy failed",
                extra={"video_id": video_id, "strategy": strategy.name, "error": str(exc)},
            )
            failures.append(exc)
            continue

        if transcript and transcript.strip():
            logger.info("Transcript acquired", extra={"video_id": video_id, "strategy": strategy.name})
            return transcript.strip()

        logger.warning("Transcript strategy returned nothing", extra={"video_id": video_id, "strategy": strategy.name})
        failures.append(EmptyTranscriptError(f"{strategy.name} returned an empty transcript"))

    reason = _most_specific(failures)
    raise TranscriptUnavailableError(reason) from reason


async def acquire_transcript(
    video_id: str,
    *,
    strategies: Sequence[TranscriptStrategy] | None = None,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Acquire a transcript for ``video_id`` using the default fallback chain."""

    if strategies is not None:
        return await run_strategies(video_id, strategies)

    if client is not None:
        return await run_strategies(video_id, build_default_strategies(client))

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True) as own_client:
        return await run_strategies(video_id, build_default_strategies(own_client))


__all__ = [
    "TranscriptStrategy",
    "TranscriptUnavailableError",
    "acquire_transcript",
    "build_default_strategies",
    "run_strategies",
    "server_side_strategies",
]
