"""Transport routes for obtaining a transcript for a single video.

Each strategy takes a video id and returns the transcript text or raises.
Strategies never retry on their own; ordering and fallback belong to
``app.services.transcript_service``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from urllib.parse import quote

import httpx
from youtube_transcript_api import (  # type: ignore[import-not-found]
    NoTranscriptFound,
    TranscriptsDisabled,
    YouTubeTranscriptApi,
)

from app.core.config import settings
from app.services.caption_tracks import locate_caption_tracks, select_caption_track
from app.services.timed_text import extract_text, normalise_whitespace

logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
TIMEDTEXT_GUESSES = (
    "https://www.youtube.com/api/timedtext?lang=en&v={video_id}",
    "https://www.youtube.com/api/timedtext?lang=en-US&v={video_id}",
    # auto-generated captions
    "https://www.youtube.com/api/timedtext?lang=en&v={video_id}&kind=asr",
)


class StrategyUnavailable(RuntimeError):
    """Raised when a strategy cannot run in the current configuration."""


class EmptyTranscriptError(RuntimeError):
    """Raised when a fetch succeeded but produced no caption text."""


_rate_lock = asyncio.Lock()
_last_fetch_monotonic = 0.0


async def _throttle_requests() -> None:
    """Ensure a minimum delay between outbound YouTube requests."""

    global _last_fetch_monotonic

    min_interval = max(settings.youtube_min_interval_ms, 0) / 1000.0
    if min_interval <= 0:
        return

    async with _rate_lock:
        now = time.monotonic()
        sleep_for = (_last_fetch_monotonic + min_interval) - now
        if sleep_for > 0:
            await asyncio.sleep(sleep_for)
            now = time.monotonic()
        _last_fetch_monotonic = now


def proxied(url: str) -> str:
    """Wrap ``url`` in the configured CORS proxy."""

    return settings.cors_proxy_url + quote(url, safe="")


async def _get_text(client: httpx.AsyncClient, url: str) -> str:
    await _throttle_requests()
    response = await client.get(url)
    response.raise_for_status()
    return response.text


async def fetch_with_library(video_id: str) -> str:
    """Fetch captions through ``youtube_transcript_api``."""

    loop = asyncio.get_running_loop()
    language = settings.preferred_caption_language

    def _blocking_fetch() -> str:
        fetched = YouTubeTranscriptApi().fetch(video_id, languages=[language])
        parts = [snippet.text.strip() for snippet in fetched.snippets if snippet.text and snippet.text.strip()]
        if not parts:
            raise EmptyTranscriptError("Transcript returned no segments")
        return normalise_whitespace(" ".join(parts))

    await _throttle_requests()
    return await loop.run_in_executor(None, _blocking_fetch)


async def scrape_watch_page(client: httpx.AsyncClient, video_id: str, *, via_proxy: bool = True) -> str:
    """Read caption tracks from the watch page and download the preferred one."""

    page_url = WATCH_URL.format(video_id=video_id)
    html = await _get_text(client, proxied(page_url) if via_proxy else page_url)

    tracks = locate_caption_tracks(html)
    track = select_caption_track(tracks, settings.preferred_caption_language)
    logger.debug(
        "Selected caption track",
        extra={"video_id": video_id, "language": track.language_code, "kind": track.kind},
    )

    xml = await _get_text(client, proxied(track.base_url) if via_proxy else track.base_url)
    text = extract_text(xml)
    if not text:
        raise EmptyTranscriptError("Caption track contained no text")
    return text


async def guess_timedtext(client: httpx.AsyncClient, video_id: str) -> str:
    """Try well-known timed-text URLs and keep the first plausible response."""

    min_length = settings.timedtext_min_length
    xml = ""

    for template in TIMEDTEXT_GUESSES:
        url = template.format(video_id=video_id)
        try:
            await _throttle_requests()
            response = await client.get(proxied(url))
        except httpx.HTTPError as exc:
            logger.info("Timed-text guess failed", extra={"video_id": video_id, "url": url, "error": str(exc)})
            continue

        if not response.is_success:
            continue

        xml = response.text
        if len(xml) >= min_length:
            break

    if len(xml) < min_length:
        raise EmptyTranscriptError("No transcript found with direct timed-text URLs")

    text = extract_text(xml)
    if not text:
        raise EmptyTranscriptError("Timed-text response contained no captions")
    return text


async def fetch_from_backend(client: httpx.AsyncClient, video_id: str) -> str:
    """Delegate to a deployed transcript backend (``GET /api/transcript``)."""

    base_url = settings.transcript_backend_url
    if not base_url:
        raise StrategyUnavailable("No transcript backend configured (APP_TRANSCRIPT_BACKEND_URL)")

    response = await client.get(f"{base_url.rstrip('/')}/api/transcript", params={"videoId": video_id})
    try:
        payload = response.json()
    except ValueError:
        payload = {}

    if not response.is_success:
        message = payload.get("error") if isinstance(payload, dict) else None
        raise httpx.HTTPStatusError(
            message or f"Transcript backend returned {response.status_code}",
            request=response.request,
            response=response,
        )

    transcript = payload.get("transcript") if isinstance(payload, dict) else None
    if not transcript:
        raise EmptyTranscriptError("Transcript backend returned no transcript")
    return str(transcript)


__all__ = [
    "EmptyTranscriptError",
    "NoTranscriptFound",
    "StrategyUnavailable",
    "TIMEDTEXT_GUESSES",
    "TranscriptsDisabled",
    "fetch_from_backend",
    "fetch_with_library",
    "guess_timedtext",
    "proxied",
    "scrape_watch_page",
]
