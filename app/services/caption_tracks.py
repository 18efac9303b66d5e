"""Locate caption tracks inside a YouTube watch page.

The caption metadata lives in a JSON array embedded somewhere in the page's
inline scripts. There is no stable boundary around it, so the array is pulled
out with an ordered list of regular expressions. The upstream markup has been
seen with several quoting styles for the same key; new variants only need a
new entry in ``CAPTION_TRACK_PATTERNS``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

CAPTION_TRACK_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("double_quoted", re.compile(r'"captionTracks":(\[.*?\])', re.DOTALL)),
    ("bare_or_trailing_quote", re.compile(r"captionTracks'?:(\[.*?\])", re.DOTALL)),
    ("single_quoted", re.compile(r"'captionTracks':(\[.*?\])", re.DOTALL)),
)


class CaptionTrackError(ValueError):
    """Base error for caption track extraction."""


class NoCaptionTracksFound(CaptionTrackError):
    """Raised when the page carries no caption tracks."""


class CaptionParseError(CaptionTrackError):
    """Raised when caption track data is present but cannot be decoded."""


@dataclass(slots=True)
class CaptionTrack:
    """A caption track advertised by the watch page."""

    language_code: str
    base_url: str
    name: str | None = None
    kind: str | None = None


def _track_name(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        if raw.get("simpleText"):
            return str(raw["simpleText"])
        runs = raw.get("runs") or []
        text = "".join(str(run.get("text", "")) for run in runs if isinstance(run, dict))
        return text or None
    return None


_decoder = json.JSONDecoder()


def _decode_match(text: str, match: re.Match[str]) -> Any:
    """Decode the captured array, re-reading it balanced if the lazy match cut it short."""

    try:
        return json.loads(match.group(1))
    except ValueError:
        payload, _ = _decoder.raw_decode(text, match.start(1))
        return payload


def _parse_tracks(payload: Any) -> list[CaptionTrack]:
    if not isinstance(payload, list):
        raise CaptionParseError("Caption track data is not a list")

    tracks: list[CaptionTrack] = []
    for item in payload:
        if not isinstance(item, dict) or not item.get("baseUrl"):
            continue
        tracks.append(
            CaptionTrack(
                language_code=str(item.get("languageCode") or ""),
                base_url=str(item["baseUrl"]),
                name=_track_name(item.get("name")),
                kind=item.get("kind"),
            )
        )
    return tracks


def locate_caption_tracks(page_text: str) -> list[CaptionTrack]:
    """Extract caption tracks from raw watch-page HTML."""

    text = page_text or ""
    parse_error: ValueError | None = None

    for label, pattern in CAPTION_TRACK_PATTERNS:
        match = pattern.search(text)
        if not match or not match.group(1):
            continue

        try:
            payload = _decode_match(text, match)
        except ValueError as exc:
            logger.debug("Caption track match is not JSON", extra={"pattern": label})
            parse_error = exc
            continue

        logger.debug("Caption tracks matched", extra={"pattern": label})
        tracks = _parse_tracks(payload)
        if not tracks:
            raise NoCaptionTracksFound("No caption tracks found")
        return tracks

    if parse_error is not None:
        raise CaptionParseError("Caption track data is not valid JSON") from parse_error
    raise NoCaptionTracksFound("No caption tracks found")


def select_caption_track(tracks: list[CaptionTrack], language: str = "en") -> CaptionTrack:
    """Prefer a track in ``language``; otherwise fall back to the first one listed."""

    if not tracks:
        raise NoCaptionTracksFound("No suitable caption track found")

    for track in tracks:
        if track.language_code == language:
            return track
    return tracks[0]


__all__ = [
    "CAPTION_TRACK_PATTERNS",
    "CaptionParseError",
    "CaptionTrack",
    "CaptionTrackError",
    "NoCaptionTracksFound",
    "locate_caption_tracks",
    "select_caption_track",
]
