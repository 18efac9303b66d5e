"""Utilities for turning pasted YouTube URLs into video identifiers."""

from __future__ import annotations

import re

VIDEO_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Watch URL: youtube.com/watch?v=<id>
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/watch\?v=([^&]+)"),
    # Short URL: youtu.be/<id>
    re.compile(r"(?:https?://)?(?:www\.)?youtu\.be/([^?]+)"),
    # Embed URL: youtube.com/embed/<id>
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/embed/([^?]+)"),
)


def extract_video_id(url: str) -> str | None:
    """Return the video id embedded in ``url`` or ``None`` for unrecognised input."""

    if not isinstance(url, str) or not url:
        return None

    for pattern in VIDEO_URL_PATTERNS:
        match = pattern.search(url)
        if match and match.group(1):
            return match.group(1)

    return None
