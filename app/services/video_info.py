"""Video title/author/thumbnail lookup via noembed."""

from __future__ import annotations

import httpx
from pydantic import BaseModel

from app.core.config import settings
from app.services.transcript_strategies import WATCH_URL


class VideoInfoError(RuntimeError):
    """Raised when video metadata cannot be fetched."""


class VideoInfo(BaseModel):
    title: str = ""
    author_name: str = ""
    thumbnail_url: str = ""


async def fetch_video_info(client: httpx.AsyncClient, video_id: str) -> VideoInfo:
    """Fetch oEmbed metadata for ``video_id``."""

    try:
        response = await client.get(settings.noembed_url, params={"url": WATCH_URL.format(video_id=video_id)})
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise VideoInfoError("Failed to fetch video info") from exc

    try:
        payload = response.json()
    except ValueError as exc:  # pragma: no cover - defensive for invalid JSON
        raise VideoInfoError("Invalid response from noembed") from exc

    if not isinstance(payload, dict):
        raise VideoInfoError("Invalid response from noembed")

    return VideoInfo(
        title=payload.get("title") or "",
        author_name=payload.get("author_name") or "",
        thumbnail_url=payload.get("thumbnail_url") or "",
    )
