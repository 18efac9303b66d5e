"""Summary cache and API key persistence on top of a key/value store.

Summaries live in a single JSON blob shaped like
``{video_id: {length: {"summary": ..., "timestamp": <epoch ms>, "length": ...}}}``.
Entries older than the TTL are ignored on read but never purged.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from app.core.config import settings
from app.services.storage import KeyValueStore
from app.services.summary_lengths import SummaryLength

logger = logging.getLogger(__name__)

API_KEY_STORAGE_KEY = "snip-openrouter-api-key"
SUMMARIES_STORAGE_KEY = "snip-summaries"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SummaryCache:
    """Per-video, per-length summary cache with lazy expiry."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        ttl: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._ttl = ttl if ttl is not None else timedelta(days=settings.summary_cache_ttl_days)
        self._clock = clock

    async def _load(self) -> dict[str, Any]:
        raw = await self._store.get_item(SUMMARIES_STORAGE_KEY)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.exception("Error parsing cached summaries")
            return {}
        return data if isinstance(data, dict) else {}

    def _is_fresh(self, entry: Any) -> bool:
        if not isinstance(entry, dict) or not isinstance(entry.get("summary"), str):
            return False
        try:
            stamped = datetime.fromtimestamp(float(entry["timestamp"]) / 1000, tz=timezone.utc)
        except (KeyError, TypeError, ValueError):
            return False
        return self._clock() - stamped < self._ttl

    async def get(self, video_id: str, length: SummaryLength) -> str | None:
        """Return the cached summary, or None when absent or expired."""

        video_entries = (await self._load()).get(video_id)
        entry = video_entries.get(length.value) if isinstance(video_entries, dict) else None
        if not self._is_fresh(entry):
            return None
        return entry["summary"]

    async def set(self, video_id: str, length: SummaryLength, summary: str) -> None:
        """Store ``summary`` for ``(video_id, length)``, replacing any prior entry."""

        summaries = await self._load()
        video_entries = summaries.get(video_id)
        if not isinstance(video_entries, dict):
            video_entries = summaries[video_id] = {}

        video_entries[length.value] = {
            "summary": summary,
            "timestamp": int(self._clock().timestamp() * 1000),
            "length": length.value,
        }
        await self._store.set_item(SUMMARIES_STORAGE_KEY, json.dumps(summaries))

    async def list_available_lengths(self, video_id: str) -> list[SummaryLength]:
        """Lengths with an unexpired summary for ``video_id``, shortest first."""

        video_entries = (await self._load()).get(video_id)
        if not isinstance(video_entries, dict):
            return []
        return [length for length in SummaryLength if self._is_fresh(video_entries.get(length.value))]

    async def has_cached_summaries(self, video_id: str) -> bool:
        return bool(await self.list_available_lengths(video_id))


class ApiKeyStore:
    """The user's own OpenRouter key, overriding the configured default."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def get(self) -> str | None:
        return await self._store.get_item(API_KEY_STORAGE_KEY) or None

    async def save(self, api_key: str) -> None:
        await self._store.set_item(API_KEY_STORAGE_KEY, api_key.strip())

    async def clear(self) -> None:
        await self._store.remove_item(API_KEY_STORAGE_KEY)
