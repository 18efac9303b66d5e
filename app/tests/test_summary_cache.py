"""Tests for the summary cache and its backing stores."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.db.models import Base
from app.services.storage import MemoryStore, SqlStore
from app.services.summary_cache import (
    API_KEY_STORAGE_KEY,
    SUMMARIES_STORAGE_KEY,
    ApiKeyStore,
    SummaryCache,
)
from app.services.summary_lengths import SummaryLength

VIDEO_ID = "dQw4w9WgXcQ"


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def _memory_db_url() -> str:
    return f"sqlite+aiosqlite:///file:summary_cache_{uuid.uuid4().hex}?mode=memory&cache=shared"


@pytest_asyncio.fixture
async def sql_store() -> SqlStore:
    engine = create_async_engine(_memory_db_url(), future=True, connect_args={"uri": True})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield SqlStore(async_sessionmaker(engine, expire_on_commit=False))

    await engine.dispose()


@pytest.mark.asyncio
async def test_round_trip_is_scoped_by_length() -> None:
    cache = SummaryCache(MemoryStore())

    await cache.set(VIDEO_ID, SummaryLength.SHORT, "short summary")

    assert await cache.get(VIDEO_ID, SummaryLength.SHORT) == "short summary"
    assert await cache.get(VIDEO_ID, SummaryLength.MEDIUM) is None
    assert await cache.get("otherVideo1", SummaryLength.SHORT) is None


@pytest.mark.asyncio
async def test_set_overwrites_existing_entry() -> None:
    cache = SummaryCache(MemoryStore())

    await cache.set(VIDEO_ID, SummaryLength.SHORT, "first")
    await cache.set(VIDEO_ID, SummaryLength.SHORT, "second")

    assert await cache.get(VIDEO_ID, SummaryLength.SHORT) == "second"


@pytest.mark.asyncio
async def test_expired_entry_is_a_miss_but_stays_in_storage() -> None:
    store = MemoryStore()
    clock = _Clock()
    cache = SummaryCache(store, clock=clock)

    await cache.set(VIDEO_ID, SummaryLength.MEDIUM, "stale")
    clock.now += timedelta(days=7, seconds=1)

    assert await cache.get(VIDEO_ID, SummaryLength.MEDIUM) is None
    assert await cache.list_available_lengths(VIDEO_ID) == []

    raw = json.loads(store.items[SUMMARIES_STORAGE_KEY])
    assert raw[VIDEO_ID]["medium"]["summary"] == "stale"


@pytest.mark.asyncio
async def test_entry_within_ttl_is_a_hit() -> None:
    clock = _Clock()
    cache = SummaryCache(MemoryStore(), clock=clock)

    await cache.set(VIDEO_ID, SummaryLength.LONG, "fresh")
    clock.now += timedelta(days=6, hours=23)

    assert await cache.get(VIDEO_ID, SummaryLength.LONG) == "fresh"


@pytest.mark.asyncio
async def test_list_available_lengths_in_length_order() -> None:
    cache = SummaryCache(MemoryStore())

    await cache.set(VIDEO_ID, SummaryLength.LONG, "l")
    await cache.set(VIDEO_ID, SummaryLength.SHORT, "s")

    assert await cache.list_available_lengths(VIDEO_ID) == [SummaryLength.SHORT, SummaryLength.LONG]
    assert await cache.has_cached_summaries(VIDEO_ID) is True
    assert await cache.has_cached_summaries("otherVideo1") is False


@pytest.mark.asyncio
async def test_corrupt_blob_is_treated_as_empty() -> None:
    store = MemoryStore({SUMMARIES_STORAGE_KEY: "{not json"})
    cache = SummaryCache(store)

    assert await cache.get(VIDEO_ID, SummaryLength.SHORT) is None

    await cache.set(VIDEO_ID, SummaryLength.SHORT, "recovered")
    assert await cache.get(VIDEO_ID, SummaryLength.SHORT) == "recovered"


@pytest.mark.asyncio
async def test_api_key_store() -> None:
    store = MemoryStore()
    keys = ApiKeyStore(store)

    assert await keys.get() is None
    await keys.save("  sk-or-123  ")
    assert await keys.get() == "sk-or-123"
    assert store.items[API_KEY_STORAGE_KEY] == "sk-or-123"
    await keys.clear()
    assert await keys.get() is None


@pytest.mark.asyncio
async def test_sql_store_backs_the_cache(sql_store: SqlStore) -> None:
    cache = SummaryCache(sql_store)

    await cache.set(VIDEO_ID, SummaryLength.SHORT, "persisted")
    await cache.set(VIDEO_ID, SummaryLength.MEDIUM, "persisted too")

    assert await cache.get(VIDEO_ID, SummaryLength.SHORT) == "persisted"
    assert await cache.list_available_lengths(VIDEO_ID) == [SummaryLength.SHORT, SummaryLength.MEDIUM]

    await sql_store.remove_item(SUMMARIES_STORAGE_KEY)
    assert await sql_store.get_item(SUMMARIES_STORAGE_KEY) is None
