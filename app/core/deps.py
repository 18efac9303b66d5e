"""Shared FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx

from app.core.config import settings
from app.db.session import SessionLocal
from app.services.storage import KeyValueStore, SqlStore


def get_store() -> KeyValueStore:
    """Key/value store backing the summary cache and API key."""

    return SqlStore(SessionLocal)


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Yield an outbound HTTP client for the duration of a request."""

    async with httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True) as client:
        yield client
