"""Key/value stores backing the summary cache and the user's API key."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import StorageItem


class KeyValueStore(Protocol):
    async def get_item(self, key: str) -> str | None: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store, used by tests and the ``--memory`` CLI flag."""

    def __init__(self, items: dict[str, str] | None = None) -> None:
        self.items: dict[str, str] = dict(items or {})

    async def get_item(self, key: str) -> str | None:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    async def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class SqlStore:
    """Store persisted in the ``storage_items`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_item(self, key: str) -> str | None:
        async with self._session_factory() as session:
            return await session.scalar(select(StorageItem.value).where(StorageItem.key == key))

    async def set_item(self, key: str, value: str) -> None:
        async with self._session_factory() as session:
            item = await session.get(StorageItem, key)
            if item is None:
                session.add(StorageItem(key=key, value=value))
            else:
                item.value = value
            await session.commit()

    async def remove_item(self, key: str) -> None:
        async with self._session_factory() as session:
            item = await session.get(StorageItem, key)
            if item is None:
                return
            await session.delete(item)
            await session.commit()
