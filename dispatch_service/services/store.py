"""Persistent store adapter: whole collections keyed by name.

``load`` returns ``[]`` for a key that was never written. ``save`` replaces
the collection and raises ``PersistenceFailure`` when the write fails.
"""

from __future__ import annotations

import abc
import copy
import enum
from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from dispatch_service.core.database import Base
from dispatch_service.core.errors import PersistenceFailure
from dispatch_service.models.collection import CollectionRecord

logger = structlog.get_logger()

Document = Any


class Collection(str, enum.Enum):
    CUSTOMERS = "customers"
    DRIVERS = "drivers"
    ORDERS = "orders"
    QUEUE = "queue"
    NOTIFICATIONS = "notifications"
    SETTINGS = "settings"
    LAST_BACKUP = "last_backup"


class CollectionStore(abc.ABC):
    """Single-writer key/value store of JSON collections."""

    @abc.abstractmethod
    async def load(self, key: Collection) -> Document:
        ...

    @abc.abstractmethod
    async def save(self, key: Collection, items: Document) -> None:
        ...

    async def save_many(self, collections: Mapping[Collection, Document]) -> None:
        """Save several collections; sequential unless a backend overrides it."""
        for key, items in collections.items():
            await self.save(key, items)

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class MemoryCollectionStore(CollectionStore):
    """Process-local store used in development and tests."""

    def __init__(self) -> None:
        self._data: dict[str, Document] = {}

    async def load(self, key: Collection) -> Document:
        return copy.deepcopy(self._data.get(Collection(key).value, []))

    async def save(self, key: Collection, items: Document) -> None:
        self._data[Collection(key).value] = copy.deepcopy(items)


class SqlCollectionStore(CollectionStore):
    """Collections as JSON rows in the ``collections`` table."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory

    async def create_schema(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def load(self, key: Collection) -> Document:
        key = Collection(key)
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(CollectionRecord.payload).where(
                        CollectionRecord.key == key.value
                    )
                )
                payload = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            logger.error("collection_load_failed", key=key.value, error=str(exc))
            raise PersistenceFailure(f"Could not load {key.value}") from exc
        return payload if payload is not None else []

    async def save(self, key: Collection, items: Document) -> None:
        await self.save_many({key: items})

    async def save_many(self, collections: Mapping[Collection, Document]) -> None:
        """Write every collection in one database transaction."""
        keys = [Collection(key).value for key in collections]
        try:
            async with self._session_factory() as session, session.begin():
                for key, items in collections.items():
                    await self._upsert(session, Collection(key), items)
        except SQLAlchemyError as exc:
            logger.error("collection_save_failed", keys=keys, error=str(exc))
            raise PersistenceFailure(f"Could not save {', '.join(keys)}") from exc

    async def ping(self) -> bool:
        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def close(self) -> None:
        await self._engine.dispose()

    @staticmethod
    async def _upsert(session: AsyncSession, key: Collection, items: Document) -> None:
        record = await session.get(CollectionRecord, key.value)
        if record is None:
            session.add(CollectionRecord(key=key.value, payload=items, version=1))
        else:
            record.payload = items
            record.version = record.version + 1
