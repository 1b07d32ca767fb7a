"""
Store providers.

WHAT: Objects that own a backend's process-wide resources and hand out one
PersistenceStore per request.

WHY: The backend is chosen once, at application start, from STORE_BACKEND.
The provider lives on ``app.state``; request handlers receive a store
through dependency injection and never see which backend is behind it.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator

from campus_helpdesk.core.config import Settings
from campus_helpdesk.db.session import build_engine, build_session_factory, create_tables
from campus_helpdesk.store.base import PersistenceStore
from campus_helpdesk.store.demo import seed_demo_data
from campus_helpdesk.store.memory import MemoryStore
from campus_helpdesk.store.sql import SQLAlchemyStore

logger = logging.getLogger(__name__)


class StoreProvider(ABC):
    """Lifecycle and per-request access for one storage backend."""

    async def startup(self) -> None:
        """Prepare the backend (create tables, seed data)."""

    async def shutdown(self) -> None:
        """Release backend resources."""

    @abstractmethod
    def store(self) -> AsyncContextManager[PersistenceStore]:
        """Async context manager yielding the store for one request."""


class SQLStoreProvider(StoreProvider):
    """Relational backend: one AsyncSession per request."""

    def __init__(self, database_url: str, echo: bool = False, auto_create_tables: bool = True):
        self.engine = build_engine(database_url, echo=echo)
        self.session_factory = build_session_factory(self.engine)
        self.auto_create_tables = auto_create_tables

    async def startup(self) -> None:
        if self.auto_create_tables:
            await create_tables(self.engine)
            logger.info("Database tables ensured")

    async def shutdown(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def store(self) -> AsyncIterator[PersistenceStore]:
        async with self.session_factory() as session:
            yield SQLAlchemyStore(session)


class MemoryStoreProvider(StoreProvider):
    """In-memory backend: one MemoryStore shared by every request."""

    def __init__(self, seed_demo: bool = False):
        self.memory_store = MemoryStore()
        self.seed_demo = seed_demo

    async def startup(self) -> None:
        if self.seed_demo:
            await seed_demo_data(self.memory_store)

    @asynccontextmanager
    async def store(self) -> AsyncIterator[PersistenceStore]:
        yield self.memory_store


def create_store_provider(settings: Settings) -> StoreProvider:
    """Build the provider selected by STORE_BACKEND."""
    if settings.STORE_BACKEND == "memory":
        logger.info("Using in-memory store")
        return MemoryStoreProvider(seed_demo=settings.SEED_DEMO_DATA)

    logger.info("Using SQL store")
    return SQLStoreProvider(
        settings.async_database_url,
        echo=settings.DEBUG,
        auto_create_tables=settings.AUTO_CREATE_TABLES,
    )
