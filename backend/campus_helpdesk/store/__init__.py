"""
Persistence store package.

WHY: Business code depends on PersistenceStore only; concrete backends are
selected by create_store_provider at process start.
"""

from campus_helpdesk.store.base import PersistenceStore, TicketQuery
from campus_helpdesk.store.memory import MemoryStore
from campus_helpdesk.store.provider import (
    MemoryStoreProvider,
    SQLStoreProvider,
    StoreProvider,
    create_store_provider,
)
from campus_helpdesk.store.sql import SQLAlchemyStore

__all__ = [
    "PersistenceStore",
    "TicketQuery",
    "MemoryStore",
    "SQLAlchemyStore",
    "StoreProvider",
    "SQLStoreProvider",
    "MemoryStoreProvider",
    "create_store_provider",
]
