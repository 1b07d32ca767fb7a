"""
Database engine and session management.

WHY: Async database sessions are required for FastAPI's async/await pattern.
The engine is built from settings when the application starts, so tests and
alternative deployments can point it at a different database URL.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from campus_helpdesk.models import Base


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create the async engine for a database URL.

    WHY: pool_pre_ping recycles stale PostgreSQL connections. SQLite has no
    connection pool sizing, and an in-memory SQLite database only exists
    for the lifetime of a single connection, hence StaticPool.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
        return create_async_engine(database_url, echo=echo, **kwargs)

    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Create the session factory.

    WHY: expire_on_commit=False keeps attributes readable after the store
    commits, without lazy-loading in async context.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_tables(engine: AsyncEngine, drop_first: bool = False) -> None:
    """Create every table of the ORM metadata (development and tests)."""
    async with engine.begin() as conn:
        if drop_first:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
