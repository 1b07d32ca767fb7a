"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import os

# Settings are read at import time, so the environment is prepared first.
os.environ.setdefault("JWT_SECRET", "test-secret-key-not-for-production")
os.environ["STORE_BACKEND"] = "memory"
os.environ["SEED_DEMO_DATA"] = "false"

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from campus_helpdesk.core.deps import get_store
from campus_helpdesk.db.session import build_engine, build_session_factory, create_tables
from campus_helpdesk.main import app
from campus_helpdesk.schemas.user import UserResponse
from campus_helpdesk.services.ticket_repository import TicketRepository
from campus_helpdesk.services.ticket_service import TicketService
from campus_helpdesk.store.base import PersistenceStore
from campus_helpdesk.store.memory import MemoryStore
from campus_helpdesk.store.sql import SQLAlchemyStore
from tests.factories import UserFactory, auth_headers


# Test database URL
# WHY: In-memory SQLite needs no external database and starts empty
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a test database engine with all tables.

    WHY: Function scope gives each test a fresh database.
    """
    engine = build_engine(TEST_ASYNC_DATABASE_URL)
    await create_tables(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with build_session_factory(db_engine)() as session:
        yield session


@pytest_asyncio.fixture
async def sql_store(db_session: AsyncSession) -> SQLAlchemyStore:
    return SQLAlchemyStore(db_session)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request) -> AsyncGenerator[PersistenceStore, None]:
    """
    Every store backend in turn.

    WHY: Repository, service and API behavior must not depend on the
    backend, so tests using this fixture run once per backend.
    """
    if request.param == "memory":
        yield MemoryStore()
        return

    engine = build_engine(TEST_ASYNC_DATABASE_URL)
    await create_tables(engine)
    async with build_session_factory(engine)() as session:
        yield SQLAlchemyStore(session)
    await engine.dispose()


@pytest.fixture
def repository(store: PersistenceStore) -> TicketRepository:
    return TicketRepository(store)


@pytest.fixture
def service(repository: TicketRepository) -> TicketService:
    return TicketService(repository)


@pytest_asyncio.fixture
async def client(store: PersistenceStore) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client bound to the test store.

    WHY: AsyncClient allows testing FastAPI endpoints without running
    a real server, making tests faster and more reliable.
    """

    async def override_get_store():
        yield store

    app.dependency_overrides[get_store] = override_get_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def student(store: PersistenceStore) -> UserResponse:
    """A student user (the usual ticket submitter)."""
    return await UserFactory.create_student(store)


@pytest_asyncio.fixture
async def other_student(store: PersistenceStore) -> UserResponse:
    return await UserFactory.create_student(
        store, id="student2", email="other@university.edu", first_name="Other"
    )


@pytest_asyncio.fixture
async def admin(store: PersistenceStore) -> UserResponse:
    """An IT staff member."""
    return await UserFactory.create_admin(store)


@pytest.fixture
def student_headers(student: UserResponse) -> dict:
    return auth_headers(student)


@pytest.fixture
def other_student_headers(other_student: UserResponse) -> dict:
    return auth_headers(other_student)


@pytest.fixture
def admin_headers(admin: UserResponse) -> dict:
    return auth_headers(admin)
