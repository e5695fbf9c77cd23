"""
Test fixtures: one in-memory SQLite database shared by the app and the tests.

Every test gets a fresh schema. Row builders live in `helpers.py`; import them
from there, never from this module.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from freight_dispatch.app.main import app
from freight_dispatch.app.db.session import get_db, Base
from freight_dispatch.app.core.jwt import create_access_token
from freight_dispatch.app.models.enums import UserRole
from freight_dispatch.tests.helpers import Seed

# StaticPool keeps a single connection, so every session sees the same memory database
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(test_engine.sync_engine, "connect")
def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSession = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


async def _test_db():
    async with TestSession() as session:
        yield session


@pytest.fixture(scope="session", autouse=True)
def use_test_database():
    app.dependency_overrides[get_db] = _test_db
    yield
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
async def fresh_schema():
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session():
    """Session the tests use to seed and re-read rows."""
    async with TestSession() as session:
        yield session


@pytest.fixture
def session_factory():
    """Extra sessions, e.g. to race two writers on one load."""
    return TestSession


@pytest.fixture
async def seed(db_session):
    return Seed(db_session)


def bearer(username: str, user_id: int, role: UserRole) -> dict:
    return {"Authorization": f"Bearer {create_access_token(username, user_id, role)}"}


@pytest.fixture
def dispatcher_headers():
    return bearer("dispatcher1", 7, UserRole.DISPATCHER)


@pytest.fixture
def accountant_headers():
    return bearer("accountant1", 9, UserRole.ACCOUNTANT)
