"""
Database engine and sessions.

PostgreSQL (asyncpg) in production. SQLite URLs are accepted for local runs
and get no pool sizing, since aiosqlite does not use a queue pool.
"""

from typing import Any, Dict

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

from freight_dispatch.app.core.config import settings


def _engine_options(database_url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.db_echo}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

# Loads are returned to the API after commit, so attributes must survive it
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency yielding one session per request.

    Anything not committed when the request ends is rolled back on close, so
    a failed dispatch request never leaves partial writes behind.
    """
    async with AsyncSessionLocal() as session:
        yield session
