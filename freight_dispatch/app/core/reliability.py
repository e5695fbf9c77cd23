"""
Reliability utilities.

Bounded retry for operations that can lose a concurrency race on the loads
table: an optimistic version check that failed, or a deadlock/serialization
failure reported by PostgreSQL while rows were locked.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.core.config import settings
from freight_dispatch.app.core.exceptions import AppException, StorageConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# deadlock_detected, serialization_failure
TRANSIENT_SQLSTATES = frozenset({"40P01", "40001"})


def sqlstate_of(exc: DBAPIError) -> Optional[str]:
    """SQLSTATE of the driver error (asyncpg exposes `sqlstate`, psycopg2 `pgcode`)."""
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_lock_contention(exc: DBAPIError) -> bool:
    return sqlstate_of(exc) in TRANSIENT_SQLSTATES


class StorageRetry:
    """
    Re-runs a whole dispatch operation when the storage layer reports a
    concurrent write.

    The operation must be restartable from its first step: it re-reads the
    load and re-validates everything on every attempt. The session is rolled
    back between attempts so no partial state survives a failed attempt.
    """

    def __init__(self, max_attempts: int = None, backoff_seconds: float = 0.05):
        self.max_attempts = max_attempts or settings.storage_conflict_max_retries
        self.backoff_seconds = backoff_seconds

    async def run(
        self,
        db: AsyncSession,
        operation: Callable[[], Awaitable[T]],
        load_id: Optional[Any] = None,
    ) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except StorageConflictError:
                await db.rollback()
                if attempt >= self.max_attempts:
                    logger.warning("Storage conflict on load %s persisted after %d attempts", load_id, attempt)
                    raise
            except DBAPIError as exc:
                await db.rollback()
                if not is_lock_contention(exc):
                    raise
                if attempt >= self.max_attempts:
                    logger.warning(
                        "Lock contention (SQLSTATE %s) on load %s persisted after %d attempts",
                        sqlstate_of(exc), load_id, attempt,
                    )
                    raise StorageConflictError(load_id) from exc
            except AppException:
                await db.rollback()
                raise

            logger.info("Concurrent write on load %s, retrying (attempt %d)", load_id, attempt)
            await asyncio.sleep(self.backoff_seconds * attempt)


async def run_with_storage_retry(
    db: AsyncSession,
    operation: Callable[[], Awaitable[T]],
    load_id: Optional[Any] = None,
) -> T:
    """Run `operation` with the configured retry limit."""
    return await StorageRetry().run(db, operation, load_id)
