"""
Storage boundary for dispatch operations.

Every dispatch operation follows the same shape: lock the load row, lock the
candidate resource row, validate, then write all changed fields with a single
commit. The helpers here implement the lock and commit halves; the `version`
column on Load turns a lost race into StorageConflictError.
"""

import logging
from typing import Dict, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from freight_dispatch.app.core.exceptions import ResourceNotFoundError, StorageConflictError
from freight_dispatch.app.models.load import Load

logger = logging.getLogger(__name__)

M = TypeVar("M")


async def lock_load(db: AsyncSession, load_id: int) -> Load:
    """
    Load the row fresh from the database and hold a row lock on it.

    Raises:
        ResourceNotFoundError: unknown load id
    """
    result = await db.execute(
        select(Load)
        .where(Load.id == load_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    load = result.scalar_one_or_none()
    if load is None:
        raise ResourceNotFoundError("Load", load_id)
    return load


async def lock_row(db: AsyncSession, model: Type[M], row_id: int, resource: str) -> M:
    """Fetch and lock a driver/vehicle/carrier row, or raise NotFound."""
    result = await db.execute(
        select(model)
        .where(model.id == row_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise ResourceNotFoundError(resource, row_id)
    return row


async def commit_changes(db: AsyncSession, load: Load, changes: Dict[str, object]) -> Load:
    """
    Apply `changes` to the load and commit them as one write.

    Raises:
        StorageConflictError: the row changed since it was read
    """
    for field, value in changes.items():
        setattr(load, field, value)

    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        logger.warning("Concurrent write detected on load %s", load.id)
        raise StorageConflictError(load.id)

    await db.refresh(load)
    return load


def effective_changes(load: Load, changes: Dict[str, object]) -> Dict[str, object]:
    """Drop entries that would not change the stored value."""
    return {field: value for field, value in changes.items() if getattr(load, field) != value}
