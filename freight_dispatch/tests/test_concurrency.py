"""
Concurrency Tests.

Validates that concurrent writes to the same load are detected and that a
lost race re-runs the whole operation against fresh data.
"""

import pytest

from freight_dispatch.app.core.exceptions import StorageConflictError
from freight_dispatch.app.domain.dispatch import assignment as assignment_module
from freight_dispatch.app.domain.dispatch.assignment import AssignmentService
from freight_dispatch.app.domain.dispatch.persistence import commit_changes, lock_load
from freight_dispatch.app.models.load import Load
from freight_dispatch.tests.helpers import at, reload


async def test_stale_write_raises_storage_conflict(db_session, seed, session_factory):
    """A write computed from an old version of the row is refused."""
    customer = await seed.customer()
    load = await seed.load(customer, at(5), at(6))

    async with session_factory() as session_a, session_factory() as session_b:
        stale = await lock_load(session_a, load.id)

        fresh = await session_b.get(Load, load.id)
        fresh.commodity = "Paper rolls"
        await session_b.commit()

        with pytest.raises(StorageConflictError) as exc_info:
            await commit_changes(session_a, stale, {"commodity": "Steel coils"})

    assert exc_info.value.details == {"load_id": load.id, "retryable": True}
    stored = await reload(db_session, load)
    assert stored.commodity == "Paper rolls"
    assert stored.version == 2


async def test_lost_race_is_retried_from_scratch(db_session, seed, session_factory, mocker):
    """The assignment re-reads the load and succeeds on the second attempt."""
    customer = await seed.customer()
    driver = await seed.driver()
    load = await seed.load(customer, at(5), at(6))

    calls = []

    async def flaky_commit(db, target, changes):
        calls.append(dict(changes))
        if len(calls) == 1:
            raise StorageConflictError(target.id)
        return await commit_changes(db, target, changes)

    mocker.patch.object(assignment_module, "commit_changes", side_effect=flaky_commit)

    async with session_factory() as session:
        result = await AssignmentService.assign_driver_first(session, load.id, driver.id)

    assert len(calls) == 2
    assert result.load.driver_id == driver.id
    assert (await reload(db_session, load)).driver_id == driver.id


async def test_retries_are_bounded(db_session, seed, session_factory, mocker):
    customer = await seed.customer()
    carrier = await seed.carrier()
    load = await seed.load(customer, at(5), at(6))

    always_stale = mocker.patch.object(
        assignment_module, "commit_changes", side_effect=StorageConflictError(load.id)
    )

    async with session_factory() as session:
        with pytest.raises(StorageConflictError):
            await AssignmentService.assign_carrier(session, load.id, carrier.id)

    assert always_stale.call_count == 3
    assert (await reload(db_session, load)).carrier_id is None
