"""
Conflict detector and affinity resolver tests.
"""

import pytest

from freight_dispatch.app.core.exceptions import DispatchValidationError
from freight_dispatch.app.domain.dispatch.affinity import AffinityResolver
from freight_dispatch.app.domain.dispatch.availability import ResourceKind
from freight_dispatch.app.domain.dispatch.conflicts import ConflictDetector
from freight_dispatch.app.models.fleet_enums import DriverStatus, VehicleStatus
from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.tests.helpers import at


async def test_overlapping_load_is_reported(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    busy = await seed.load(customer, at(10, 8), at(12, 17), status=LoadStatus.SCHEDULED, driver_id=driver.id)

    conflicts = await ConflictDetector.find_conflicts(db_session, ResourceKind.DRIVER, driver.id, at(11), at(13))

    assert [c.id for c in conflicts] == [busy.id]
    conflict = conflicts[0].to_dict()
    assert conflict["matched_as"] == ["driver_id"]
    assert conflict["pickup"] == "Dallas, TX"
    assert conflict["delivery"] == "Houston, TX"
    assert conflict["status"] == "SCHEDULED"


async def test_touching_ranges_do_not_conflict(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    await seed.load(customer, at(10, 8), at(12, 17), driver_id=driver.id)

    conflicts = await ConflictDetector.find_conflicts(
        db_session, ResourceKind.DRIVER, driver.id, at(12, 17), at(14)
    )
    assert conflicts == []


async def test_team_slot_counts_as_driver(db_session, seed):
    customer = await seed.customer()
    lead = await seed.driver("Lead Driver")
    partner = await seed.driver("Team Partner")
    await seed.load(customer, at(10), at(12), driver_id=lead.id, driver2_id=partner.id)

    conflicts = await ConflictDetector.find_conflicts(db_session, ResourceKind.DRIVER, partner.id, at(9), at(11))
    assert conflicts[0].matched_as == ["driver2_id"]


@pytest.mark.parametrize("status", [LoadStatus.CANCELLED, LoadStatus.TONU])
async def test_cancelled_and_tonu_loads_release_resources(db_session, seed, status):
    customer = await seed.customer()
    driver = await seed.driver()
    await seed.load(customer, at(10), at(12), status=status, driver_id=driver.id)

    conflicts = await ConflictDetector.find_conflicts(db_session, ResourceKind.DRIVER, driver.id, at(10), at(12))
    assert conflicts == []


async def test_loads_without_schedule_are_skipped(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    await seed.load(customer, None, at(12), driver_id=driver.id)

    conflicts = await ConflictDetector.find_conflicts(db_session, ResourceKind.DRIVER, driver.id, at(1), at(30))
    assert conflicts == []


async def test_incomplete_candidate_range_never_conflicts(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    await seed.load(customer, at(10), at(12), driver_id=driver.id)

    assert await ConflictDetector.find_conflicts(db_session, ResourceKind.DRIVER, driver.id, at(10), None) == []


async def test_malformed_range_rejected(db_session):
    with pytest.raises(DispatchValidationError):
        await ConflictDetector.find_conflicts(db_session, ResourceKind.DRIVER, 1, at(12), at(10))


async def test_excluded_load_is_ignored(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    own = await seed.load(customer, at(10), at(12), driver_id=driver.id)

    conflicts = await ConflictDetector.find_conflicts(
        db_session, ResourceKind.DRIVER, driver.id, at(10), at(12), exclude_load_id=own.id
    )
    assert conflicts == []


async def test_truck_conflicts(db_session, seed):
    customer = await seed.customer()
    truck = await seed.tractor()
    busy = await seed.load(customer, at(10), at(12), truck_id=truck.id)

    conflicts = await ConflictDetector.find_conflicts(db_session, ResourceKind.TRUCK, truck.id, at(11), at(15))
    assert [c.id for c in conflicts] == [busy.id]
    assert conflicts[0].matched_as == ["truck_id"]


async def test_driver_stats(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    await seed.load(customer, at(1), at(2), status=LoadStatus.COMPLETED, driver_id=driver.id,
                    loaded_miles=400, reference_number="A")
    await seed.load(customer, at(3), at(4), status=LoadStatus.INVOICED, driver_id=driver.id,
                    loaded_miles=250, invoice_id=1, reference_number="B")
    await seed.load(customer, at(5), at(6), status=LoadStatus.IN_TRANSIT, driver_id=driver.id,
                    loaded_miles=999, reference_number="C")

    stats = await ConflictDetector.driver_stats(db_session, driver.id)
    assert stats == {"active_loads": 1, "completed_loads": 2, "total_miles": 650}


async def test_home_truck_prefers_primary_seat(db_session, seed):
    driver = await seed.driver()
    other = await seed.driver("Other Driver")
    await seed.tractor("T-TEAM", driver=other, driver2=driver)
    primary = await seed.tractor("T-HOME", driver=driver)

    truck = await AffinityResolver.home_truck(db_session, driver.id)
    assert truck.id == primary.id


async def test_resolve_for_driver(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    partner = await seed.driver("Team Partner")
    truck = await seed.tractor(driver=driver, driver2=partner)
    trailer = await seed.trailer()
    await seed.load(customer, at(1), at(2), status=LoadStatus.COMPLETED,
                    driver_id=driver.id, trailer_id=trailer.id)

    affinity = await AffinityResolver.resolve_for_driver(db_session, driver.id)

    assert affinity.truck.id == truck.id
    assert affinity.suggested_trailer.id == trailer.id
    assert affinity.team_driver.id == partner.id


async def test_unavailable_partner_and_inactive_trailer_not_suggested(db_session, seed):
    customer = await seed.customer()
    driver = await seed.driver()
    partner = await seed.driver("Sidelined", status=DriverStatus.OUT_OF_SERVICE)
    await seed.tractor(driver=driver, driver2=partner)
    trailer = await seed.trailer(status=VehicleStatus.INACTIVE)
    await seed.load(customer, at(1), at(2), driver_id=driver.id, trailer_id=trailer.id)

    affinity = await AffinityResolver.resolve_for_driver(db_session, driver.id)

    assert affinity.truck is not None
    assert affinity.team_driver is None
    assert affinity.suggested_trailer is None
