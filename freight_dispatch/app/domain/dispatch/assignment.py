"""
Assignment Transaction (Domain Logic).

Assigns drivers, equipment and carriers to a load. Each operation:

1. Locks the load row (and the candidate resource row).
2. Validates the candidate: status, carrier pool, team pairing.
3. Checks availability when a driver field changes.
4. Merges auto-fill suggestions into empty fields.
5. Commits every changed field in one write.

A failure at any step leaves the stored load exactly as it was. The whole
operation is re-run on StorageConflictError, up to the configured retry limit.
"""

import logging
from dataclasses import dataclass, field as dc_field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.core.config import settings
from freight_dispatch.app.core.exceptions import (
    AssignmentConflictError,
    DispatchValidationError,
)
from freight_dispatch.app.core.reliability import run_with_storage_retry
from freight_dispatch.app.domain.dispatch.affinity import AffinityResolver
from freight_dispatch.app.domain.dispatch.availability import DateRange, ResourceKind
from freight_dispatch.app.domain.dispatch.conflicts import ConflictDetector
from freight_dispatch.app.domain.dispatch.merge import AssignmentPlan, merge_assignment
from freight_dispatch.app.domain.dispatch.persistence import (
    commit_changes,
    effective_changes,
    lock_load,
    lock_row,
)
from freight_dispatch.app.domain.dispatch.state_machine import LoadStateMachine, check_carrier_rate
from freight_dispatch.app.models.carrier import Carrier
from freight_dispatch.app.models.driver import Driver
from freight_dispatch.app.models.fleet_enums import CarrierStatus, VehicleType
from freight_dispatch.app.models.load import Load, ASSIGNMENT_FIELDS
from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.app.models.vehicle import Vehicle

logger = logging.getLogger(__name__)


@dataclass
class AssignmentResult:
    """What an assignment call did, so clients can refresh exactly that."""
    load: Load
    assigned_field: str
    changed_fields: Dict[str, object] = dc_field(default_factory=dict)
    auto_filled_fields: List[str] = dc_field(default_factory=list)
    cleared_fields: List[str] = dc_field(default_factory=list)
    # Set when the assignment also moved the load (auto-scheduling)
    previous_status: Optional[LoadStatus] = None

    @property
    def written(self) -> bool:
        return bool(self.changed_fields)


def _load_window(load: Load) -> Optional[DateRange]:
    """The load's own schedule; malformed stops are a validation error here."""
    if not load.stops:
        return None
    return DateRange.build(load.stops[0].appointment_start, load.stops[-1].appointment_end)


def _check_carrier_pool(load: Load, carrier_id: Optional[int], resource: str, resource_id: int) -> None:
    if carrier_id != load.carrier_id:
        raise DispatchValidationError(
            f"{resource} {resource_id} does not belong to the load's carrier pool",
            details={
                "resource": resource,
                "resource_id": resource_id,
                "resource_carrier_id": carrier_id,
                "load_carrier_id": load.carrier_id,
            },
        )


def _in_pool(load: Load, resource) -> bool:
    return resource is not None and resource.carrier_id == load.carrier_id


def _fillable(load: Load, resource) -> bool:
    """A suggested driver or vehicle is auto-filled only if it could be assigned directly."""
    return _in_pool(load, resource) and resource.is_assignable


async def _lock_driver_candidate(db: AsyncSession, load: Load, driver_id: int) -> Driver:
    driver = await lock_row(db, Driver, driver_id, "Driver")
    if not driver.is_assignable:
        raise DispatchValidationError(
            f"Cannot assign driver who is {driver.status.value}",
            details={"driver_id": driver.id, "driver_status": driver.status.value},
        )
    _check_carrier_pool(load, driver.carrier_id, "Driver", driver.id)
    return driver


async def _lock_vehicle_candidate(
    db: AsyncSession, load: Load, vehicle_id: int, expected_type: VehicleType
) -> Vehicle:
    vehicle = await lock_row(db, Vehicle, vehicle_id, "Vehicle")
    if vehicle.type != expected_type:
        raise DispatchValidationError(
            f"Vehicle {vehicle.id} is a {vehicle.type.value}, expected {expected_type.value}",
            details={"vehicle_id": vehicle.id, "vehicle_type": vehicle.type.value},
        )
    if not vehicle.is_assignable:
        raise DispatchValidationError(
            f"Cannot assign vehicle that is {vehicle.status.value}",
            details={"vehicle_id": vehicle.id, "vehicle_status": vehicle.status.value},
        )
    _check_carrier_pool(load, vehicle.carrier_id, "Vehicle", vehicle.id)
    return vehicle


async def _ensure_driver_available(db: AsyncSession, load: Load, driver_id: int) -> None:
    window = _load_window(load)
    if window is None:
        return
    conflicts = await ConflictDetector.find_conflicts(
        db,
        ResourceKind.DRIVER,
        driver_id,
        window.start,
        window.end,
        exclude_load_id=load.id,
        for_update=True,
    )
    if conflicts:
        logger.info(
            "Driver %s conflicts with loads %s for load %s",
            driver_id, [c.id for c in conflicts], load.id,
        )
        raise AssignmentConflictError([c.to_dict() for c in conflicts])


async def _write_plan(
    db: AsyncSession, load: Load, plan: AssignmentPlan, extra: Optional[Dict[str, object]] = None
) -> AssignmentResult:
    changes = effective_changes(load, plan.changes)
    if not changes:
        return AssignmentResult(load=load, assigned_field=plan.assigned_field)

    changes.update(extra or {})
    previous_status = load.status if "status" in changes else None
    await commit_changes(db, load, changes)
    logger.info(
        "Load %s: %s=%s (auto-filled: %s)",
        load.id, plan.assigned_field, changes.get(plan.assigned_field), plan.auto_filled or "none",
    )
    return AssignmentResult(
        load=load,
        assigned_field=plan.assigned_field,
        changed_fields=changes,
        auto_filled_fields=[name for name in plan.auto_filled if name in changes],
        cleared_fields=[name for name, value in changes.items() if name in ASSIGNMENT_FIELDS and value is None],
        previous_status=previous_status,
    )


def _unchanged(load: Load, assigned_field: str) -> AssignmentResult:
    return AssignmentResult(load=load, assigned_field=assigned_field)


class AssignmentService:

    @staticmethod
    async def assign_driver_first(db: AsyncSession, load_id: int, driver_id: Optional[int]) -> AssignmentResult:
        """
        Assign a driver and auto-fill the driver's truck, trailer and team
        partner into whichever of those fields are empty.

        Passing None unassigns the driver without any availability check.
        Re-assigning the current driver is a no-op.

        Raises:
            ResourceNotFoundError: unknown load or driver
            DispatchValidationError: driver out of service, outside the
                carrier pool, or already the team driver
            AssignmentConflictError: driver has overlapping loads
        """
        async def attempt() -> AssignmentResult:
            load = await lock_load(db, load_id)

            if driver_id is None:
                plan = merge_assignment(load.assignment_snapshot(), "driver_id", None)
                return await _write_plan(db, load, plan)

            if load.driver_id == driver_id:
                return _unchanged(load, "driver_id")

            await _lock_driver_candidate(db, load, driver_id)
            if load.driver2_id == driver_id:
                raise DispatchValidationError(
                    "Driver is already the team driver on this load",
                    details={"driver_id": driver_id},
                )

            await _ensure_driver_available(db, load, driver_id)

            affinity = await AffinityResolver.resolve_for_driver(db, driver_id)
            advisory = {}
            if _fillable(load, affinity.truck):
                advisory["truck_id"] = affinity.truck.id
            if _fillable(load, affinity.suggested_trailer):
                advisory["trailer_id"] = affinity.suggested_trailer.id
            if _fillable(load, affinity.team_driver):
                advisory["driver2_id"] = affinity.team_driver.id

            plan = merge_assignment(load.assignment_snapshot(), "driver_id", driver_id, advisory)

            extra: Dict[str, object] = {"assigned_at": datetime.now(timezone.utc)}
            if settings.auto_schedule_on_assign and load.status == LoadStatus.OPEN:
                LoadStateMachine.validate(load, LoadStatus.SCHEDULED)
                extra["status"] = LoadStatus.SCHEDULED

            return await _write_plan(db, load, plan, extra)

        return await run_with_storage_retry(db, attempt, load_id)

    @staticmethod
    async def assign_truck_first(db: AsyncSession, load_id: int, truck_id: Optional[int]) -> AssignmentResult:
        """
        Assign a tractor and auto-fill its seated drivers into empty driver
        fields. No availability check runs on this path.

        Raises:
            ResourceNotFoundError: unknown load or vehicle
            DispatchValidationError: not a tractor, out of service, or outside
                the carrier pool
        """
        async def attempt() -> AssignmentResult:
            load = await lock_load(db, load_id)

            if truck_id is None:
                plan = merge_assignment(load.assignment_snapshot(), "truck_id", None)
                return await _write_plan(db, load, plan)

            truck = await _lock_vehicle_candidate(db, load, truck_id, VehicleType.TRACTOR)
            seated = await AffinityResolver.resolve_for_truck(db, truck)

            advisory = {}
            if _fillable(load, seated.driver):
                advisory["driver_id"] = seated.driver.id
            if _fillable(load, seated.team_driver):
                advisory["driver2_id"] = seated.team_driver.id

            plan = merge_assignment(load.assignment_snapshot(), "truck_id", truck.id, advisory)
            return await _write_plan(db, load, plan)

        return await run_with_storage_retry(db, attempt, load_id)

    @staticmethod
    async def assign_trailer(db: AsyncSession, load_id: int, trailer_id: Optional[int]) -> AssignmentResult:
        """Set or clear the trailer. Trailers are not availability-checked."""
        async def attempt() -> AssignmentResult:
            load = await lock_load(db, load_id)
            if trailer_id is not None:
                await _lock_vehicle_candidate(db, load, trailer_id, VehicleType.TRAILER)
            plan = merge_assignment(load.assignment_snapshot(), "trailer_id", trailer_id)
            return await _write_plan(db, load, plan)

        return await run_with_storage_retry(db, attempt, load_id)

    @staticmethod
    async def assign_team_driver(db: AsyncSession, load_id: int, driver_id: Optional[int]) -> AssignmentResult:
        """
        Set or clear the team driver (driver2_id).

        Raises:
            DispatchValidationError: same person as driver_id, out of service,
                or outside the carrier pool
            AssignmentConflictError: team driver has overlapping loads
        """
        async def attempt() -> AssignmentResult:
            load = await lock_load(db, load_id)

            if driver_id is None or load.driver2_id == driver_id:
                plan = merge_assignment(load.assignment_snapshot(), "driver2_id", driver_id)
                return await _write_plan(db, load, plan)

            await _lock_driver_candidate(db, load, driver_id)
            plan = merge_assignment(load.assignment_snapshot(), "driver2_id", driver_id)
            await _ensure_driver_available(db, load, driver_id)
            return await _write_plan(db, load, plan)

        return await run_with_storage_retry(db, attempt, load_id)

    @staticmethod
    async def assign_carrier(
        db: AsyncSession,
        load_id: int,
        carrier_id: Optional[int],
        carrier_rate: Optional[float] = None,
    ) -> AssignmentResult:
        """
        Move a load to another carrier (or back to the own fleet with None).

        A carrier change clears driver, team driver, truck and trailer in the
        same write. Status is left alone.

        Raises:
            ResourceNotFoundError: unknown load or carrier
            DispatchValidationError: carrier not ACTIVE, negative or non-finite rate
        """
        check_carrier_rate(carrier_rate)

        async def attempt() -> AssignmentResult:
            load = await lock_load(db, load_id)

            if carrier_id is not None:
                carrier = await lock_row(db, Carrier, carrier_id, "Carrier")
                if carrier.status != CarrierStatus.ACTIVE:
                    raise DispatchValidationError(
                        "Carrier must be ACTIVE to accept brokered loads",
                        details={"carrier_id": carrier.id, "carrier_status": carrier.status.value},
                    )

            changes: Dict[str, object] = {}
            if load.carrier_id != carrier_id:
                changes["carrier_id"] = carrier_id
                changes["carrier_rate"] = carrier_rate if carrier_id is not None else None
                changes.update({name: None for name in ASSIGNMENT_FIELDS})
            elif carrier_id is not None and carrier_rate is not None:
                changes["carrier_rate"] = carrier_rate

            plan = AssignmentPlan(assigned_field="carrier_id", changes=changes)
            return await _write_plan(db, load, plan)

        return await run_with_storage_retry(db, attempt, load_id)
