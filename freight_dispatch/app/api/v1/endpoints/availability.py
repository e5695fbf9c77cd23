"""
Availability and Affinity API Endpoints.

Read-only lookups the dispatch board uses before assigning: conflicting
loads for a resource, and the equipment/partners paired with a driver or
truck.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.db.session import get_db
from freight_dispatch.app.models.driver import Driver
from freight_dispatch.app.models.vehicle import Vehicle
from freight_dispatch.app.models.fleet_enums import VehicleType
from freight_dispatch.app.schemas.dispatch import (
    ConflictCheckResponse,
    DriverAffinityResponse,
    DriverAvailabilityResponse,
    DriverSummary,
    TruckAffinityResponse,
    VehicleSummary,
)
from freight_dispatch.app.core.dependencies import get_current_user
from freight_dispatch.app.core.exceptions import DispatchValidationError, ResourceNotFoundError
from freight_dispatch.app.domain.dispatch.affinity import AffinityResolver
from freight_dispatch.app.domain.dispatch.availability import ResourceKind
from freight_dispatch.app.domain.dispatch.conflicts import ConflictDetector

conflicts_router = APIRouter(tags=["Dispatch - Availability"])
drivers_router = APIRouter(prefix="/drivers", tags=["Dispatch - Availability"])
vehicles_router = APIRouter(prefix="/vehicles", tags=["Dispatch - Availability"])


def _summary(schema, row):
    return schema.model_validate(row) if row is not None else None


@conflicts_router.get("/conflicts", response_model=ConflictCheckResponse)
async def find_conflicts(
    resource_type: ResourceKind = Query(..., description="DRIVER, TRUCK or TRAILER"),
    resource_id: int = Query(...),
    range_start: Optional[datetime] = Query(None),
    range_end: Optional[datetime] = Query(None),
    exclude_load_id: Optional[int] = Query(None, description="Load being edited"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Loads the resource is committed to within [range_start, range_end).

    An incomplete range never conflicts. A range that ends before it starts
    is rejected with 422.
    """
    conflicts = await ConflictDetector.find_conflicts(
        db, resource_type, resource_id, range_start, range_end, exclude_load_id=exclude_load_id
    )
    return ConflictCheckResponse(
        resource_type=resource_type.value,
        resource_id=resource_id,
        range_start=range_start,
        range_end=range_end,
        has_conflicts=bool(conflicts),
        conflicts=[conflict.to_dict() for conflict in conflicts],
    )


@drivers_router.get("/{driver_id}/availability", response_model=DriverAvailabilityResponse)
async def get_driver_availability(
    driver_id: int = Path(..., description="Driver ID"),
    pickup: Optional[datetime] = Query(None, description="Start of the window to check"),
    delivery: Optional[datetime] = Query(None, description="End of the window to check"),
    exclude_load_id: Optional[int] = Query(None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Conflicts for a driver over a window, plus workload stats."""
    driver = await db.get(Driver, driver_id)
    if driver is None:
        raise ResourceNotFoundError("Driver", driver_id)

    conflicts = await ConflictDetector.find_conflicts(
        db, ResourceKind.DRIVER, driver_id, pickup, delivery, exclude_load_id=exclude_load_id
    )
    stats = await ConflictDetector.driver_stats(db, driver_id)

    return DriverAvailabilityResponse(
        driver_id=driver_id,
        available=not conflicts,
        conflicts=[conflict.to_dict() for conflict in conflicts],
        stats=stats,
    )


@drivers_router.get("/{driver_id}/affinity", response_model=DriverAffinityResponse)
async def get_driver_affinity(
    driver_id: int = Path(..., description="Driver ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Home truck, suggested trailer and team partner for a driver."""
    driver = await db.get(Driver, driver_id)
    if driver is None:
        raise ResourceNotFoundError("Driver", driver_id)

    affinity = await AffinityResolver.resolve_for_driver(db, driver_id)
    return DriverAffinityResponse(
        driver_id=driver_id,
        truck=_summary(VehicleSummary, affinity.truck),
        suggested_trailer=_summary(VehicleSummary, affinity.suggested_trailer),
        team_driver=_summary(DriverSummary, affinity.team_driver),
    )


@vehicles_router.get("/{vehicle_id}/affinity", response_model=TruckAffinityResponse)
async def get_truck_affinity(
    vehicle_id: int = Path(..., description="Vehicle ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Drivers currently seated in a tractor."""
    vehicle = await db.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise ResourceNotFoundError("Vehicle", vehicle_id)
    if vehicle.type != VehicleType.TRACTOR:
        raise DispatchValidationError(
            f"Vehicle {vehicle_id} is not a tractor",
            details={"vehicle_id": vehicle_id, "vehicle_type": vehicle.type.value},
        )

    seated = await AffinityResolver.resolve_for_truck(db, vehicle)
    return TruckAffinityResponse(
        vehicle_id=vehicle_id,
        driver=_summary(DriverSummary, seated.driver),
        team_driver=_summary(DriverSummary, seated.team_driver),
    )
