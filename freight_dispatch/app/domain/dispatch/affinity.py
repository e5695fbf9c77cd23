"""
Vehicle/Driver Affinity Resolver.

Looks up the equipment and team partner conventionally paired with a driver
(or the drivers paired with a truck). Everything returned is a suggestion;
the assignment merge only writes it into fields the dispatcher left empty.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select, case
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.models.driver import Driver
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.vehicle import Vehicle
from freight_dispatch.app.models.fleet_enums import VehicleType, VehicleStatus


@dataclass
class DriverAffinity:
    truck: Optional[Vehicle] = None
    suggested_trailer: Optional[Vehicle] = None
    team_driver: Optional[Driver] = None


@dataclass
class TruckAffinity:
    driver: Optional[Driver] = None
    team_driver: Optional[Driver] = None


async def _assignable_driver(db: AsyncSession, driver_id: Optional[int]) -> Optional[Driver]:
    if driver_id is None:
        return None
    driver = await db.get(Driver, driver_id)
    if driver is None or not driver.is_assignable:
        return None
    return driver


class AffinityResolver:

    @staticmethod
    async def home_truck(db: AsyncSession, driver_id: int) -> Optional[Vehicle]:
        """
        The tractor the driver is currently seated in.

        A truck where the driver holds the primary seat wins over one where
        they are the team driver.
        """
        primary_first = case((Vehicle.current_driver_id == driver_id, 0), else_=1)
        result = await db.execute(
            select(Vehicle).where(
                Vehicle.type == VehicleType.TRACTOR,
                Vehicle.status != VehicleStatus.INACTIVE,
                (Vehicle.current_driver_id == driver_id) | (Vehicle.current_driver2_id == driver_id),
            ).order_by(primary_first, Vehicle.id).limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def last_used_trailer(db: AsyncSession, driver_id: int) -> Optional[Vehicle]:
        """Trailer from the driver's most recent load that had one."""
        result = await db.execute(
            select(Load.trailer_id).where(
                Load.driver_id == driver_id,
                Load.trailer_id.isnot(None),
            ).order_by(Load.created_at.desc(), Load.id.desc()).limit(1)
        )
        trailer_id = result.scalar_one_or_none()
        if trailer_id is None:
            return None

        trailer = await db.get(Vehicle, trailer_id)
        if trailer is None or trailer.status == VehicleStatus.INACTIVE:
            return None
        return trailer

    @staticmethod
    async def resolve_for_driver(db: AsyncSession, driver_id: int) -> DriverAffinity:
        """Home truck, suggested trailer and team partner for a driver."""
        affinity = DriverAffinity(
            truck=await AffinityResolver.home_truck(db, driver_id),
            suggested_trailer=await AffinityResolver.last_used_trailer(db, driver_id),
        )

        if affinity.truck is not None:
            partner_id = (
                affinity.truck.current_driver2_id
                if affinity.truck.current_driver_id == driver_id
                else affinity.truck.current_driver_id
            )
            if partner_id != driver_id:
                affinity.team_driver = await _assignable_driver(db, partner_id)

        return affinity

    @staticmethod
    async def resolve_for_truck(db: AsyncSession, truck: Vehicle) -> TruckAffinity:
        """Drivers currently seated in a truck."""
        return TruckAffinity(
            driver=await _assignable_driver(db, truck.current_driver_id),
            team_driver=await _assignable_driver(db, truck.current_driver2_id),
        )
