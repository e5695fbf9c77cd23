"""
Test data helpers shared by the test modules.
"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.models.carrier import Carrier, Customer
from freight_dispatch.app.models.driver import Driver
from freight_dispatch.app.models.fleet_enums import CarrierStatus, DriverStatus, VehicleStatus, VehicleType
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus, StopType
from freight_dispatch.app.models.stop import Stop
from freight_dispatch.app.models.vehicle import Vehicle


def at(day: int, hour: int = 0) -> datetime:
    """UTC timestamp in March 2026."""
    return datetime(2026, 3, day, hour, tzinfo=timezone.utc)


async def reload(session: AsyncSession, load: Load) -> Load:
    """Re-read a load after the API changed it through another session."""
    return await session.get(Load, load.id, populate_existing=True)


class Seed:
    """Creates committed rows for a test. Every helper returns the row."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _save(self, row):
        self.session.add(row)
        await self.session.commit()
        await self.session.refresh(row)
        return row

    async def customer(self, company_name="Acme Logistics", mc_number=None, is_active=True):
        return await self._save(Customer(company_name=company_name, mc_number=mc_number, is_active=is_active))

    async def carrier(self, company_name="Partner Trucking", status=CarrierStatus.ACTIVE):
        return await self._save(Carrier(company_name=company_name, status=status))

    async def driver(self, full_name="John Smith", status=DriverStatus.AVAILABLE, carrier_id=None):
        return await self._save(Driver(full_name=full_name, status=status, carrier_id=carrier_id))

    async def tractor(self, unit_number="T-101", driver=None, driver2=None,
                      status=VehicleStatus.ACTIVE, carrier_id=None):
        return await self._save(Vehicle(
            unit_number=unit_number,
            type=VehicleType.TRACTOR,
            status=status,
            carrier_id=carrier_id,
            current_driver_id=driver.id if driver else None,
            current_driver2_id=driver2.id if driver2 else None,
        ))

    async def trailer(self, unit_number="TR-501", status=VehicleStatus.ACTIVE, carrier_id=None):
        return await self._save(Vehicle(
            unit_number=unit_number, type=VehicleType.TRAILER, status=status, carrier_id=carrier_id
        ))

    async def load(self, customer, pickup=None, delivery=None, reference_number="REF-1",
                   status=LoadStatus.OPEN, **fields):
        """Two-stop load from Dallas to Houston; None dates mean no firm schedule."""
        stops = [
            Stop(sequence_order=1, stop_type=StopType.PICKUP, city="Dallas", state="TX",
                 appointment_start=pickup, appointment_end=pickup),
            Stop(sequence_order=2, stop_type=StopType.DELIVERY, city="Houston", state="TX",
                 appointment_start=delivery, appointment_end=delivery),
        ]
        return await self._save(Load(
            reference_number=reference_number,
            customer_id=customer.id,
            status=status,
            stops=stops,
            **fields,
        ))
