"""
Conflict Detector.

Given a candidate driver or vehicle and a date range, reports the loads it is
already committed to over that range. The result is advisory: callers decide
whether to refuse the assignment or just warn.

Loads without a complete schedule are skipped, so a resource can be
double-booked on loads whose appointments are not known yet.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.domain.dispatch.availability import (
    AvailabilityIndex,
    DateRange,
    ResourceKind,
    effective_range,
    matched_roles,
)
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus


ACTIVE_STATUSES = (LoadStatus.SCHEDULED, LoadStatus.IN_PICKUP_YARD, LoadStatus.IN_TRANSIT)
FINISHED_STATUSES = (LoadStatus.COMPLETED, LoadStatus.INVOICED)


@dataclass
class ConflictingLoad:
    """Enough about an overlapping load to show it to a dispatcher."""
    id: int
    reference_number: str
    status: str
    matched_as: List[str]
    pickup: Optional[str]
    delivery: Optional[str]
    pickup_date: datetime
    delivery_date: datetime

    @classmethod
    def from_load(cls, load: Load, window: DateRange, roles: List[str]) -> "ConflictingLoad":
        first, last = load.stops[0], load.stops[-1]
        return cls(
            id=load.id,
            reference_number=load.reference_number,
            status=load.status.value,
            matched_as=roles,
            pickup=_place(first.city, first.state),
            delivery=_place(last.city, last.state),
            pickup_date=window.start,
            delivery_date=window.end,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["pickup_date"] = self.pickup_date.isoformat()
        data["delivery_date"] = self.delivery_date.isoformat()
        return data


def _place(city: Optional[str], state: Optional[str]) -> Optional[str]:
    parts = [part for part in (city, state) if part]
    return ", ".join(parts) if parts else None


class ConflictDetector:

    @staticmethod
    async def find_conflicts(
        db: AsyncSession,
        kind: ResourceKind,
        resource_id: int,
        range_start: Optional[datetime],
        range_end: Optional[datetime],
        exclude_load_id: Optional[int] = None,
        for_update: bool = False,
    ) -> List[ConflictingLoad]:
        """
        Loads overlapping [range_start, range_end) that hold the resource.

        An incomplete candidate range cannot conflict and returns [].

        Raises:
            DispatchValidationError: range_start is after range_end
        """
        window = DateRange.build(range_start, range_end)
        if window is None:
            return []

        loads = await AvailabilityIndex.committed_loads(
            db, kind, resource_id, exclude_load_id=exclude_load_id, for_update=for_update
        )

        conflicts = []
        for load in loads:
            existing = effective_range(load)
            if existing is None:
                continue
            if window.overlaps(existing):
                conflicts.append(
                    ConflictingLoad.from_load(load, existing, matched_roles(load, kind, resource_id))
                )
        return conflicts

    @staticmethod
    async def driver_stats(db: AsyncSession, driver_id: int) -> Dict[str, Any]:
        """Active and completed load counts plus loaded miles for a driver."""
        result = await db.execute(
            select(Load).where((Load.driver_id == driver_id) | (Load.driver2_id == driver_id))
        )
        loads = result.scalars().all()

        finished = [load for load in loads if load.status in FINISHED_STATUSES]
        return {
            "active_loads": sum(1 for load in loads if load.status in ACTIVE_STATUSES),
            "completed_loads": len(finished),
            "total_miles": sum(load.loaded_miles or 0 for load in finished),
        }
