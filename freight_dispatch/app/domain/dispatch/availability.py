"""
Availability Index.

Answers "which loads is this driver/vehicle already committed to?" and
computes each load's effective date range from its stops.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.core.exceptions import DispatchValidationError
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus


class ResourceKind(str, enum.Enum):
    """What kind of resource is being checked for availability."""
    DRIVER = "DRIVER"  # matches driver_id or driver2_id
    TRUCK = "TRUCK"
    TRAILER = "TRAILER"


# Loads in these statuses never hold a resource
NON_BLOCKING_STATUSES = (LoadStatus.CANCELLED, LoadStatus.TONU)

_RESOURCE_COLUMNS = {
    ResourceKind.DRIVER: ("driver_id", "driver2_id"),
    ResourceKind.TRUCK: ("truck_id",),
    ResourceKind.TRAILER: ("trailer_id",),
}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to an aware UTC datetime. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class DateRange:
    """Half-open interval [start, end)."""
    start: datetime
    end: datetime

    @classmethod
    def build(cls, start: Optional[datetime], end: Optional[datetime]) -> Optional["DateRange"]:
        """
        Build a range, or None when either bound is unknown.

        Raises:
            DispatchValidationError: start is after end
        """
        start, end = as_utc(start), as_utc(end)
        if start is None or end is None:
            return None
        if start > end:
            raise DispatchValidationError(
                "Malformed date range: start is after end",
                details={"start": start.isoformat(), "end": end.isoformat()},
            )
        return cls(start=start, end=end)

    def overlaps(self, other: "DateRange") -> bool:
        return self.start < other.end and other.start < self.end


def effective_range(load: Load) -> Optional[DateRange]:
    """
    [first stop appointment_start, last stop appointment_end], or None when
    the load has no firm schedule yet.

    A load whose own stops are out of order yields None instead of raising:
    bad data on somebody else's load must not block an assignment.
    """
    stops = load.stops
    if not stops:
        return None
    start = as_utc(stops[0].appointment_start)
    end = as_utc(stops[-1].appointment_end)
    if start is None or end is None or start > end:
        return None
    return DateRange(start=start, end=end)


def matched_roles(load: Load, kind: ResourceKind, resource_id: int) -> List[str]:
    """Which of the load's assignment columns hold `resource_id`."""
    return [column for column in _RESOURCE_COLUMNS[kind] if getattr(load, column) == resource_id]


class AvailabilityIndex:

    @staticmethod
    async def committed_loads(
        db: AsyncSession,
        kind: ResourceKind,
        resource_id: int,
        exclude_load_id: Optional[int] = None,
        for_update: bool = False,
    ) -> Sequence[Load]:
        """
        Loads that reference the resource and still hold it.

        With `for_update` the rows are locked until the surrounding
        transaction ends, so a concurrent assignment of the same resource
        waits for this one to commit.
        """
        columns = [getattr(Load, column) == resource_id for column in _RESOURCE_COLUMNS[kind]]
        query = select(Load).where(
            or_(*columns),
            Load.status.notin_(NON_BLOCKING_STATUSES),
        )
        if exclude_load_id is not None:
            query = query.where(Load.id != exclude_load_id)
        if for_update:
            query = query.with_for_update()

        result = await db.execute(query.order_by(Load.id))
        return result.scalars().all()
