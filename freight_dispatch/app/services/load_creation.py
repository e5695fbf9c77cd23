"""
Load creation service.

Creates OPEN loads with their stops. Used directly by the loads endpoint and
by draft approval.
"""

import logging
from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.core.exceptions import ResourceNotFoundError
from freight_dispatch.app.domain.dispatch.availability import DateRange
from freight_dispatch.app.models.carrier import Customer
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.app.models.stop import Stop
from freight_dispatch.app.schemas.load import StopCreate

logger = logging.getLogger(__name__)


def build_stops(stops: Iterable[StopCreate]) -> list[Stop]:
    """
    Turn stop payloads into Stop rows numbered from 1 in payload order.

    Raises:
        DispatchValidationError: a stop's appointment ends before it starts
    """
    rows = []
    for sequence, stop in enumerate(stops, start=1):
        DateRange.build(stop.appointment_start, stop.appointment_end)
        rows.append(Stop(sequence_order=sequence, **stop.model_dump()))
    return rows


async def create_load(
    db: AsyncSession,
    *,
    reference_number: str,
    customer_id: int,
    stops: Iterable[StopCreate],
    dispatcher_id: Optional[int] = None,
    email_import_id: Optional[int] = None,
    confidence_score: Optional[float] = None,
    **fields,
) -> Load:
    """
    Create a load in OPEN with its stops in one commit.

    Raises:
        ResourceNotFoundError: unknown customer
    """
    customer = await db.get(Customer, customer_id)
    if customer is None:
        raise ResourceNotFoundError("Customer", customer_id)

    load = Load(
        reference_number=reference_number,
        customer_id=customer_id,
        status=LoadStatus.OPEN,
        dispatcher_id=dispatcher_id,
        email_import_id=email_import_id,
        confidence_score=confidence_score,
        stops=build_stops(stops),
        **fields,
    )
    db.add(load)
    await db.commit()
    await db.refresh(load)

    logger.info("Created load %s (%s) for customer %s", load.id, load.reference_number, customer_id)
    return load
