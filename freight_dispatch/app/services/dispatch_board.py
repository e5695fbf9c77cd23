"""
Dispatch Board Query Layer.

Groups loads into one column per status, in state machine order, with the
names a dispatcher needs on each card. Read-only.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.domain.dispatch.state_machine import LoadStateMachine, STATUS_ORDER
from freight_dispatch.app.models.carrier import Customer
from freight_dispatch.app.models.driver import Driver
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.app.models.vehicle import Vehicle
from freight_dispatch.app.schemas.board import BoardCard, BoardColumn, DispatchBoardResponse


DEFAULT_BOARD_STATUSES = (
    LoadStatus.OPEN,
    LoadStatus.SCHEDULED,
    LoadStatus.IN_PICKUP_YARD,
    LoadStatus.IN_TRANSIT,
    LoadStatus.COMPLETED,
)


@dataclass
class BoardFilters:
    statuses: Optional[Sequence[LoadStatus]] = None
    driver_id: Optional[int] = None  # either driver slot
    customer_id: Optional[int] = None
    carrier_id: Optional[int] = None
    search: Optional[str] = None
    not_invoiced: bool = False

    def board_statuses(self) -> List[LoadStatus]:
        wanted = set(self.statuses or DEFAULT_BOARD_STATUSES)
        return [status for status in STATUS_ORDER if status in wanted]


async def _names_by_id(db: AsyncSession, model, label, ids: Iterable[Optional[int]]) -> Dict[int, str]:
    ids = {value for value in ids if value is not None}
    if not ids:
        return {}
    result = await db.execute(select(model.id, label).where(model.id.in_(ids)))
    return {row_id: name for row_id, name in result.all()}


def _build_card(load: Load, customers, drivers, vehicles) -> BoardCard:
    first = load.stops[0] if load.stops else None
    last = load.stops[-1] if load.stops else None
    return BoardCard(
        id=load.id,
        reference_number=load.reference_number,
        status=load.status,
        customer_id=load.customer_id,
        customer_name=customers.get(load.customer_id),
        driver_id=load.driver_id,
        driver_name=drivers.get(load.driver_id),
        driver2_id=load.driver2_id,
        driver2_name=drivers.get(load.driver2_id),
        truck_id=load.truck_id,
        truck_unit=vehicles.get(load.truck_id),
        trailer_id=load.trailer_id,
        trailer_unit=vehicles.get(load.trailer_id),
        carrier_id=load.carrier_id,
        pickup_city=first.city if first else None,
        pickup_state=first.state if first else None,
        pickup_date=first.appointment_start if first else None,
        delivery_city=last.city if last else None,
        delivery_state=last.state if last else None,
        delivery_date=(last.appointment_end or last.appointment_start) if last else None,
        rate_amount=load.rate_amount,
        locked_by_invoice=load.locked_by_invoice,
        available_transitions=LoadStateMachine.available_transitions(load),
    )


def _matches_search(card: BoardCard, term: str) -> bool:
    haystack = [
        str(card.id),
        card.reference_number,
        card.driver_name,
        card.driver2_name,
        card.pickup_city,
        card.delivery_city,
    ]
    return any(term in value.lower() for value in haystack if value)


async def get_dispatch_board(db: AsyncSession, filters: BoardFilters) -> DispatchBoardResponse:
    """Board view of the loads matching `filters`, one column per status."""
    statuses = filters.board_statuses()

    query = select(Load).where(Load.status.in_(statuses))
    if filters.driver_id is not None:
        query = query.where((Load.driver_id == filters.driver_id) | (Load.driver2_id == filters.driver_id))
    if filters.customer_id is not None:
        query = query.where(Load.customer_id == filters.customer_id)
    if filters.carrier_id is not None:
        query = query.where(Load.carrier_id == filters.carrier_id)
    if filters.not_invoiced:
        query = query.where(Load.invoice_id.is_(None))

    result = await db.execute(query.order_by(Load.id.desc()))
    loads = result.scalars().all()

    customers = await _names_by_id(db, Customer, Customer.company_name, (l.customer_id for l in loads))
    drivers = await _names_by_id(
        db, Driver, Driver.full_name, [i for l in loads for i in (l.driver_id, l.driver2_id)]
    )
    vehicles = await _names_by_id(
        db, Vehicle, Vehicle.unit_number, [i for l in loads for i in (l.truck_id, l.trailer_id)]
    )

    cards = [_build_card(load, customers, drivers, vehicles) for load in loads]

    term = (filters.search or "").strip().lower()
    if term:
        cards = [card for card in cards if _matches_search(card, term)]

    columns = []
    for status in statuses:
        column_cards = [card for card in cards if card.status == status]
        columns.append(BoardColumn(status=status, count=len(column_cards), loads=column_cards))

    return DispatchBoardResponse(total=len(cards), columns=columns)
