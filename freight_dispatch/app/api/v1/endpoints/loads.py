"""
Load API Endpoints.

Load creation, lookup and status lifecycle.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from freight_dispatch.app.db.session import get_db
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.app.schemas.load import (
    AvailableTransitionsResponse,
    InvoiceAttachRequest,
    LoadCreate,
    LoadListResponse,
    LoadResponse,
    TransitionRequest,
    TransitionResponse,
    to_load_response,
)
from freight_dispatch.app.core.dependencies import get_current_user
from freight_dispatch.app.core.exceptions import ResourceNotFoundError
from freight_dispatch.app.core.guards import require_role, DISPATCH_ROLES, BILLING_ROLES
from freight_dispatch.app.domain.dispatch import lifecycle
from freight_dispatch.app.domain.dispatch.state_machine import LoadStateMachine, TransitionPayload
from freight_dispatch.app.services.audit import AuditAction, get_load_history, record_load_event
from freight_dispatch.app.services.load_creation import create_load

router = APIRouter(prefix="/loads", tags=["Loads"])


async def _get_load(db: AsyncSession, load_id: int) -> Load:
    load = await db.get(Load, load_id)
    if load is None:
        raise ResourceNotFoundError("Load", load_id)
    return load


@router.post("", response_model=LoadResponse, status_code=status.HTTP_201_CREATED)
async def create_new_load(
    load_data: LoadCreate,
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a load in OPEN status.

    Requires at least two stops; stops are stored in the order given.
    """
    fields = load_data.model_dump(exclude={"stops"})
    load = await create_load(
        db,
        stops=load_data.stops,
        dispatcher_id=current_user["user_id"],
        **fields,
    )

    await record_load_event(
        db, AuditAction.LOAD_CREATED, load.id, current_user,
        metadata={"reference_number": load.reference_number, "customer_id": load.customer_id},
    )
    return to_load_response(load)


@router.get("", response_model=LoadListResponse)
async def list_loads(
    status_filter: Optional[LoadStatus] = Query(None, alias="status", description="Filter by status"),
    driver_id: Optional[int] = Query(None, description="Filter by driver (either slot)"),
    customer_id: Optional[int] = Query(None),
    carrier_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List loads, newest first."""
    query = select(Load)

    if status_filter:
        query = query.where(Load.status == status_filter)
    if driver_id is not None:
        query = query.where((Load.driver_id == driver_id) | (Load.driver2_id == driver_id))
    if customer_id is not None:
        query = query.where(Load.customer_id == customer_id)
    if carrier_id is not None:
        query = query.where(Load.carrier_id == carrier_id)

    count_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar()

    offset = (page - 1) * page_size
    result = await db.execute(query.order_by(Load.id.desc()).offset(offset).limit(page_size))
    loads = result.scalars().all()

    return LoadListResponse(
        loads=[to_load_response(load) for load in loads],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{load_id}", response_model=LoadResponse)
async def get_load(
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Load detail with the transitions currently available."""
    return to_load_response(await _get_load(db, load_id))


@router.get("/{load_id}/transitions", response_model=AvailableTransitionsResponse)
async def get_available_transitions(
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Statuses the load can move to. Empty once invoiced."""
    load = await _get_load(db, load_id)
    return AvailableTransitionsResponse(
        load_id=load.id,
        status=load.status,
        locked_by_invoice=load.locked_by_invoice,
        available_transitions=LoadStateMachine.available_transitions(load),
    )


@router.patch("/{load_id}/status", response_model=TransitionResponse)
async def change_load_status(
    request: TransitionRequest,
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Move a load to another status.

    BROKERED requires carrier_id (and optionally carrier_rate). Brokering to
    a different carrier clears driver, team driver, truck and trailer.
    """
    payload = TransitionPayload(carrier_id=request.carrier_id, carrier_rate=request.carrier_rate)
    load, outcome = await lifecycle.transition(db, load_id, request.status, payload)

    await record_load_event(
        db, AuditAction.LOAD_STATUS_CHANGED, load.id, current_user,
        metadata={
            "previous_status": outcome.previous_status.value,
            "new_status": outcome.new_status.value,
            "carrier_id": load.carrier_id,
            "cleared_assignments": outcome.cleared_assignments,
        },
    )

    return TransitionResponse(
        load=to_load_response(load),
        previous_status=outcome.previous_status,
        new_status=outcome.new_status,
        cleared_assignments=outcome.cleared_assignments,
    )


@router.post("/{load_id}/invoice", response_model=LoadResponse)
async def attach_invoice(
    request: InvoiceAttachRequest,
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(require_role(BILLING_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Attach an invoice to a COMPLETED load (invoicing service only).

    The load moves to INVOICED and no longer accepts manual status changes.
    """
    load, _ = await lifecycle.attach_invoice(db, load_id, request.invoice_id)

    await record_load_event(
        db, AuditAction.LOAD_INVOICED, load.id, current_user,
        metadata={"invoice_id": request.invoice_id},
    )
    return to_load_response(load)


@router.get("/{load_id}/history")
async def get_load_audit_history(
    load_id: int = Path(..., description="Load ID"),
    limit: int = Query(100, ge=1, le=500),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Audit trail for the load, most recent first."""
    await _get_load(db, load_id)
    entries = await get_load_history(db, load_id, limit=limit)
    return {
        "load_id": load_id,
        "entries": [
            {
                "id": entry.id,
                "action": entry.action,
                "actor_id": entry.actor_id,
                "actor_username": entry.actor_username,
                "actor_role": entry.actor_role,
                "metadata": entry.meta_data,
                "timestamp": entry.timestamp,
            }
            for entry in entries
        ],
    }
