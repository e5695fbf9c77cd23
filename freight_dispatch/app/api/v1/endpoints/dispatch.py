"""
Dispatch Assignment API Endpoints.

Dispatchers assign drivers, equipment and carriers to loads. Driver and
truck assignment auto-fill empty related fields from the home assignment.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.db.session import get_db
from freight_dispatch.app.schemas.dispatch import (
    AssignmentResponse,
    CarrierAssignmentRequest,
    DriverAssignmentRequest,
    TrailerAssignmentRequest,
    TruckAssignmentRequest,
)
from freight_dispatch.app.schemas.load import to_load_response
from freight_dispatch.app.core.guards import require_role, DISPATCH_ROLES
from freight_dispatch.app.domain.dispatch.assignment import AssignmentService, AssignmentResult
from freight_dispatch.app.services.audit import AuditAction, assignment_action, record_load_event

router = APIRouter(prefix="/loads", tags=["Dispatch - Assignment"])


def _to_response(result: AssignmentResult) -> AssignmentResponse:
    return AssignmentResponse(
        load=to_load_response(result.load),
        assigned_field=result.assigned_field,
        auto_filled_fields=result.auto_filled_fields,
        cleared_fields=result.cleared_fields,
        changed=result.written,
    )


async def _audit(db: AsyncSession, current_user: dict, result: AssignmentResult) -> None:
    if not result.written:
        return
    assigned_value = getattr(result.load, result.assigned_field)
    await record_load_event(
        db, assignment_action(result.assigned_field, assigned_value), result.load.id, current_user,
        metadata={
            "assigned_field": result.assigned_field,
            "changes": {name: getattr(result.load, name) for name in result.changed_fields
                        if name not in ("assigned_at", "status")},
            "auto_filled_fields": result.auto_filled_fields,
        },
    )
    if result.previous_status is not None:
        await record_load_event(
            db, AuditAction.LOAD_STATUS_CHANGED, result.load.id, current_user,
            metadata={
                "previous_status": result.previous_status.value,
                "new_status": result.load.status.value,
                "trigger": "auto_schedule_on_assign",
            },
        )


@router.patch("/{load_id}/assign-driver", response_model=AssignmentResponse)
async def assign_driver(
    request: DriverAssignmentRequest,
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Assign (or with null, unassign) the primary driver.

    Returns 409 ERR_CONFLICT_001 with the overlapping loads when the driver
    is already committed for the load's dates. Truck, trailer and team driver
    are auto-filled only where empty.
    """
    result = await AssignmentService.assign_driver_first(db, load_id, request.driver_id)
    await _audit(db, current_user, result)
    return _to_response(result)


@router.patch("/{load_id}/assign-truck", response_model=AssignmentResponse)
async def assign_truck(
    request: TruckAssignmentRequest,
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Assign a tractor; its seated drivers fill empty driver fields."""
    result = await AssignmentService.assign_truck_first(db, load_id, request.truck_id)
    await _audit(db, current_user, result)
    return _to_response(result)


@router.patch("/{load_id}/assign-trailer", response_model=AssignmentResponse)
async def assign_trailer(
    request: TrailerAssignmentRequest,
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    result = await AssignmentService.assign_trailer(db, load_id, request.trailer_id)
    await _audit(db, current_user, result)
    return _to_response(result)


@router.patch("/{load_id}/assign-team-driver", response_model=AssignmentResponse)
async def assign_team_driver(
    request: DriverAssignmentRequest,
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Assign the team driver. Availability is checked like the primary driver."""
    result = await AssignmentService.assign_team_driver(db, load_id, request.driver_id)
    await _audit(db, current_user, result)
    return _to_response(result)


@router.patch("/{load_id}/assign-carrier", response_model=AssignmentResponse)
async def assign_carrier(
    request: CarrierAssignmentRequest,
    load_id: int = Path(..., description="Load ID"),
    current_user: dict = Depends(require_role(DISPATCH_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Move the load to another carrier, or back to the own fleet with null.

    Changing the carrier clears driver, team driver, truck and trailer.
    """
    result = await AssignmentService.assign_carrier(db, load_id, request.carrier_id, request.carrier_rate)
    await _audit(db, current_user, result)
    return _to_response(result)
