"""
Dispatch Board API Endpoint.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.db.session import get_db
from freight_dispatch.app.models.load_enums import LoadStatus
from freight_dispatch.app.schemas.board import DispatchBoardResponse
from freight_dispatch.app.core.dependencies import get_current_user
from freight_dispatch.app.services.dispatch_board import BoardFilters, get_dispatch_board

router = APIRouter(tags=["Dispatch Board"])


@router.get("/dispatch-board", response_model=DispatchBoardResponse)
async def dispatch_board(
    statuses: Optional[List[LoadStatus]] = Query(None, alias="status", description="Columns to show (repeatable)"),
    driver_id: Optional[int] = Query(None, description="Driver in either slot"),
    customer_id: Optional[int] = Query(None),
    carrier_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, max_length=100, description="Load id, reference, driver or city"),
    not_invoiced: bool = Query(False),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Loads grouped into one column per status, in lifecycle order.

    Defaults to OPEN through COMPLETED.
    """
    filters = BoardFilters(
        statuses=statuses,
        driver_id=driver_id,
        customer_id=customer_id,
        carrier_id=carrier_id,
        search=search,
        not_invoiced=not_invoiced,
    )
    return await get_dispatch_board(db, filters)
