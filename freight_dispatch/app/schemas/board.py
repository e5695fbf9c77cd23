"""
Dispatch board schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from freight_dispatch.app.models.load_enums import LoadStatus


class BoardCard(BaseModel):
    """One load as shown on the board."""
    id: int
    reference_number: str
    status: LoadStatus
    customer_id: int
    customer_name: Optional[str] = None
    driver_id: Optional[int] = None
    driver_name: Optional[str] = None
    driver2_id: Optional[int] = None
    driver2_name: Optional[str] = None
    truck_id: Optional[int] = None
    truck_unit: Optional[str] = None
    trailer_id: Optional[int] = None
    trailer_unit: Optional[str] = None
    carrier_id: Optional[int] = None
    pickup_city: Optional[str] = None
    pickup_state: Optional[str] = None
    pickup_date: Optional[datetime] = None
    delivery_city: Optional[str] = None
    delivery_state: Optional[str] = None
    delivery_date: Optional[datetime] = None
    rate_amount: float
    locked_by_invoice: bool
    available_transitions: List[LoadStatus] = []


class BoardColumn(BaseModel):
    status: LoadStatus
    count: int
    loads: List[BoardCard]


class DispatchBoardResponse(BaseModel):
    total: int
    columns: List[BoardColumn]
