"""
Load Pydantic schemas.

Request and response models for load creation, detail and status changes.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from freight_dispatch.app.domain.dispatch.state_machine import LoadStateMachine
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.load_enums import LoadStatus, RateType, StopType


class StopCreate(BaseModel):
    """Schema for one stop of a new load. Order in the list is the route order."""
    stop_type: StopType
    appointment_start: Optional[datetime] = None
    appointment_end: Optional[datetime] = None
    facility_name: Optional[str] = Field(None, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=2)
    zip: Optional[str] = Field(None, max_length=10)


class LoadCreate(BaseModel):
    """Schema for creating a load."""
    reference_number: str = Field(..., min_length=1, max_length=100)
    customer_id: int
    rate_amount: float = Field(0, ge=0)
    rate_type: RateType = RateType.FLAT
    loaded_miles: float = Field(0, ge=0)
    commodity: Optional[str] = Field(None, max_length=255)
    weight: Optional[float] = Field(None, ge=0)
    equipment_type: Optional[str] = Field(None, max_length=50)
    stops: List[StopCreate] = Field(..., min_length=2, description="Pickup and delivery stops, in route order")


class StopResponse(BaseModel):
    """Schema for stop response."""
    id: int
    sequence_order: int
    stop_type: StopType
    appointment_start: Optional[datetime]
    appointment_end: Optional[datetime]
    facility_name: Optional[str]
    address: Optional[str]
    city: Optional[str]
    state: Optional[str]
    zip: Optional[str]

    class Config:
        from_attributes = True


class LoadResponse(BaseModel):
    """Schema for load response."""
    id: int
    reference_number: str
    status: LoadStatus
    customer_id: int
    dispatcher_id: Optional[int]

    driver_id: Optional[int]
    driver2_id: Optional[int]
    truck_id: Optional[int]
    trailer_id: Optional[int]
    carrier_id: Optional[int]
    carrier_rate: Optional[float]

    rate_amount: float
    rate_type: RateType
    loaded_miles: float
    commodity: Optional[str]
    weight: Optional[float]
    equipment_type: Optional[str]

    invoice_id: Optional[int]
    settlement_id: Optional[int]
    email_import_id: Optional[int]
    confidence_score: Optional[float]

    assigned_at: Optional[datetime]
    picked_up_at: Optional[datetime]
    delivered_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    version: int

    locked_by_invoice: bool
    available_transitions: List[LoadStatus] = []
    stops: List[StopResponse] = []

    class Config:
        from_attributes = True


class LoadListResponse(BaseModel):
    """Schema for paginated load list."""
    loads: List[LoadResponse]
    total: int
    page: int
    page_size: int


class TransitionRequest(BaseModel):
    """Schema for a status change. carrier_id is required when brokering."""
    status: LoadStatus
    carrier_id: Optional[int] = None
    carrier_rate: Optional[float] = Field(None, allow_inf_nan=False)


class TransitionResponse(BaseModel):
    """Status change result."""
    load: LoadResponse
    previous_status: LoadStatus
    new_status: LoadStatus
    cleared_assignments: bool


class AvailableTransitionsResponse(BaseModel):
    load_id: int
    status: LoadStatus
    locked_by_invoice: bool
    available_transitions: List[LoadStatus]


class InvoiceAttachRequest(BaseModel):
    """Sent by the invoicing service once an invoice exists for the load."""
    invoice_id: int = Field(..., gt=0)


def to_load_response(load: Load) -> LoadResponse:
    """Serialize a load together with the transitions it currently allows."""
    response = LoadResponse.model_validate(load)
    response.available_transitions = LoadStateMachine.available_transitions(load)
    return response
