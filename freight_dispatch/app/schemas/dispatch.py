"""
Dispatch Pydantic schemas.

Assignment requests/results, conflict reports and affinity suggestions.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from freight_dispatch.app.models.fleet_enums import DriverStatus, VehicleStatus, VehicleType
from freight_dispatch.app.schemas.load import LoadResponse


class DriverAssignmentRequest(BaseModel):
    """driver_id null unassigns."""
    driver_id: Optional[int] = None


class TruckAssignmentRequest(BaseModel):
    truck_id: Optional[int] = None


class TrailerAssignmentRequest(BaseModel):
    trailer_id: Optional[int] = None


class CarrierAssignmentRequest(BaseModel):
    """carrier_id null moves the load back to the own fleet."""
    carrier_id: Optional[int] = None
    carrier_rate: Optional[float] = Field(None, allow_inf_nan=False)


class AssignmentResponse(BaseModel):
    """
    Result of an assignment.

    `assigned_field` is what the dispatcher picked; `auto_filled_fields` were
    filled from driver/vehicle affinity. Clients refresh both.
    """
    load: LoadResponse
    assigned_field: str
    auto_filled_fields: List[str] = []
    cleared_fields: List[str] = []
    changed: bool


class ConflictingLoadResponse(BaseModel):
    id: int
    reference_number: str
    status: str
    matched_as: List[str]
    pickup: Optional[str]
    delivery: Optional[str]
    pickup_date: datetime
    delivery_date: datetime


class ConflictCheckResponse(BaseModel):
    resource_type: str
    resource_id: int
    range_start: Optional[datetime]
    range_end: Optional[datetime]
    has_conflicts: bool
    conflicts: List[ConflictingLoadResponse]


class DriverStats(BaseModel):
    active_loads: int
    completed_loads: int
    total_miles: float


class DriverAvailabilityResponse(BaseModel):
    driver_id: int
    available: bool
    conflicts: List[ConflictingLoadResponse]
    stats: DriverStats


class DriverSummary(BaseModel):
    id: int
    full_name: str
    status: DriverStatus
    carrier_id: Optional[int]

    class Config:
        from_attributes = True


class VehicleSummary(BaseModel):
    id: int
    unit_number: str
    type: VehicleType
    status: VehicleStatus
    carrier_id: Optional[int]

    class Config:
        from_attributes = True


class DriverAffinityResponse(BaseModel):
    """Suggestions only: never written over a field the dispatcher set."""
    driver_id: int
    truck: Optional[VehicleSummary] = None
    suggested_trailer: Optional[VehicleSummary] = None
    team_driver: Optional[DriverSummary] = None


class TruckAffinityResponse(BaseModel):
    vehicle_id: int
    driver: Optional[DriverSummary] = None
    team_driver: Optional[DriverSummary] = None

