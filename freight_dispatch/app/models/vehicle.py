"""
Vehicle database model (tractors and trailers).
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from freight_dispatch.app.db.session import Base
from freight_dispatch.app.models.fleet_enums import VehicleType, VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    `current_driver_id` / `current_driver2_id` are the vehicle's home
    assignment, used to auto-fill loads. They are independent of any load's
    truck_id / trailer_id.
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    unit_number = Column(String(50), nullable=False, index=True)
    type = Column(Enum(VehicleType), nullable=False, index=True)
    status = Column(Enum(VehicleStatus), default=VehicleStatus.ACTIVE, nullable=False, index=True)

    make = Column(String(50), nullable=True)
    model = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)

    carrier_id = Column(Integer, ForeignKey('carriers.id'), nullable=True, index=True)

    current_driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)
    current_driver2_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def is_assignable(self) -> bool:
        return self.status not in (VehicleStatus.OUT_OF_SERVICE, VehicleStatus.INACTIVE)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, unit='{self.unit_number}', type='{self.type.value}')>"
