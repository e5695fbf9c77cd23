"""
Driver database model.

Driver records are maintained by the fleet CRUD service; dispatch reads
them to validate candidates.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from freight_dispatch.app.db.session import Base
from freight_dispatch.app.models.fleet_enums import DriverStatus


class Driver(Base):
    """Driver model. `carrier_id` is NULL for own-fleet drivers."""
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)

    status = Column(Enum(DriverStatus), default=DriverStatus.AVAILABLE, nullable=False, index=True)
    carrier_id = Column(Integer, ForeignKey('carriers.id'), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def is_assignable(self) -> bool:
        return self.status not in (DriverStatus.OUT_OF_SERVICE, DriverStatus.INACTIVE)

    def __repr__(self):
        return f"<Driver(id={self.id}, name='{self.full_name}', status='{self.status.value}')>"
