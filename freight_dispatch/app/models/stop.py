"""
Stop database model.

Stops are the pickup and delivery waypoints of a load, each with an
appointment window that may not be known yet at booking time.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from freight_dispatch.app.db.session import Base
from freight_dispatch.app.models.load_enums import StopType


class Stop(Base):
    """Stop model."""
    __tablename__ = "stops"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    load_id = Column(Integer, ForeignKey('loads.id', ondelete="CASCADE"), nullable=False, index=True)
    sequence_order = Column(Integer, nullable=False)  # 1, 2, 3, ...
    stop_type = Column(Enum(StopType), nullable=False)

    # Appointment window (nullable: no firm schedule yet)
    appointment_start = Column(DateTime(timezone=True), nullable=True)
    appointment_end = Column(DateTime(timezone=True), nullable=True)

    # Location
    facility_name = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(2), nullable=True)
    zip = Column(String(10), nullable=True)

    load = relationship("Load", back_populates="stops")

    def __repr__(self):
        return f"<Stop(id={self.id}, load_id={self.load_id}, type='{self.stop_type.value}', seq={self.sequence_order})>"
