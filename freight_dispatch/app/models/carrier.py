"""
Carrier and Customer database models.

Both are maintained by external CRUD services; only the fields dispatch
needs are mapped here.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.sql import func
from freight_dispatch.app.db.session import Base
from freight_dispatch.app.models.fleet_enums import CarrierStatus


class Carrier(Base):
    """External carrier that brokered loads are subcontracted to."""
    __tablename__ = "carriers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    company_name = Column(String(255), nullable=False)
    mc_number = Column(String(20), nullable=True, index=True)
    status = Column(Enum(CarrierStatus), default=CarrierStatus.PROSPECT, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Carrier(id={self.id}, name='{self.company_name}', status='{self.status.value}')>"


class Customer(Base):
    """Customer (broker or shipper) a load is booked for."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    company_name = Column(String(255), nullable=False)
    mc_number = Column(String(20), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.company_name}')>"
