"""
Load database model.

A load is a single freight movement from one or more pickups to one or more
deliveries. Drivers, vehicles and carriers are shared references.
"""

from sqlalchemy import (
    Column, Integer, String, Float, ForeignKey, DateTime, Enum, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from freight_dispatch.app.db.session import Base
from freight_dispatch.app.models.load_enums import LoadStatus, RateType
from freight_dispatch.app.models.stop import Stop


# Fields a dispatcher assigns; all four are cleared on a carrier change
ASSIGNMENT_FIELDS = ("driver_id", "driver2_id", "truck_id", "trailer_id")


class Load(Base):
    """
    Load model.

    `version` is SQLAlchemy's optimistic concurrency counter: an UPDATE that
    was computed from a stale row matches zero rows and raises StaleDataError.
    """
    __tablename__ = "loads"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    reference_number = Column(String(100), nullable=False, index=True)

    status = Column(Enum(LoadStatus), default=LoadStatus.OPEN, nullable=False, index=True)

    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False, index=True)
    dispatcher_id = Column(Integer, nullable=True)  # user id from the auth service

    # Assignment (all optional)
    driver_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)
    driver2_id = Column(Integer, ForeignKey('drivers.id'), nullable=True, index=True)
    truck_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)
    trailer_id = Column(Integer, ForeignKey('vehicles.id'), nullable=True, index=True)

    # Brokerage
    carrier_id = Column(Integer, ForeignKey('carriers.id'), nullable=True, index=True)
    carrier_rate = Column(Float, nullable=True)

    # Rate
    rate_amount = Column(Float, nullable=False, default=0)
    rate_type = Column(Enum(RateType), default=RateType.FLAT, nullable=False)
    loaded_miles = Column(Float, nullable=False, default=0)
    commodity = Column(String(255), nullable=True)
    weight = Column(Float, nullable=True)
    equipment_type = Column(String(50), nullable=True)

    # Attached by external collaborators
    invoice_id = Column(Integer, nullable=True, index=True)
    settlement_id = Column(Integer, nullable=True, index=True)

    # Draft provenance (email import pipeline)
    email_import_id = Column(Integer, nullable=True)
    confidence_score = Column(Float, nullable=True)

    # Timestamps
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    version = Column(Integer, nullable=False)

    stops = relationship(
        Stop,
        back_populates="load",
        order_by=Stop.sequence_order,
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint(
            "driver_id IS NULL OR driver2_id IS NULL OR driver_id <> driver2_id",
            name="ck_loads_team_driver_distinct",
        ),
        CheckConstraint("carrier_rate IS NULL OR carrier_rate >= 0", name="ck_loads_carrier_rate"),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def locked_by_invoice(self) -> bool:
        """Manual status changes stop once an invoice is attached."""
        return self.invoice_id is not None

    @property
    def is_brokered(self) -> bool:
        return self.carrier_id is not None

    def assignment_snapshot(self) -> dict:
        return {field: getattr(self, field) for field in ASSIGNMENT_FIELDS}

    def __repr__(self):
        return f"<Load(id={self.id}, ref='{self.reference_number}', status='{self.status.value}')>"
