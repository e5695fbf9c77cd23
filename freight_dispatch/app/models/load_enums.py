"""
Load-related enumerations.
"""

import enum


class LoadStatus(str, enum.Enum):
    """Load status enumeration, in dispatch board order."""
    OPEN = "OPEN"  # Booked, nothing scheduled yet
    SCHEDULED = "SCHEDULED"  # Driver committed to the pickup window
    IN_PICKUP_YARD = "IN_PICKUP_YARD"  # Driver checked in at the shipper
    IN_TRANSIT = "IN_TRANSIT"  # Loaded and rolling
    COMPLETED = "COMPLETED"  # Delivered
    TONU = "TONU"  # Truck ordered, not used
    CANCELLED = "CANCELLED"
    INVOICED = "INVOICED"  # Set only by the invoicing collaborator
    BROKERED = "BROKERED"  # Subcontracted to an external carrier


class RateType(str, enum.Enum):
    """How the load's rate_amount is expressed."""
    FLAT = "FLAT"
    CPM = "CPM"
    PERCENTAGE = "PERCENTAGE"


class StopType(str, enum.Enum):
    """Stop type enumeration."""
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
