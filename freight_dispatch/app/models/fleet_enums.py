"""
Driver, vehicle and carrier enumerations.
"""

import enum


class DriverStatus(str, enum.Enum):
    """Driver status enumeration."""
    AVAILABLE = "AVAILABLE"
    EN_ROUTE = "EN_ROUTE"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"  # Excluded from assignment
    INACTIVE = "INACTIVE"  # Excluded from assignment


class VehicleType(str, enum.Enum):
    """Vehicle type enumeration."""
    TRACTOR = "TRACTOR"  # Assigned to a load as truck_id
    TRAILER = "TRAILER"  # Assigned to a load as trailer_id


class VehicleStatus(str, enum.Enum):
    """Vehicle status enumeration."""
    ACTIVE = "ACTIVE"
    IN_SHOP = "IN_SHOP"
    OUT_OF_SERVICE = "OUT_OF_SERVICE"
    INACTIVE = "INACTIVE"


class CarrierStatus(str, enum.Enum):
    """Carrier status enumeration."""
    PROSPECT = "PROSPECT"
    ACTIVE = "ACTIVE"  # Only ACTIVE carriers can take brokered loads
    SUSPENDED = "SUSPENDED"
    INACTIVE = "INACTIVE"
