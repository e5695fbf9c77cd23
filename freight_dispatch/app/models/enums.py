"""
User roles enumeration.

Roles are carried in the bearer token issued by the auth service.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Full access
        DISPATCHER: Books loads, assigns drivers and equipment, moves status
        ACCOUNTANT: Attaches invoices and settlements
    """
    ADMIN = "ADMIN"
    DISPATCHER = "DISPATCHER"
    ACCOUNTANT = "ACCOUNTANT"
