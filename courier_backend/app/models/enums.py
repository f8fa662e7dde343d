"""
User roles enumeration.

Defines the role types for the courier platform.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Operations staff, assigns riders to parcels
        MERCHANT: Books parcels for delivery
        RIDER: Delivers parcels and cashes out earned commission
    """
    ADMIN = "ADMIN"
    MERCHANT = "MERCHANT"
    RIDER = "RIDER"
