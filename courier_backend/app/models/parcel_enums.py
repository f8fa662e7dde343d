"""
Delivery Status Enumeration.
"""

import enum


class DeliveryStatus(str, enum.Enum):
    """
    Parcel delivery status enumeration.

    Status flow:
        PENDING → RIDER_ASSIGNED → IN_TRANSIT → DELIVERED
                                              → SERVICE_CENTER_DELIVERED
    """
    PENDING = "pending"
    RIDER_ASSIGNED = "rider-assigned"
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    SERVICE_CENTER_DELIVERED = "service-center-delivered"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_DELIVERY_STATUSES


# No rider-facing delivery action happens after these
TERMINAL_DELIVERY_STATUSES = frozenset({
    DeliveryStatus.DELIVERED,
    DeliveryStatus.SERVICE_CENTER_DELIVERED,
})
