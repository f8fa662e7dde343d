"""
Parcel Pydantic schemas.

Delivery status changes and rider assignment.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional
from courier_backend.app.models.parcel_enums import DeliveryStatus


class DeliveryStatusUpdate(BaseModel):
    """Schema for a rider advancing a parcel's delivery status."""
    status: DeliveryStatus = Field(..., description="Next delivery status")


class RiderAssignment(BaseModel):
    """Schema for assigning a rider to a parcel."""
    rider_id: int = Field(..., ge=1, description="Rider user ID")


class ParcelResponse(BaseModel):
    """Schema for parcel response."""
    id: int
    reference_code: str
    cost: Decimal
    sender_region: str
    receiver_region: str
    delivery_status: DeliveryStatus
    assigned_rider_id: Optional[int]
    assigned_at: Optional[datetime]
    delivered_at: Optional[datetime]
    earning: Decimal
    paid_amount: Decimal
    earning_paid: bool
    updated_at: datetime

    class Config:
        from_attributes = True


class ParcelDetailResponse(ParcelResponse):
    """Parcel with the sum of its cash-out ledger entries, for reconciliation."""
    ledger_total: Decimal


class ParcelDeleteResponse(BaseModel):
    message: str
    parcel_id: int
