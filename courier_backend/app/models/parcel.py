"""
Parcel database model.

The logistics subsystem owns the parcel; the settlement engine only mutates
the earnings fields (earning, paid_amount, earning_paid).
"""

from decimal import Decimal
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Enum, Boolean
from sqlalchemy.sql import func
from courier_backend.app.db.session import Base
from courier_backend.app.models.parcel_enums import DeliveryStatus


class Parcel(Base):
    """
    Parcel model for the courier platform.

    Earnings fields:
        earning: commission cached once delivery is terminal
        paid_amount: cumulative amount paid out to the rider, never decreases
        earning_paid: True iff paid_amount >= earning
    """
    __tablename__ = "parcels"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    reference_code = Column(String(100), unique=True, nullable=False, index=True)

    # Pricing inputs
    cost = Column(Numeric(12, 2), nullable=False)
    sender_region = Column(String(100), nullable=False)
    receiver_region = Column(String(100), nullable=False)

    # Delivery
    delivery_status = Column(Enum(DeliveryStatus), default=DeliveryStatus.PENDING, nullable=False, index=True)
    assigned_rider_id = Column(Integer, ForeignKey('users.id'), nullable=True, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Rider earnings
    earning = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    paid_amount = Column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    earning_paid = Column(Boolean, default=False, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Parcel(id={self.id}, ref='{self.reference_code}', status='{self.delivery_status.value}', rider={self.assigned_rider_id})>"
