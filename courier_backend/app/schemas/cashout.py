"""
Cash-Out Schemas.

Defines request and response models for rider earnings and cash-outs.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from courier_backend.app.models.cashout_enums import CashOutStatus


class CashOutRequest(BaseModel):
    """Schema for a rider's cash-out request."""
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, description="Amount to withdraw")
    parcel_id: Optional[int] = Field(None, ge=1, description="Restrict the payout to this parcel")


class CashOutEntryResponse(BaseModel):
    """Schema for one cash-out ledger entry."""
    id: int
    parcel_id: int
    settlement_ref: str
    amount: Decimal
    status: CashOutStatus
    created_at: datetime

    class Config:
        from_attributes = True


class CashOutResponse(BaseModel):
    """Result of a committed cash-out."""
    settlement_ref: str
    rider_id: int
    total_paid: Decimal
    entries: List[CashOutEntryResponse]


class OutstandingParcelResponse(BaseModel):
    """A delivered parcel with commission still owed to the rider."""
    parcel_id: int
    earning: Decimal
    paid_amount: Decimal
    available: Decimal
    delivered_at: Optional[datetime]


class EarningsSummaryResponse(BaseModel):
    """Rider earnings totals."""
    rider_id: int
    outstanding_balance: Decimal
    eligible_parcel_count: int
    total_paid_out: Decimal
    cashout_minimum: Decimal
