"""
Cash-Out Ledger Entry database model.

Append-only record of money paid to a rider against one parcel.
"""

from sqlalchemy import Column, Integer, Numeric, ForeignKey, DateTime, Enum, String
from sqlalchemy.sql import func
from courier_backend.app.db.session import Base
from courier_backend.app.models.cashout_enums import CashOutStatus


class CashOutEntry(Base):
    """
    Cash-out ledger entry model.

    One row per parcel touched by a cash-out request. All rows written for
    the same request share a settlement_ref.
    NO updates or deletions allowed: the sum of a parcel's entries is its paid_amount.
    """
    __tablename__ = "cashout_ledger_entries"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Linkage
    rider_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    parcel_id = Column(Integer, ForeignKey('parcels.id'), nullable=False, index=True)
    settlement_ref = Column(String(36), nullable=False, index=True)

    # Financials
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(Enum(CashOutStatus), default=CashOutStatus.COMPLETED, nullable=False, index=True)

    # Timestamps (Immutable - no updated_at)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # created_at is read back on INSERT
    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self):
        return f"<CashOutEntry(id={self.id}, rider_id={self.rider_id}, parcel_id={self.parcel_id}, amount={self.amount})>"
