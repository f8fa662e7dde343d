"""
Cash-Out Eligibility Selector.

Finds the parcels a rider can be paid against: delivered (terminal status),
assigned to the rider, not fully settled, with a non-zero commission.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from courier_backend.app.core.exceptions import ParcelNotFoundError
from courier_backend.app.domain.earnings.commission import effective_earning, to_money
from courier_backend.app.models.parcel import Parcel
from courier_backend.app.repositories.parcel_store import ParcelStore


@dataclass(frozen=True)
class EligibleParcel:
    """Snapshot of a parcel's balance as observed at selection time."""
    parcel_id: int
    earning: Decimal
    paid_amount: Decimal
    delivered_at: Optional[datetime] = None

    @property
    def available(self) -> Decimal:
        return self.earning - self.paid_amount


def snapshot(parcel: Parcel) -> Optional[EligibleParcel]:
    """Return the parcel's eligible snapshot, or None if nothing is owed on it."""
    if not parcel.delivery_status.is_terminal or parcel.earning_paid:
        return None

    earning = effective_earning(parcel)
    paid_amount = to_money(parcel.paid_amount)
    if earning <= 0 or earning - paid_amount <= 0:
        return None

    return EligibleParcel(
        parcel_id=parcel.id,
        earning=earning,
        paid_amount=paid_amount,
        delivered_at=parcel.delivered_at,
    )


class EligibilitySelector:

    def __init__(self, parcel_store: ParcelStore):
        self.parcel_store = parcel_store

    async def eligible_parcels(self, rider_id: int) -> List[EligibleParcel]:
        """All of the rider's outstanding parcels, oldest delivery first."""
        parcels = await self.parcel_store.find_unsettled_for_rider(rider_id)
        eligible = []
        for parcel in parcels:
            item = snapshot(parcel)
            if item is not None:
                eligible.append(item)
        return eligible

    async def eligible_parcel(self, rider_id: int, parcel_id: int) -> List[EligibleParcel]:
        """
        Eligibility restricted to one named parcel.

        Raises:
            ParcelNotFoundError: parcel missing or assigned to someone else
        """
        parcel = await self.parcel_store.get(parcel_id)
        if parcel is None or parcel.assigned_rider_id != rider_id:
            raise ParcelNotFoundError(parcel_id)

        item = snapshot(parcel)
        return [item] if item is not None else []
