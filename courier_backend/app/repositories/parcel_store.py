"""
Parcel store.

Storage access for parcels: lookups and listings, deletion of pending
parcels, and the earnings fields. Injected into the delivery and settlement
components; holds no state beyond its session.
"""

from decimal import Decimal
from typing import List, Optional

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from courier_backend.app.models.parcel import Parcel
from courier_backend.app.models.parcel_enums import DeliveryStatus, TERMINAL_DELIVERY_STATUSES


class ParcelStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, parcel_id: int) -> Optional[Parcel]:
        """Point lookup, always re-reading the row from the database."""
        result = await self.db.execute(
            select(Parcel)
            .where(Parcel.id == parcel_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_parcels(
        self,
        rider_id: Optional[int] = None,
        status: Optional[DeliveryStatus] = None,
        limit: int = 50,
    ) -> List[Parcel]:
        """Parcels, newest first, optionally filtered by assigned rider and status."""
        query = select(Parcel).order_by(desc(Parcel.created_at), desc(Parcel.id))

        if rider_id is not None:
            query = query.where(Parcel.assigned_rider_id == rider_id)

        if status is not None:
            query = query.where(Parcel.delivery_status == status)

        result = await self.db.execute(query.limit(limit))
        return list(result.scalars().all())

    async def delete(self, parcel: Parcel) -> None:
        await self.db.delete(parcel)
        await self.db.flush()

    async def find_unsettled_for_rider(self, rider_id: int) -> List[Parcel]:
        """
        Delivered parcels of a rider whose commission is not fully paid.

        Oldest completion first; parcels without a completion time go last,
        in insertion order.
        """
        result = await self.db.execute(
            select(Parcel)
            .where(
                Parcel.assigned_rider_id == rider_id,
                Parcel.delivery_status.in_(TERMINAL_DELIVERY_STATUSES),
                Parcel.earning_paid.is_(False),
            )
            .order_by(Parcel.delivered_at.asc().nulls_last(), Parcel.id.asc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def conditional_pay(
        self,
        parcel_id: int,
        expected_paid_amount: Decimal,
        new_paid_amount: Decimal,
        earning: Decimal,
    ) -> bool:
        """
        Compare-and-swap of a parcel's paid amount.

        Applies only if paid_amount still equals the value observed at
        selection time and the parcel is not yet settled. paid_amount only
        grows, so an equal value means no other settlement touched the row.

        Returns:
            True if exactly one row was updated
        """
        result = await self.db.execute(
            update(Parcel)
            .where(
                Parcel.id == parcel_id,
                Parcel.paid_amount == expected_paid_amount,
                Parcel.earning_paid.is_(False),
            )
            .values(
                paid_amount=new_paid_amount,
                earning=earning,
                earning_paid=new_paid_amount >= earning,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
