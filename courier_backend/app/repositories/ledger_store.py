"""
Cash-out ledger store.

Append-only access to cash-out ledger entries plus the rider-level reads
(history, completed total).
"""

from decimal import Decimal
from typing import List, Sequence

from sqlalchemy import select, func, desc
from sqlalchemy.ext.asyncio import AsyncSession

from courier_backend.app.models.cashout_entry import CashOutEntry
from courier_backend.app.models.cashout_enums import CashOutStatus

CENT = Decimal("0.01")


class LedgerStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(self, entries: Sequence[CashOutEntry]) -> List[CashOutEntry]:
        """Insert entries in order and flush to assign ids."""
        self.db.add_all(entries)
        await self.db.flush()
        return list(entries)

    async def list_for_rider(self, rider_id: int, limit: int = 50) -> List[CashOutEntry]:
        """Rider's cash-out history, newest first."""
        result = await self.db.execute(
            select(CashOutEntry)
            .where(CashOutEntry.rider_id == rider_id)
            .order_by(desc(CashOutEntry.created_at), desc(CashOutEntry.id))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def total_completed(self, rider_id: int) -> Decimal:
        """Sum of the rider's completed payouts."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(CashOutEntry.amount), 0)).where(
                CashOutEntry.rider_id == rider_id,
                CashOutEntry.status == CashOutStatus.COMPLETED,
            )
        )
        return Decimal(str(result.scalar_one())).quantize(CENT)

    async def total_for_parcel(self, parcel_id: int) -> Decimal:
        """Sum of all entries written against one parcel."""
        result = await self.db.execute(
            select(func.coalesce(func.sum(CashOutEntry.amount), 0)).where(
                CashOutEntry.parcel_id == parcel_id
            )
        )
        return Decimal(str(result.scalar_one())).quantize(CENT)
