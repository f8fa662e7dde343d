"""
Cash-Out Ledger Writer.

Applies a settlement plan: pays down each parcel with a conditional update
and appends one completed ledger entry per parcel. Writes are flushed into
the caller's transaction; the caller commits or rolls back the whole plan.
"""

import logging
import uuid
from typing import List, Optional, Sequence

from courier_backend.app.core.exceptions import SettlementConflictError
from courier_backend.app.domain.earnings.distributor import PlanItem
from courier_backend.app.models.cashout_entry import CashOutEntry
from courier_backend.app.models.cashout_enums import CashOutStatus
from courier_backend.app.repositories.ledger_store import LedgerStore
from courier_backend.app.repositories.parcel_store import ParcelStore

logger = logging.getLogger(__name__)


class LedgerWriter:

    def __init__(self, parcel_store: ParcelStore, ledger_store: LedgerStore):
        self.parcel_store = parcel_store
        self.ledger_store = ledger_store

    async def apply(
        self,
        rider_id: int,
        plan: Sequence[PlanItem],
        settlement_ref: Optional[str] = None,
    ) -> List[CashOutEntry]:
        """
        Write one settlement.

        Raises:
            SettlementConflictError: a parcel's paid amount no longer matches
                the snapshot the plan was built from. Earlier steps of the
                plan are only flushed, so rolling back discards them.
        """
        settlement_ref = settlement_ref or str(uuid.uuid4())
        entries = []

        for item in plan:
            snapshot = item.parcel
            applied = await self.parcel_store.conditional_pay(
                parcel_id=snapshot.parcel_id,
                expected_paid_amount=snapshot.paid_amount,
                new_paid_amount=snapshot.paid_amount + item.amount,
                earning=snapshot.earning,
            )
            if not applied:
                logger.info(
                    "Settlement %s conflicted on parcel %s (rider %s)",
                    settlement_ref, snapshot.parcel_id, rider_id
                )
                raise SettlementConflictError(snapshot.parcel_id)

            entries.append(CashOutEntry(
                rider_id=rider_id,
                parcel_id=snapshot.parcel_id,
                settlement_ref=settlement_ref,
                amount=item.amount,
                status=CashOutStatus.COMPLETED,
            ))

        return await self.ledger_store.append(entries)
