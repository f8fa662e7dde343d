"""
Rider Cash-Out Service (Domain Logic).

Handles a rider's request to withdraw earned commission.

Flow:
1. Validate amount against the policy minimum (no store access yet)
2. Select eligible parcels (all outstanding, or one named parcel)
3. Build the settlement plan (greedy, oldest delivery first)
4. Write conditional parcel updates + ledger entries, commit
5. On a concurrent modification, roll back and restart from step 2,
   up to cashout_max_attempts times

Validation failures are final and never retried. Store failures are
surfaced as StoreUnavailableError without retry.
"""

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from courier_backend.app.core.config import Settings, settings as default_settings
from courier_backend.app.core.exceptions import (
    AppException, SettlementConflictError, StoreUnavailableError
)
from courier_backend.app.domain.earnings.distributor import (
    check_minimum, distribute, parse_amount, total_available
)
from courier_backend.app.domain.earnings.eligibility import EligibilitySelector, EligibleParcel
from courier_backend.app.domain.earnings.ledger_writer import LedgerWriter
from courier_backend.app.models.cashout_entry import CashOutEntry
from courier_backend.app.repositories.ledger_store import LedgerStore
from courier_backend.app.repositories.parcel_store import ParcelStore

logger = logging.getLogger(__name__)


@dataclass
class CashOutResult:
    settlement_ref: str
    rider_id: int
    total_paid: Decimal
    entries: List[CashOutEntry] = field(default_factory=list)
    attempts: int = 1


@dataclass
class EarningsSummary:
    rider_id: int
    outstanding_balance: Decimal
    eligible_parcel_count: int
    total_paid_out: Decimal


class CashOutService:

    def __init__(
        self,
        db: AsyncSession,
        parcel_store: Optional[ParcelStore] = None,
        ledger_store: Optional[LedgerStore] = None,
        config: Optional[Settings] = None,
    ):
        self.db = db
        self.parcel_store = parcel_store or ParcelStore(db)
        self.ledger_store = ledger_store or LedgerStore(db)
        self.config = config or default_settings
        self.selector = EligibilitySelector(self.parcel_store)
        self.writer = LedgerWriter(self.parcel_store, self.ledger_store)

    async def request_cashout(
        self,
        rider_id: int,
        amount,
        parcel_id: Optional[int] = None,
    ) -> CashOutResult:
        """
        Pay out `amount` of the rider's outstanding commission.

        Args:
            rider_id: Verified rider identity
            amount: Requested amount, whole cents (never rounded)
            parcel_id: Restrict the payout to this parcel

        Returns:
            CashOutResult with the committed ledger entries

        Raises:
            InvalidCashOutAmountError, BelowMinimumError, NoEarningsAvailableError, InsufficientEarningsError,
            ParcelNotFoundError, SettlementConflictError, StoreUnavailableError
        """
        requested = parse_amount(amount)
        check_minimum(requested, self.config.cashout_minimum_amount)

        max_attempts = max(1, self.config.cashout_max_attempts)
        for attempt in range(1, max_attempts + 1):
            try:
                result = await self._settle_once(rider_id, requested, parcel_id)
            except SettlementConflictError as exc:
                await self._rollback()
                if attempt == max_attempts:
                    logger.error(
                        "Cash-out for rider %s gave up after %s conflicting attempts",
                        rider_id, attempt
                    )
                    raise SettlementConflictError(exc.parcel_id, attempts=attempt) from exc
                logger.warning(
                    "Cash-out for rider %s conflicted on parcel %s, retrying (attempt %s/%s)",
                    rider_id, exc.parcel_id, attempt, max_attempts
                )
                continue
            except AppException:
                await self._rollback()
                raise
            except SQLAlchemyError as exc:
                await self._rollback()
                logger.exception("Store failure during cash-out for rider %s", rider_id)
                raise StoreUnavailableError("cashout") from exc

            result.attempts = attempt
            logger.info(
                "Cash-out %s completed: rider=%s amount=%s parcels=%s attempts=%s",
                result.settlement_ref, rider_id, result.total_paid, len(result.entries), attempt
            )
            return result

    async def _settle_once(
        self,
        rider_id: int,
        requested: Decimal,
        parcel_id: Optional[int],
    ) -> CashOutResult:
        if parcel_id is None:
            eligible = await self.selector.eligible_parcels(rider_id)
        else:
            eligible = await self.selector.eligible_parcel(rider_id, parcel_id)
            if eligible and self.config.cashout_named_parcel_policy == "cap":
                requested = min(requested, eligible[0].available)

        plan = distribute(rider_id, requested, eligible)

        settlement_ref = str(uuid.uuid4())
        entries = await self.writer.apply(rider_id, plan, settlement_ref)
        await self.db.commit()

        return CashOutResult(
            settlement_ref=settlement_ref,
            rider_id=rider_id,
            total_paid=sum((e.amount for e in entries), Decimal("0")),
            entries=entries,
        )

    async def _rollback(self) -> None:
        try:
            await self.db.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed after cash-out error", exc_info=True)

    async def outstanding_parcels(self, rider_id: int) -> List[EligibleParcel]:
        try:
            return await self.selector.eligible_parcels(rider_id)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("outstanding_parcels") from exc

    async def earnings_summary(self, rider_id: int) -> EarningsSummary:
        try:
            eligible = await self.selector.eligible_parcels(rider_id)
            paid_out = await self.ledger_store.total_completed(rider_id)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("earnings_summary") from exc

        return EarningsSummary(
            rider_id=rider_id,
            outstanding_balance=total_available(eligible),
            eligible_parcel_count=len(eligible),
            total_paid_out=paid_out,
        )

    async def cashout_history(self, rider_id: int, limit: int = 50) -> List[CashOutEntry]:
        try:
            return await self.ledger_store.list_for_rider(rider_id, limit)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("cashout_history") from exc
