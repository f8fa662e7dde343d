"""
Cash-Out Distributor (Domain Logic).

Allocates a requested cash-out amount across a rider's eligible parcels.

Flow:
1. Validate amount against the policy minimum
2. Validate there is something to pay against
3. Validate the request does not exceed the total outstanding balance
4. Greedy single pass in eligibility order: pay each parcel
   min(remaining, available) until nothing remains

The result is a settlement plan; nothing is written here.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence

from courier_backend.app.core.exceptions import (
    BelowMinimumError, InsufficientEarningsError, InvalidCashOutAmountError, NoEarningsAvailableError
)
from courier_backend.app.domain.earnings.commission import CENT, ZERO
from courier_backend.app.domain.earnings.eligibility import EligibleParcel


@dataclass(frozen=True)
class PlanItem:
    parcel: EligibleParcel
    amount: Decimal


def parse_amount(amount) -> Decimal:
    """
    Convert a requested amount to Decimal cents without rounding.

    Raises:
        InvalidCashOutAmountError: not a finite number, or finer than a cent
    """
    try:
        value = Decimal(str(amount))
        if not value.is_finite() or value != value.quantize(CENT):
            raise InvalidCashOutAmountError(amount)
    except InvalidOperation:
        raise InvalidCashOutAmountError(amount)
    return value.quantize(CENT)


def check_minimum(requested_amount: Decimal, minimum: Optional[Decimal]) -> None:
    """Raise BelowMinimumError for non-positive amounts or amounts under the minimum."""
    floor = minimum if minimum is not None else ZERO
    if requested_amount <= 0 or requested_amount < floor:
        raise BelowMinimumError(requested_amount, floor)


def total_available(eligible: Sequence[EligibleParcel]) -> Decimal:
    return sum((max(p.available, ZERO) for p in eligible), ZERO)


def distribute(
    rider_id: int,
    requested_amount: Decimal,
    eligible: Sequence[EligibleParcel],
    minimum: Optional[Decimal] = None,
) -> List[PlanItem]:
    """
    Build the settlement plan for one cash-out request.

    Args:
        rider_id: Rider requesting the cash-out
        requested_amount: Amount to pay out
        eligible: Parcels in payout order (oldest first)
        minimum: Policy minimum; None only enforces a positive amount

    Returns:
        Plan items whose amounts sum exactly to requested_amount

    Raises:
        BelowMinimumError, NoEarningsAvailableError, InsufficientEarningsError
    """
    check_minimum(requested_amount, minimum)

    if not eligible:
        raise NoEarningsAvailableError(rider_id)

    available = total_available(eligible)
    if requested_amount > available:
        raise InsufficientEarningsError(requested_amount, available)

    plan = []
    remaining = requested_amount
    for parcel in eligible:
        if remaining <= 0:
            break
        if parcel.available <= 0:
            continue
        pay = min(remaining, parcel.available)
        plan.append(PlanItem(parcel=parcel, amount=pay))
        remaining -= pay

    return plan
