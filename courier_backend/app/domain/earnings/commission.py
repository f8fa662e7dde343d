"""
Rider Commission Calculator (Domain Logic).

Pure pricing of the commission a rider earns for one delivered parcel:
    same sender/receiver region  -> cost * local rate (10%)
    different regions            -> cost * inter-region rate (20%)
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from courier_backend.app.core.config import settings

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """Quantize an amount to cents, half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_commission(
    cost,
    sender_region: str,
    receiver_region: str,
    local_rate: Optional[Decimal] = None,
    inter_region_rate: Optional[Decimal] = None,
) -> Decimal:
    """
    Compute the commission owed to the rider for one parcel.

    Args:
        cost: Amount charged to the sender (>= 0)
        sender_region: Region tag of the pickup
        receiver_region: Region tag of the drop-off
        local_rate: Override of settings.local_commission_rate
        inter_region_rate: Override of settings.inter_region_commission_rate

    Returns:
        Commission quantized to cents

    Raises:
        ValueError: If cost is negative
    """
    cost = Decimal(str(cost))
    if cost < 0:
        raise ValueError(f"Parcel cost must be non-negative, got {cost}")

    if sender_region == receiver_region:
        rate = local_rate if local_rate is not None else settings.local_commission_rate
    else:
        rate = inter_region_rate if inter_region_rate is not None else settings.inter_region_commission_rate

    return to_money(cost * Decimal(str(rate)))


def effective_earning(parcel) -> Decimal:
    """
    Commission for a parcel, recomputed from its own cost and regions.

    Once delivery is terminal the cached parcel.earning is a floor: a
    recomputation never lowers what the rider was already credited.
    """
    earning = calculate_commission(parcel.cost, parcel.sender_region, parcel.receiver_region)
    if parcel.delivery_status.is_terminal and parcel.earning is not None:
        earning = max(earning, to_money(parcel.earning))
    return earning
