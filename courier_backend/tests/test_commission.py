"""
Unit tests for the rider commission calculator.
"""

import pytest
from decimal import Decimal

from courier_backend.app.domain.earnings.commission import (
    calculate_commission, effective_earning, to_money
)
from courier_backend.app.models.parcel import Parcel
from courier_backend.app.models.parcel_enums import DeliveryStatus


def test_same_region_earns_local_rate():
    assert calculate_commission(Decimal("1000"), "Dhaka", "Dhaka") == Decimal("100.00")


def test_inter_region_earns_double():
    assert calculate_commission(Decimal("1000"), "Dhaka", "Sylhet") == Decimal("200.00")


def test_zero_cost_earns_nothing():
    assert calculate_commission(Decimal("0"), "Dhaka", "Sylhet") == Decimal("0.00")


def test_negative_cost_rejected():
    with pytest.raises(ValueError):
        calculate_commission(Decimal("-1"), "Dhaka", "Dhaka")


def test_commission_is_deterministic():
    first = calculate_commission("333.33", "Khulna", "Rajshahi")
    second = calculate_commission("333.33", "Khulna", "Rajshahi")
    assert first == second == Decimal("66.67")


def test_commission_rounds_half_up_to_cents():
    # 0.25 * 0.10 = 0.025
    assert calculate_commission("0.25", "A", "A") == Decimal("0.03")


def test_rate_overrides():
    assert calculate_commission("1000", "A", "A", local_rate=Decimal("0.05")) == Decimal("50.00")
    assert calculate_commission("1000", "A", "B", inter_region_rate=Decimal("0.25")) == Decimal("250.00")


def test_to_money_accepts_floats_and_strings():
    assert to_money(12.5) == Decimal("12.50")
    assert to_money("7") == Decimal("7.00")


def _parcel(cost, status, earning="0", sender="Dhaka", receiver="Dhaka"):
    return Parcel(
        cost=Decimal(cost),
        sender_region=sender,
        receiver_region=receiver,
        delivery_status=status,
        earning=Decimal(earning),
        paid_amount=Decimal("0"),
    )


def test_effective_earning_recomputes_from_cost():
    parcel = _parcel("1000", DeliveryStatus.DELIVERED, earning="40")
    assert effective_earning(parcel) == Decimal("100.00")


def test_effective_earning_never_below_cached_terminal_earning():
    # Cost edited down after delivery: rider keeps what was credited
    parcel = _parcel("100", DeliveryStatus.SERVICE_CENTER_DELIVERED, earning="100")
    assert effective_earning(parcel) == Decimal("100.00")


def test_effective_earning_ignores_stale_value_before_delivery():
    parcel = _parcel("100", DeliveryStatus.IN_TRANSIT, earning="500")
    assert effective_earning(parcel) == Decimal("10.00")
