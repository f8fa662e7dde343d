"""
Integration tests for the rider cash-out service.

Runs the full selection -> distribution -> ledger write flow against the
in-memory database.
"""

import pytest
from decimal import Decimal

from courier_backend.app.core.config import Settings
from courier_backend.app.core.exceptions import (
    BelowMinimumError, InsufficientEarningsError, InvalidCashOutAmountError,
    NoEarningsAvailableError, ParcelNotFoundError
)
from courier_backend.app.domain.earnings.cashout_service import CashOutService
from courier_backend.app.models.cashout_enums import CashOutStatus
from courier_backend.app.models.parcel_enums import DeliveryStatus
from courier_backend.app.repositories.ledger_store import LedgerStore


@pytest.fixture
def service(db_session, cashout_settings):
    return CashOutService(db_session, config=cashout_settings)


async def _assert_parcel_invariants(db_session, parcel):
    ledger_total = await LedgerStore(db_session).total_for_parcel(parcel.id)
    assert Decimal("0") <= parcel.paid_amount <= parcel.earning
    assert parcel.earning_paid == (parcel.paid_amount >= parcel.earning)
    assert ledger_total == parcel.paid_amount


# Scenario A
@pytest.mark.asyncio
async def test_named_parcel_paid_in_full(service, db_session, rider, make_parcel, reload_parcel):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=rider_id, cost="1000")
    parcel_id = parcel.id
    assert parcel.earning == Decimal("100.00")

    result = await service.request_cashout(rider_id, Decimal("100"), parcel_id=parcel_id)

    assert result.total_paid == Decimal("100")
    assert [(e.parcel_id, e.amount) for e in result.entries] == [(parcel_id, Decimal("100"))]
    assert result.entries[0].status == CashOutStatus.COMPLETED

    parcel = await reload_parcel(parcel_id)
    assert parcel.paid_amount == Decimal("100")
    assert parcel.earning_paid is True
    await _assert_parcel_invariants(db_session, parcel)


# Scenario B
@pytest.mark.asyncio
async def test_partial_payout_leaves_parcel_unsettled(service, db_session, rider, make_parcel, reload_parcel):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=rider_id, cost="1000", receiver_region="Sylhet")
    parcel_id = parcel.id
    assert parcel.earning == Decimal("200.00")

    result = await service.request_cashout(rider_id, Decimal("50"))

    assert result.total_paid == Decimal("50")
    parcel = await reload_parcel(parcel_id)
    assert parcel.paid_amount == Decimal("50")
    assert parcel.earning_paid is False
    await _assert_parcel_invariants(db_session, parcel)


# Scenario C
@pytest.mark.asyncio
async def test_payout_spills_from_oldest_to_newer_parcel(service, db_session, rider, make_parcel, reload_parcel):
    rider_id = rider.id
    newer = await make_parcel(rider_id=rider_id, cost="400", days_ago=1)
    older = await make_parcel(rider_id=rider_id, cost="300", days_ago=3)
    newer_id, older_id = newer.id, older.id

    result = await service.request_cashout(rider_id, Decimal("50"))

    assert [(e.parcel_id, e.amount) for e in result.entries] == [
        (older_id, Decimal("30.00")),
        (newer_id, Decimal("20.00")),
    ]
    assert len({e.settlement_ref for e in result.entries}) == 1

    older = await reload_parcel(older_id)
    newer = await reload_parcel(newer_id)
    assert older.earning_paid is True
    assert newer.paid_amount == Decimal("20")
    assert newer.earning_paid is False
    await _assert_parcel_invariants(db_session, older)
    await _assert_parcel_invariants(db_session, newer)


# Scenario D
@pytest.mark.asyncio
async def test_over_request_fails_without_mutation(service, db_session, rider, make_parcel, reload_parcel):
    rider_id = rider.id
    first = await make_parcel(rider_id=rider_id, cost="300", days_ago=3)
    second = await make_parcel(rider_id=rider_id, cost="400", days_ago=1)
    ids = [first.id, second.id]

    with pytest.raises(InsufficientEarningsError):
        await service.request_cashout(rider_id, Decimal("80"))

    for parcel_id in ids:
        parcel = await reload_parcel(parcel_id)
        assert parcel.paid_amount == Decimal("0")
        assert parcel.earning_paid is False
    assert await LedgerStore(db_session).list_for_rider(rider_id) == []


# Scenario E
@pytest.mark.asyncio
async def test_below_minimum_rejected_before_eligibility_lookup(db_session, rider, make_parcel, mocker):
    rider_id = rider.id
    await make_parcel(rider_id=rider_id, cost="5000")
    service = CashOutService(db_session, config=Settings(cashout_minimum_amount=Decimal("200")))
    find_spy = mocker.spy(service.parcel_store, "find_unsettled_for_rider")
    get_spy = mocker.spy(service.parcel_store, "get")

    with pytest.raises(BelowMinimumError):
        await service.request_cashout(rider_id, Decimal("100"))

    assert find_spy.call_count == 0
    assert get_spy.call_count == 0


@pytest.mark.asyncio
async def test_sub_cent_amount_rejected_instead_of_rounded(service, db_session, rider, make_parcel, reload_parcel, mocker):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=rider_id, cost="1000")
    parcel_id = parcel.id
    find_spy = mocker.spy(service.parcel_store, "find_unsettled_for_rider")

    with pytest.raises(InvalidCashOutAmountError):
        await service.request_cashout(rider_id, Decimal("20.004"))

    assert find_spy.call_count == 0
    assert (await reload_parcel(parcel_id)).paid_amount == Decimal("0")
    assert await LedgerStore(db_session).list_for_rider(rider_id) == []


@pytest.mark.asyncio
async def test_conservation_of_outstanding_balance(service, rider, make_parcel):
    rider_id = rider.id
    await make_parcel(rider_id=rider_id, cost="300", days_ago=4)
    await make_parcel(rider_id=rider_id, cost="1000", receiver_region="Sylhet", days_ago=2)

    before = await service.earnings_summary(rider_id)
    await service.request_cashout(rider_id, Decimal("125.50"))
    after = await service.earnings_summary(rider_id)

    assert before.outstanding_balance - after.outstanding_balance == Decimal("125.50")
    assert after.total_paid_out == Decimal("125.50")


@pytest.mark.asyncio
async def test_repeated_cashouts_settle_everything(service, db_session, rider, make_parcel, reload_parcel):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=rider_id, cost="1000")
    parcel_id = parcel.id

    await service.request_cashout(rider_id, Decimal("60"))
    await service.request_cashout(rider_id, Decimal("40"))

    parcel = await reload_parcel(parcel_id)
    assert parcel.earning_paid is True
    await _assert_parcel_invariants(db_session, parcel)

    with pytest.raises(NoEarningsAvailableError):
        await service.request_cashout(rider_id, Decimal("10"))


@pytest.mark.asyncio
async def test_undelivered_parcels_are_not_eligible(service, db_session, rider, make_parcel):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=rider_id, cost="1000", status=DeliveryStatus.IN_TRANSIT)
    # Stale earning on a parcel still in transit
    parcel.earning = Decimal("100")
    await db_session.commit()

    with pytest.raises(NoEarningsAvailableError):
        await service.request_cashout(rider_id, Decimal("50"))


@pytest.mark.asyncio
async def test_zero_cost_parcel_is_settled_and_excluded(service, rider, make_parcel, reload_parcel):
    rider_id = rider.id
    free = await make_parcel(rider_id=rider_id, cost="0", days_ago=5)
    paid = await make_parcel(rider_id=rider_id, cost="1000", days_ago=1)
    free_id, paid_id = free.id, paid.id
    assert free.earning_paid is True

    result = await service.request_cashout(rider_id, Decimal("20"))

    assert [e.parcel_id for e in result.entries] == [paid_id]
    assert (await reload_parcel(free_id)).paid_amount == Decimal("0")


@pytest.mark.asyncio
async def test_other_riders_parcels_are_ignored(service, rider, other_rider, make_parcel):
    rider_id, other_id = rider.id, other_rider.id
    await make_parcel(rider_id=other_id, cost="1000")

    with pytest.raises(NoEarningsAvailableError):
        await service.request_cashout(rider_id, Decimal("50"))


@pytest.mark.asyncio
async def test_named_parcel_of_another_rider_not_found(service, rider, other_rider, make_parcel):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=other_rider.id, cost="1000")
    parcel_id = parcel.id

    with pytest.raises(ParcelNotFoundError):
        await service.request_cashout(rider_id, Decimal("50"), parcel_id=parcel_id)


@pytest.mark.asyncio
async def test_named_parcel_missing(service, rider):
    with pytest.raises(ParcelNotFoundError):
        await service.request_cashout(rider.id, Decimal("50"), parcel_id=9999)


@pytest.mark.asyncio
async def test_named_parcel_only_pays_that_parcel(service, rider, make_parcel):
    rider_id = rider.id
    await make_parcel(rider_id=rider_id, cost="1000", days_ago=5)
    named = await make_parcel(rider_id=rider_id, cost="1000", days_ago=1)
    named_id = named.id

    result = await service.request_cashout(rider_id, Decimal("30"), parcel_id=named_id)

    assert [e.parcel_id for e in result.entries] == [named_id]


@pytest.mark.asyncio
async def test_named_parcel_over_request_rejected_by_default(service, rider, make_parcel):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=rider_id, cost="1000")
    parcel_id = parcel.id

    with pytest.raises(InsufficientEarningsError):
        await service.request_cashout(rider_id, Decimal("150"), parcel_id=parcel_id)


@pytest.mark.asyncio
async def test_named_parcel_over_request_capped_when_configured(db_session, rider, make_parcel, reload_parcel):
    rider_id = rider.id
    parcel = await make_parcel(rider_id=rider_id, cost="1000")
    parcel_id = parcel.id
    service = CashOutService(
        db_session,
        config=Settings(cashout_minimum_amount=Decimal("10"), cashout_named_parcel_policy="cap"),
    )

    result = await service.request_cashout(rider_id, Decimal("150"), parcel_id=parcel_id)

    assert result.total_paid == Decimal("100")
    assert (await reload_parcel(parcel_id)).earning_paid is True


@pytest.mark.asyncio
async def test_history_and_summary(service, rider, make_parcel):
    rider_id = rider.id
    await make_parcel(rider_id=rider_id, cost="300", days_ago=3)
    await make_parcel(rider_id=rider_id, cost="400", days_ago=1)

    await service.request_cashout(rider_id, Decimal("50"))

    history = await service.cashout_history(rider_id)
    assert sorted(e.amount for e in history) == [Decimal("20.00"), Decimal("30.00")]

    summary = await service.earnings_summary(rider_id)
    assert summary.outstanding_balance == Decimal("20.00")
    assert summary.eligible_parcel_count == 1
    assert summary.total_paid_out == Decimal("50.00")
