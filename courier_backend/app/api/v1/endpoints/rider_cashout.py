"""
Rider Earnings & Cash-Out API Endpoints.

Riders review outstanding commission and withdraw it against their
delivered parcels.
"""

import logging
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, List

from courier_backend.app.db.session import get_db
from courier_backend.app.core.config import settings
from courier_backend.app.core.exceptions import (
    BelowMinimumError, InsufficientEarningsError, InvalidCashOutAmountError,
    NoEarningsAvailableError, ParcelNotFoundError
)
from courier_backend.app.core.guards import require_rider
from courier_backend.app.domain.earnings.cashout_service import CashOutService
from courier_backend.app.schemas.cashout import (
    CashOutRequest, CashOutResponse, CashOutEntryResponse,
    EarningsSummaryResponse, OutstandingParcelResponse
)
from courier_backend.app.services.audit import log_event, AuditAction

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rider", tags=["Rider - Earnings"])


async def _audit_cashout(db: AsyncSession, action: str, current_user: dict, metadata: Dict[str, Any]) -> None:
    """
    Write the cash-out audit row.

    The settlement is already committed or rolled back at this point, so an
    audit failure is logged and must not change the response.
    """
    try:
        await log_event(
            db=db,
            action=action,
            actor_id=current_user["user_id"],
            actor_username=current_user.get("sub"),
            metadata=metadata
        )
    except SQLAlchemyError:
        logger.exception("Failed to write %s audit row: %s", action, metadata)
        await db.rollback()


@router.post("/cashouts", response_model=CashOutResponse, status_code=status.HTTP_201_CREATED)
async def request_cashout(
    cashout: CashOutRequest,
    current_user: dict = Depends(require_rider),
    db: AsyncSession = Depends(get_db)
):
    """
    Withdraw earned commission (Rider only).

    Pays down the oldest delivered parcels first, or only the named parcel
    when parcel_id is given. Either the whole amount is settled or the
    request fails with no balance changed.
    """
    rider_id = current_user["user_id"]
    service = CashOutService(db)

    try:
        result = await service.request_cashout(rider_id, cashout.amount, cashout.parcel_id)
    except (
        InvalidCashOutAmountError, BelowMinimumError, NoEarningsAvailableError,
        InsufficientEarningsError, ParcelNotFoundError
    ) as exc:
        await _audit_cashout(db, AuditAction.CASHOUT_REJECTED, current_user, {
            "error_code": exc.error_code,
            "amount": str(cashout.amount),
            "parcel_id": cashout.parcel_id
        })
        raise

    # Entries expire if a failed audit write rolls back
    response = CashOutResponse(
        settlement_ref=result.settlement_ref,
        rider_id=rider_id,
        total_paid=result.total_paid,
        entries=[CashOutEntryResponse.model_validate(entry) for entry in result.entries]
    )

    await _audit_cashout(db, AuditAction.CASHOUT_COMPLETED, current_user, {
        "settlement_ref": response.settlement_ref,
        "total_paid": str(response.total_paid),
        "parcel_ids": [entry.parcel_id for entry in response.entries],
        "attempts": result.attempts
    })

    return response


@router.get("/cashouts", response_model=List[CashOutEntryResponse])
async def list_cashouts(
    limit: int = Query(50, ge=1, le=200, description="Maximum entries"),
    current_user: dict = Depends(require_rider),
    db: AsyncSession = Depends(get_db)
):
    """Cash-out ledger history for the rider, newest first."""
    service = CashOutService(db)
    return await service.cashout_history(current_user["user_id"], limit)


@router.get("/earnings", response_model=List[OutstandingParcelResponse])
async def list_outstanding_earnings(
    current_user: dict = Depends(require_rider),
    db: AsyncSession = Depends(get_db)
):
    """Delivered parcels with commission still owed, in payout order."""
    service = CashOutService(db)
    eligible = await service.outstanding_parcels(current_user["user_id"])
    return [
        OutstandingParcelResponse(
            parcel_id=item.parcel_id,
            earning=item.earning,
            paid_amount=item.paid_amount,
            available=item.available,
            delivered_at=item.delivered_at
        )
        for item in eligible
    ]


@router.get("/earnings/summary", response_model=EarningsSummaryResponse)
async def earnings_summary(
    current_user: dict = Depends(require_rider),
    db: AsyncSession = Depends(get_db)
):
    """Outstanding balance and lifetime payouts for the rider."""
    service = CashOutService(db)
    summary = await service.earnings_summary(current_user["user_id"])
    return EarningsSummaryResponse(
        rider_id=summary.rider_id,
        outstanding_balance=summary.outstanding_balance,
        eligible_parcel_count=summary.eligible_parcel_count,
        total_paid_out=summary.total_paid_out,
        cashout_minimum=settings.cashout_minimum_amount
    )
