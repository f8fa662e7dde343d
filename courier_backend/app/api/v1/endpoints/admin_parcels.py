"""
Admin Parcel Dispatch API Endpoints.

Operations staff look up parcels, assign riders to pending parcels and
remove parcels that were never dispatched.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from courier_backend.app.db.session import get_db
from courier_backend.app.core.guards import require_admin
from courier_backend.app.domain.delivery.status_machine import DeliveryService
from courier_backend.app.models.parcel_enums import DeliveryStatus
from courier_backend.app.repositories.ledger_store import LedgerStore
from courier_backend.app.schemas.parcel import (
    RiderAssignment, ParcelResponse, ParcelDetailResponse, ParcelDeleteResponse
)
from courier_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/admin", tags=["Admin - Dispatch"])


@router.get("/parcels", response_model=List[ParcelResponse])
async def list_parcels(
    rider_id: Optional[int] = Query(None, ge=1, description="Only parcels assigned to this rider"),
    status: Optional[DeliveryStatus] = Query(None, description="Only parcels in this delivery status"),
    limit: int = Query(50, ge=1, le=200, description="Maximum parcels"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List parcels, newest first."""
    service = DeliveryService(db)
    return await service.list_parcels(rider_id=rider_id, status=status, limit=limit)


@router.get("/parcels/{parcel_id}", response_model=ParcelDetailResponse)
async def get_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Get one parcel with its cash-out ledger total.

    ledger_total always equals paid_amount; a mismatch means the ledger and
    the parcel balance diverged.
    """
    service = DeliveryService(db)
    parcel = await service.get_parcel(parcel_id)
    ledger_total = await LedgerStore(db).total_for_parcel(parcel_id)

    return ParcelDetailResponse(
        **ParcelResponse.model_validate(parcel).model_dump(),
        ledger_total=ledger_total
    )


@router.delete("/parcels/{parcel_id}", response_model=ParcelDeleteResponse)
async def delete_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a parcel that is still pending (no rider, no earnings)."""
    service = DeliveryService(db)
    await service.delete_parcel(parcel_id)

    await log_event(
        db=db,
        action=AuditAction.PARCEL_DELETED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        metadata={"parcel_id": parcel_id}
    )

    return ParcelDeleteResponse(message="Parcel deleted successfully", parcel_id=parcel_id)


@router.post("/parcels/{parcel_id}/assign-rider", response_model=ParcelResponse)
async def assign_rider(
    parcel_id: int = Path(..., description="Parcel ID"),
    assignment: RiderAssignment = ...,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Assign an active rider to a pending parcel."""
    service = DeliveryService(db)
    parcel = await service.assign_rider(parcel_id, assignment.rider_id)

    await log_event(
        db=db,
        action=AuditAction.RIDER_ASSIGNED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        metadata={"parcel_id": parcel.id, "rider_id": assignment.rider_id}
    )

    return ParcelResponse.model_validate(parcel)
