"""
Rider Delivery API Endpoints.

Riders see their assigned parcels and advance them through the delivery
flow. Reaching a terminal status makes the parcel's commission available for cash-out.
"""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from courier_backend.app.db.session import get_db
from courier_backend.app.core.guards import require_rider
from courier_backend.app.domain.delivery.status_machine import DeliveryService
from courier_backend.app.models.parcel_enums import DeliveryStatus
from courier_backend.app.schemas.parcel import DeliveryStatusUpdate, ParcelResponse
from courier_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/rider", tags=["Rider - Deliveries"])


@router.get("/parcels", response_model=List[ParcelResponse])
async def list_my_parcels(
    status: Optional[DeliveryStatus] = Query(None, description="Only parcels in this delivery status"),
    limit: int = Query(50, ge=1, le=200, description="Maximum parcels"),
    current_user: dict = Depends(require_rider),
    db: AsyncSession = Depends(get_db)
):
    """Parcels assigned to the rider, newest first."""
    service = DeliveryService(db)
    return await service.list_parcels(rider_id=current_user["user_id"], status=status, limit=limit)


@router.get("/parcels/{parcel_id}", response_model=ParcelResponse)
async def get_my_parcel(
    parcel_id: int = Path(..., description="Parcel ID"),
    current_user: dict = Depends(require_rider),
    db: AsyncSession = Depends(get_db)
):
    """One of the rider's assigned parcels; other parcels are reported as not found."""
    service = DeliveryService(db)
    return await service.get_parcel(parcel_id, rider_id=current_user["user_id"])


@router.post("/parcels/{parcel_id}/status", response_model=ParcelResponse)
async def update_delivery_status(
    parcel_id: int = Path(..., description="Parcel ID"),
    update: DeliveryStatusUpdate = ...,
    current_user: dict = Depends(require_rider),
    db: AsyncSession = Depends(get_db)
):
    """
    Advance a parcel's delivery status (assigned Rider only).

    Allowed: rider-assigned → in-transit → delivered | service-center-delivered
    """
    service = DeliveryService(db)
    parcel = await service.advance(parcel_id, current_user["user_id"], update.status)

    await log_event(
        db=db,
        action=AuditAction.DELIVERY_STATUS_CHANGED,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub"),
        metadata={
            "parcel_id": parcel.id,
            "status": parcel.delivery_status.value,
            "earning": str(parcel.earning)
        }
    )

    return ParcelResponse.model_validate(parcel)
