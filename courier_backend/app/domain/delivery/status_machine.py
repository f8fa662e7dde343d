"""
Parcel Delivery State Machine.

Validates delivery status transitions and activates the rider's earnings
when a parcel reaches a terminal status. Also serves parcel lookups and
deletion of parcels that never left pending.

    pending → rider-assigned → in-transit → delivered
                                          → service-center-delivered
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from courier_backend.app.core.exceptions import (
    InvalidDeliveryTransitionError, ParcelNotDeletableError, ParcelNotFoundError, ResourceNotFoundError
)
from courier_backend.app.domain.earnings.commission import calculate_commission, to_money
from courier_backend.app.models.enums import UserRole
from courier_backend.app.models.parcel import Parcel
from courier_backend.app.models.parcel_enums import DeliveryStatus
from courier_backend.app.models.user import User
from courier_backend.app.repositories.parcel_store import ParcelStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    DeliveryStatus.PENDING: {DeliveryStatus.RIDER_ASSIGNED},
    DeliveryStatus.RIDER_ASSIGNED: {DeliveryStatus.IN_TRANSIT},
    DeliveryStatus.IN_TRANSIT: {
        DeliveryStatus.DELIVERED,
        DeliveryStatus.SERVICE_CENTER_DELIVERED,
    },
    DeliveryStatus.DELIVERED: set(),
    DeliveryStatus.SERVICE_CENTER_DELIVERED: set(),
}


def assert_transition(current: DeliveryStatus, requested: DeliveryStatus) -> None:
    if requested not in ALLOWED_TRANSITIONS[current]:
        raise InvalidDeliveryTransitionError(current.value, requested.value)


def activate_earning(parcel: Parcel) -> None:
    """Cache the commission on a parcel that just became terminal."""
    commission = calculate_commission(parcel.cost, parcel.sender_region, parcel.receiver_region)
    parcel.earning = max(commission, to_money(parcel.earning or 0))
    parcel.earning_paid = to_money(parcel.paid_amount or 0) >= parcel.earning


class DeliveryService:

    def __init__(self, db: AsyncSession, parcel_store: ParcelStore = None):
        self.db = db
        self.parcel_store = parcel_store or ParcelStore(db)

    async def get_parcel(self, parcel_id: int, rider_id: Optional[int] = None) -> Parcel:
        """
        Look up one parcel; with rider_id, only among that rider's parcels.

        Raises:
            ParcelNotFoundError
        """
        parcel = await self.parcel_store.get(parcel_id)
        if parcel is None or (rider_id is not None and parcel.assigned_rider_id != rider_id):
            raise ParcelNotFoundError(parcel_id)
        return parcel

    async def list_parcels(
        self,
        rider_id: Optional[int] = None,
        status: Optional[DeliveryStatus] = None,
        limit: int = 50,
    ) -> List[Parcel]:
        return await self.parcel_store.list_parcels(rider_id=rider_id, status=status, limit=limit)

    async def delete_parcel(self, parcel_id: int) -> None:
        """
        Delete a parcel that is still pending.

        Once a rider is assigned the parcel may carry earnings and ledger
        rows, so it stays.

        Raises:
            ParcelNotFoundError, ParcelNotDeletableError
        """
        parcel = await self.get_parcel(parcel_id)
        if parcel.delivery_status != DeliveryStatus.PENDING:
            raise ParcelNotDeletableError(parcel_id, parcel.delivery_status.value)

        await self.parcel_store.delete(parcel)
        await self.db.commit()
        logger.info("Parcel %s deleted", parcel_id)

    async def assign_rider(self, parcel_id: int, rider_id: int) -> Parcel:
        """
        Assign a rider to a pending parcel.

        Raises:
            ParcelNotFoundError, ResourceNotFoundError (rider),
            InvalidDeliveryTransitionError
        """
        parcel = await self.parcel_store.get(parcel_id)
        if parcel is None:
            raise ParcelNotFoundError(parcel_id)

        rider = await self.db.get(User, rider_id)
        if rider is None or rider.role != UserRole.RIDER or not rider.is_active:
            raise ResourceNotFoundError("Rider", rider_id)

        assert_transition(parcel.delivery_status, DeliveryStatus.RIDER_ASSIGNED)

        parcel.assigned_rider_id = rider_id
        parcel.assigned_at = datetime.utcnow()
        parcel.delivery_status = DeliveryStatus.RIDER_ASSIGNED

        await self.db.commit()
        await self.db.refresh(parcel)
        logger.info("Parcel %s assigned to rider %s", parcel_id, rider_id)
        return parcel

    async def advance(self, parcel_id: int, rider_id: int, new_status: DeliveryStatus) -> Parcel:
        """
        Move a parcel along its delivery flow (assigned rider only).

        Entering a terminal status stamps delivered_at and caches the earning.

        Raises:
            ParcelNotFoundError: missing or assigned to another rider
            InvalidDeliveryTransitionError
        """
        parcel = await self.get_parcel(parcel_id, rider_id)

        previous = parcel.delivery_status
        assert_transition(previous, new_status)

        parcel.delivery_status = new_status
        if new_status.is_terminal:
            parcel.delivered_at = datetime.utcnow()
            activate_earning(parcel)

        await self.db.commit()
        await self.db.refresh(parcel)
        logger.info(
            "Parcel %s moved %s -> %s by rider %s",
            parcel_id, previous.value, new_status.value, rider_id
        )
        return parcel
