"""
Audit logging service.

Compliance trail for delivery and cash-out actions.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from courier_backend.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    # Delivery
    RIDER_ASSIGNED = "RIDER_ASSIGNED"
    DELIVERY_STATUS_CHANGED = "DELIVERY_STATUS_CHANGED"
    PARCEL_DELETED = "PARCEL_DELETED"

    # Cash-out
    CASHOUT_COMPLETED = "CASHOUT_COMPLETED"
    CASHOUT_REJECTED = "CASHOUT_REJECTED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Log an event to the audit log.

    Commits on its own; call it after the business transaction is committed
    or rolled back.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        metadata: Additional context as JSON

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        meta_data=metadata,
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    actor_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if actor_id:
        query = query.where(AuditLog.actor_id == actor_id)

    if action:
        query = query.where(AuditLog.action == action)

    result = await db.execute(query.limit(limit))
    return list(result.scalars().all())
