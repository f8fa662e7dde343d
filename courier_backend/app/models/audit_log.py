"""
Audit Log Database Model.

Compliance trail for rider assignments, delivery status changes and cash-outs.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from courier_backend.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - RIDER_ASSIGNED
    - DELIVERY_STATUS_CHANGED
    - CASHOUT_COMPLETED / CASHOUT_REJECTED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    action = Column(String(100), nullable=False, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username})>"
