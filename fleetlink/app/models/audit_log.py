"""
Audit Log Database Model.

Tracks state-changing fleet and booking events for support and dispute handling.
"""

from sqlalchemy import Column, Integer, String, JSON
from fleetlink.app.db.session import Base
from fleetlink.app.db.types import UTCDateTime, utc_now


class AuditLog(Base):
    """
    Audit log model for tracking vehicle and booking events.

    Events logged:
    - VEHICLE_CREATED / VEHICLE_ACTIVATED / VEHICLE_DEACTIVATED
    - BOOKING_CREATED / BOOKING_CANCELLED / BOOKING_COMPLETED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Which record was affected
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False, index=True)

    # Who asked for it (customer id for bookings, None for operator actions)
    actor = Column(String(100), nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(UTCDateTime, default=utc_now, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', entity={self.entity_type}:{self.entity_id})>"
