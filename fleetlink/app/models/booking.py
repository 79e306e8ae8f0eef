"""
Booking database model.

A booking reserves one vehicle for the half-open window [start_time, end_time).
"""

from sqlalchemy import Column, String, Integer, ForeignKey, Enum, Index
from sqlalchemy.orm import relationship
from fleetlink.app.db.session import Base
from fleetlink.app.db.types import UTCDateTime, new_id, utc_now
from fleetlink.app.models.booking_enums import BookingStatus


class Booking(Base):
    """
    Booking model.

    end_time is derived from start_time and the estimated ride duration once,
    at creation, and never recomputed. No two non-cancelled bookings of the
    same vehicle may overlap; the ledger enforces this at commit time.
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)

    # References
    vehicle_id = Column(String(36), ForeignKey('vehicles.id'), nullable=False, index=True)
    customer_id = Column(String(100), nullable=False, index=True)

    # Trip
    from_pincode = Column(String(6), nullable=False)
    to_pincode = Column(String(6), nullable=False)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    estimated_ride_duration_hours = Column(Integer, nullable=False)

    # Status
    status = Column(Enum(BookingStatus), default=BookingStatus.BOOKED, nullable=False, index=True)

    # Timestamps
    created_at = Column(UTCDateTime, default=utc_now, nullable=False, index=True)
    updated_at = Column(UTCDateTime, default=utc_now, nullable=False)

    vehicle = relationship("Vehicle", lazy="joined", innerjoin=True)

    # Range lookups for the overlap predicate
    __table_args__ = (
        Index('ix_bookings_vehicle_window', 'vehicle_id', 'start_time', 'end_time'),
    )

    def __repr__(self):
        return f"<Booking(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
