"""
The overlap predicate shared by availability search and booking creation.

Two windows [a_start, a_end) and [b_start, b_end) conflict when
a_start < b_end and b_start < a_end. Touching windows do not conflict.
"""

from datetime import datetime

from sqlalchemy import and_

from fleetlink.app.models.booking import Booking
from fleetlink.app.models.booking_enums import BookingStatus


def windows_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and b_start < a_end


def active_overlap_clause(start_time: datetime, end_time: datetime):
    """
    SQL filter for non-cancelled bookings overlapping [start_time, end_time).

    Must stay equivalent to windows_overlap().
    """
    return and_(
        Booking.status != BookingStatus.CANCELLED,
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )
