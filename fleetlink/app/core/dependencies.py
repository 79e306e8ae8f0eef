"""
Shared FastAPI dependencies.

Provides the booking engine components and pagination helpers to endpoints,
so tests can override them (e.g. to pin the clock).
"""

import math

from fleetlink.app.domain.booking.availability import AvailabilityIndex
from fleetlink.app.domain.booking.ledger import BookingLedger

_booking_ledger = BookingLedger()
_availability_index = AvailabilityIndex()


def get_booking_ledger() -> BookingLedger:
    """FastAPI dependency for the process-wide booking ledger."""
    return _booking_ledger


def get_availability_index() -> AvailabilityIndex:
    """FastAPI dependency for availability search."""
    return _availability_index


def page_count(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if page_size else 0
