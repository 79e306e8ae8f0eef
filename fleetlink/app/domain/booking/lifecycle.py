"""
Booking lifecycle rules.

BOOKED is the only non-terminal state. It may move to CANCELLED (customer
request, subject to the cancellation cutoff) or COMPLETED (post-trip
process). Nothing leaves CANCELLED or COMPLETED.
"""

from datetime import datetime, timedelta

from fleetlink.app.domain.errors import AlreadyTerminalError, TooLateToCancelError
from fleetlink.app.models.booking import Booking
from fleetlink.app.models.booking_enums import BookingStatus

ALLOWED_TRANSITIONS = {
    BookingStatus.BOOKED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def ensure_not_terminal(booking: Booking) -> None:
    """
    Raises:
        AlreadyTerminalError: If the booking is CANCELLED or COMPLETED
    """
    if booking.status == BookingStatus.CANCELLED:
        raise AlreadyTerminalError(
            "Booking is already cancelled",
            details={"booking_id": booking.id, "status": booking.status.value}
        )
    if booking.status == BookingStatus.COMPLETED:
        raise AlreadyTerminalError(
            "Booking is already completed",
            details={"booking_id": booking.id, "status": booking.status.value}
        )


def ensure_cancellable(booking: Booking, now: datetime, cutoff_minutes: int = 60) -> None:
    """
    Check the cancellation rule.

    A booking may be cancelled only while BOOKED and at least cutoff_minutes
    before its start time.

    Raises:
        AlreadyTerminalError: Booking is CANCELLED or COMPLETED
        TooLateToCancelError: Start time is inside the cutoff
    """
    ensure_not_terminal(booking)
    if booking.start_time - now < timedelta(minutes=cutoff_minutes):
        raise TooLateToCancelError(cutoff_minutes)


def apply_transition(booking: Booking, target: BookingStatus, now: datetime) -> Booking:
    """Move booking to target and refresh updated_at."""
    if not can_transition(booking.status, target):
        ensure_not_terminal(booking)
        raise AlreadyTerminalError(
            f"Cannot move booking from {booking.status.value} to {target.value}",
            details={"booking_id": booking.id, "status": booking.status.value}
        )
    booking.status = target
    booking.updated_at = now
    return booking
