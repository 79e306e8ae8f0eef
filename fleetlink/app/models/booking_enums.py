"""
Booking-related enumerations.
"""

import enum


class BookingStatus(str, enum.Enum):
    """Booking status enumeration."""
    BOOKED = "BOOKED"  # Initial state, holds the vehicle window
    CANCELLED = "CANCELLED"  # Terminal, releases the window
    COMPLETED = "COMPLETED"  # Terminal, set by the post-trip process

    @classmethod
    def _missing_(cls, value):
        # Legacy clients still send CONFIRMED for a live booking
        if isinstance(value, str) and value.upper() == "CONFIRMED":
            return cls.BOOKED
        if isinstance(value, str):
            for member in cls:
                if member.value == value.upper():
                    return member
        return None
