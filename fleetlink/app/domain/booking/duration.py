"""
Ride duration estimation.

The estimate is a deterministic placeholder derived from the numeric
distance between two pincodes. It is not a geographic distance and must
not be replaced by one without changing every stored booking window.
"""

from datetime import datetime, timedelta
from typing import Tuple

from fleetlink.app.domain.errors import InvalidTimeWindowError

MIN_RIDE_HOURS = 1
HOURS_PER_DAY = 24


def estimate_ride_duration(from_pincode: str, to_pincode: str) -> int:
    """
    Estimate ride duration in whole hours.

    duration = |to - from| mod 24, clamped to at least one hour.

    Args:
        from_pincode: 6-digit origin pincode
        to_pincode: 6-digit destination pincode

    Returns:
        Estimated duration in hours (1..23)
    """
    distance = abs(int(to_pincode) - int(from_pincode))
    return max(distance % HOURS_PER_DAY, MIN_RIDE_HOURS)


def trip_window(start_time: datetime, duration_hours: int) -> Tuple[datetime, datetime]:
    """
    Return the half-open [start, end) window a ride occupies.

    Raises:
        InvalidTimeWindowError: If the ride would end past the last
            representable datetime
    """
    try:
        end_time = start_time + timedelta(hours=duration_hours)
    except OverflowError:
        raise InvalidTimeWindowError(
            "Ride would end beyond the supported date range",
            details={"start_time": start_time.isoformat(), "duration_hours": duration_hours}
        )
    return start_time, end_time
