"""
Availability Index (Domain Logic).

Read-only counterpart of the ledger's commit-time check: which active,
capacity-qualified vehicles have no overlapping live booking for a window.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlink.app.db.types import as_utc, utc_now
from fleetlink.app.domain.booking.duration import estimate_ride_duration, trip_window
from fleetlink.app.domain.booking.overlap import active_overlap_clause
from fleetlink.app.domain.errors import InvalidTimeWindowError
from fleetlink.app.domain.fleet.registry import VehicleRegistry
from fleetlink.app.models.booking import Booking
from fleetlink.app.models.vehicle import Vehicle

logger = logging.getLogger("fleetlink.availability")


@dataclass
class AvailabilityResult:
    estimated_ride_duration_hours: int
    start_time: datetime
    end_time: datetime
    vehicles: List[Tuple[Vehicle, int]] = field(default_factory=list)


def ensure_future(start_time: datetime, now: datetime) -> datetime:
    """
    Normalise start_time to UTC and require it to be strictly after now.

    Raises:
        InvalidTimeWindowError: If start_time <= now
    """
    start_time = as_utc(start_time)
    if start_time <= now:
        raise InvalidTimeWindowError(details={"start_time": start_time.isoformat()})
    return start_time


class AvailabilityIndex:

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.clock = clock

    async def find_available(
        self,
        db: AsyncSession,
        min_capacity: int,
        from_pincode: str,
        to_pincode: str,
        start_time: datetime
    ) -> AvailabilityResult:
        """
        Find vehicles free for the ride window.

        Flow:
        1. Require a future start time
        2. Derive duration and window
        3. Load capacity-qualified active vehicles
        4. Load live bookings on those vehicles overlapping the window
        5. Return candidates minus conflicted vehicles

        An empty candidate set is not an error.
        """
        start_time = ensure_future(start_time, self.clock())
        duration = estimate_ride_duration(from_pincode, to_pincode)
        start_time, end_time = trip_window(start_time, duration)

        result = AvailabilityResult(
            estimated_ride_duration_hours=duration,
            start_time=start_time,
            end_time=end_time,
        )

        candidates = await VehicleRegistry.list_active_with_capacity_at_least(db, min_capacity)
        if not candidates:
            logger.info("No vehicles with capacity >= %d kg", min_capacity)
            return result

        conflicts = await db.execute(
            select(Booking.vehicle_id).where(
                Booking.vehicle_id.in_([vehicle.id for vehicle in candidates]),
                active_overlap_clause(start_time, end_time)
            ).distinct()
        )
        conflicted_ids = set(conflicts.scalars().all())

        result.vehicles = [
            (vehicle, duration) for vehicle in candidates if vehicle.id not in conflicted_ids
        ]
        logger.info(
            "Availability %s-%s from %s: %d of %d vehicles free",
            from_pincode, to_pincode, start_time.isoformat(),
            len(result.vehicles), len(candidates)
        )
        return result
