"""
Booking Ledger (Domain Logic).

The transactional authority for reservations. Creates, reads, lists,
cancels and completes bookings, and enforces the no-overlap invariant at
commit time: for a given vehicle, no two non-cancelled bookings may have
overlapping [start_time, end_time) windows.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlink.app.core.config import settings
from fleetlink.app.db.types import as_utc, new_id, parse_id, utc_now
from fleetlink.app.domain.booking.availability import ensure_future
from fleetlink.app.domain.booking.duration import estimate_ride_duration, trip_window
from fleetlink.app.domain.booking.lifecycle import apply_transition, ensure_cancellable
from fleetlink.app.domain.booking.overlap import active_overlap_clause
from fleetlink.app.domain.errors import (
    ConflictError,
    InvalidIdError,
    NotFoundError,
    VehicleInactiveError,
)
from fleetlink.app.models.booking import Booking
from fleetlink.app.models.booking_enums import BookingStatus
from fleetlink.app.services.audit import AuditAction, record_event
from fleetlink.app.services.vehicle_locking import (
    VehicleLockRegistry,
    lock_booking_row,
    lock_vehicle_row,
    vehicle_locks,
)

logger = logging.getLogger("fleetlink.ledger")


class BookingLedger:
    """
    Booking ledger.

    Args:
        clock: Returns the evaluation instant (aware UTC)
        locks: Per-vehicle lock registry shared by concurrent booking writes
        cancellation_cutoff_minutes: Minimum notice for a cancellation
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        locks: VehicleLockRegistry = vehicle_locks,
        cancellation_cutoff_minutes: Optional[int] = None
    ):
        self.clock = clock
        self.locks = locks
        if cancellation_cutoff_minutes is None:
            cancellation_cutoff_minutes = settings.cancellation_cutoff_minutes
        self.cancellation_cutoff_minutes = cancellation_cutoff_minutes

    async def create(
        self,
        db: AsyncSession,
        vehicle_id: str,
        customer_id: str,
        from_pincode: str,
        to_pincode: str,
        start_time: datetime
    ) -> Booking:
        """
        Reserve a vehicle for a ride.

        Flow:
        1. Require a future start time
        2. Derive duration and window
        3. Under the vehicle's lock and row lock:
           a. Resolve the vehicle (must exist and be active)
           b. Re-check overlap against current live bookings
           c. Insert the booking as BOOKED and commit

        Nothing is written when any step fails.

        Raises:
            InvalidTimeWindowError: start_time is not in the future
            NotFoundError: vehicle does not exist
            VehicleInactiveError: vehicle exists but is inactive
            ConflictError: an overlapping live booking exists
        """
        start_time = ensure_future(start_time, self.clock())

        canonical_id = parse_id(vehicle_id)
        if canonical_id is None:
            raise NotFoundError("Vehicle", vehicle_id)

        duration = estimate_ride_duration(from_pincode, to_pincode)
        start_time, end_time = trip_window(start_time, duration)

        async with self.locks.hold(canonical_id):
            try:
                vehicle = await lock_vehicle_row(db, canonical_id)
                if vehicle is None:
                    raise NotFoundError("Vehicle", vehicle_id)
                if not vehicle.is_active:
                    raise VehicleInactiveError(canonical_id)

                clash = await db.execute(
                    select(Booking.id).where(
                        Booking.vehicle_id == canonical_id,
                        active_overlap_clause(start_time, end_time)
                    ).limit(1)
                )
                clashing_id = clash.scalar_one_or_none()
                if clashing_id is not None:
                    logger.info(
                        "Booking rejected: vehicle %s overlaps booking %s", canonical_id, clashing_id
                    )
                    raise ConflictError(
                        "Vehicle is already booked for the requested time",
                        details={
                            "vehicle_id": canonical_id,
                            "start_time": start_time.isoformat(),
                            "end_time": end_time.isoformat(),
                        }
                    )

                now = self.clock()
                booking = Booking(
                    id=new_id(),
                    vehicle_id=canonical_id,
                    customer_id=customer_id.strip(),
                    from_pincode=from_pincode,
                    to_pincode=to_pincode,
                    start_time=start_time,
                    end_time=end_time,
                    estimated_ride_duration_hours=duration,
                    status=BookingStatus.BOOKED,
                    created_at=now,
                    updated_at=now,
                )
                booking.vehicle = vehicle
                db.add(booking)
                record_event(
                    db,
                    action=AuditAction.BOOKING_CREATED,
                    entity_type="booking",
                    entity_id=booking.id,
                    actor=booking.customer_id,
                    metadata={
                        "vehicle_id": canonical_id,
                        "start_time": start_time.isoformat(),
                        "end_time": end_time.isoformat(),
                    }
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Booking %s created: vehicle %s [%s, %s)",
            booking.id, canonical_id, start_time.isoformat(), end_time.isoformat()
        )
        return booking

    async def get(self, db: AsyncSession, booking_id: str) -> Booking:
        """
        Resolve a booking by id.

        Raises:
            InvalidIdError: If booking_id is malformed
            NotFoundError: If no booking has that id
        """
        canonical_id = parse_id(booking_id)
        if canonical_id is None:
            raise InvalidIdError("Booking", booking_id)

        booking = await db.get(Booking, canonical_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    async def list(
        self,
        db: AsyncSession,
        customer_id: Optional[str] = None,
        vehicle_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Booking], int]:
        """
        List bookings newest-created first.

        start_date and end_date bound start_time inclusively.

        Returns:
            (bookings on the requested page, total matching bookings)
        """
        filters = []
        if customer_id:
            filters.append(Booking.customer_id == customer_id)
        if vehicle_id:
            filters.append(Booking.vehicle_id == (parse_id(vehicle_id) or vehicle_id))
        if status:
            filters.append(Booking.status == BookingStatus(status))
        if start_date:
            filters.append(Booking.start_time >= as_utc(start_date))
        if end_date:
            filters.append(Booking.start_time <= as_utc(end_date))

        total_result = await db.execute(select(func.count(Booking.id)).where(*filters))
        total = total_result.scalar()

        offset = (page - 1) * page_size
        result = await db.execute(
            select(Booking).where(*filters)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def cancel(self, db: AsyncSession, booking_id: str) -> Booking:
        """
        Cancel a booking, releasing its window immediately.

        The status is re-read under the vehicle's lock and a row lock, so of
        two racing cancellations only one succeeds.

        Raises:
            InvalidIdError: If booking_id is malformed
            NotFoundError: If no booking has that id
            AlreadyTerminalError: Booking is CANCELLED or COMPLETED
            TooLateToCancelError: Start time is inside the cutoff
        """
        booking = await self.get(db, booking_id)

        async with self.locks.hold(booking.vehicle_id):
            try:
                booking = await self._lock_booking(db, booking.id)
                now = self.clock()
                ensure_cancellable(booking, now, self.cancellation_cutoff_minutes)

                apply_transition(booking, BookingStatus.CANCELLED, now)
                record_event(
                    db,
                    action=AuditAction.BOOKING_CANCELLED,
                    entity_type="booking",
                    entity_id=booking.id,
                    actor=booking.customer_id,
                    metadata={"vehicle_id": booking.vehicle_id}
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Booking %s cancelled, vehicle %s released", booking.id, booking.vehicle_id)
        return booking

    async def complete(self, db: AsyncSession, booking_id: str) -> Booking:
        """
        Mark a finished ride as COMPLETED.

        Entry point for the post-trip process; there is no customer-facing
        route for it.

        Raises:
            AlreadyTerminalError: Booking is CANCELLED or COMPLETED
        """
        booking = await self.get(db, booking_id)

        async with self.locks.hold(booking.vehicle_id):
            try:
                booking = await self._lock_booking(db, booking.id)
                apply_transition(booking, BookingStatus.COMPLETED, self.clock())
                record_event(
                    db,
                    action=AuditAction.BOOKING_COMPLETED,
                    entity_type="booking",
                    entity_id=booking.id,
                    metadata={"vehicle_id": booking.vehicle_id}
                )
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info("Booking %s completed", booking.id)
        return booking

    @staticmethod
    async def _lock_booking(db: AsyncSession, booking_id: str) -> Booking:
        booking = await lock_booking_row(db, booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking
