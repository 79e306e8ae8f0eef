"""
Vehicle locking service.

Serialises booking writes per vehicle (creates, cancellations and
completions). Two layers are used together:

1. An in-process asyncio lock keyed by vehicle id, so concurrent requests
   handled by one worker queue up instead of racing.
2. A row lock (SELECT ... FOR UPDATE) on the vehicle, or on the booking
   being cancelled or completed, inside the transaction, so separate worker
   processes on PostgreSQL serialise on the same row. SQLite ignores
   FOR UPDATE; the process-level lock covers it.

Unrelated vehicles never share a lock.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlink.app.models.booking import Booking
from fleetlink.app.models.vehicle import Vehicle

logger = logging.getLogger("fleetlink.vehicle_locking")


class VehicleLockRegistry:
    """
    Keyed mutex for vehicle ids.

    Locks are held weakly, so a vehicle nobody is booking costs nothing.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, vehicle_id: str) -> asyncio.Lock:
        lock = self._locks.get(vehicle_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[vehicle_id] = lock
        return lock

    def is_locked(self, vehicle_id: str) -> bool:
        lock = self._locks.get(vehicle_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, vehicle_id: str) -> AsyncIterator[None]:
        """Hold the lock for vehicle_id for the duration of the block."""
        lock = self.lock_for(vehicle_id)
        if lock.locked():
            logger.debug("Waiting for booking lock on vehicle %s", vehicle_id)
        async with lock:
            yield


# Shared by every ledger in this process
vehicle_locks = VehicleLockRegistry()


async def lock_vehicle_row(
    db: AsyncSession,
    vehicle_id: str
) -> Optional[Vehicle]:
    """
    Load a vehicle and take a row lock on it for the current transaction.

    Args:
        db: Database session with an open (or implicit) transaction
        vehicle_id: Vehicle to lock

    Returns:
        The vehicle, or None if it does not exist
    """
    result = await db.execute(
        select(Vehicle)
        .where(Vehicle.id == vehicle_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def lock_booking_row(
    db: AsyncSession,
    booking_id: str
) -> Optional[Booking]:
    """
    Reload a booking with a row lock, discarding any stale copy in the session.

    Returns:
        The booking, or None if it does not exist
    """
    result = await db.execute(
        select(Booking)
        .where(Booking.id == booking_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
