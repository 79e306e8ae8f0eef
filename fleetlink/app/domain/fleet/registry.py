"""
Vehicle Registry (Domain Logic).

Stores vehicle definitions and answers capacity-qualified lookups for
availability search.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlink.app.db.types import new_id, parse_id, utc_now
from fleetlink.app.domain.errors import ConflictError, NotFoundError
from fleetlink.app.models.vehicle import Vehicle
from fleetlink.app.services.audit import AuditAction, record_event

logger = logging.getLogger("fleetlink.registry")


class VehicleRegistry:

    @staticmethod
    async def register(db: AsyncSession, name: str, capacity_kg: int, tyres: int) -> Vehicle:
        """
        Register a new vehicle.

        Flow:
        1. Pre-check the name for a fast, friendly duplicate error
        2. Insert; the unique constraint on name is the authoritative guard
           against two concurrent registrations slipping past step 1

        Raises:
            ConflictError: If a vehicle with the same name exists
        """
        name = name.strip()

        existing = await db.execute(select(Vehicle.id).where(Vehicle.name == name))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Vehicle already exists", details={"name": name})

        now = utc_now()
        vehicle = Vehicle(
            id=new_id(),
            name=name,
            capacity_kg=capacity_kg,
            tyres=tyres,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        db.add(vehicle)
        record_event(
            db,
            action=AuditAction.VEHICLE_CREATED,
            entity_type="vehicle",
            entity_id=vehicle.id,
            metadata={"name": name, "capacity_kg": capacity_kg, "tyres": tyres}
        )

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.info("Duplicate vehicle name rejected by constraint: %s", name)
            raise ConflictError("Vehicle already exists", details={"name": name})
        except Exception:
            await db.rollback()
            raise

        logger.info("Registered vehicle %s (%s, %d kg)", vehicle.id, name, capacity_kg)
        return vehicle

    @staticmethod
    async def list_active_with_capacity_at_least(db: AsyncSession, min_capacity: int) -> List[Vehicle]:
        """Active vehicles able to carry min_capacity kg, smallest first."""
        result = await db.execute(
            select(Vehicle).where(
                Vehicle.is_active.is_(True),
                Vehicle.capacity_kg >= min_capacity
            ).order_by(Vehicle.capacity_kg, Vehicle.name)
        )
        return list(result.scalars().all())

    @staticmethod
    async def find_by_id(db: AsyncSession, vehicle_id: str) -> Vehicle:
        """
        Resolve a vehicle by id.

        Raises:
            NotFoundError: If the id is malformed or unknown
        """
        canonical_id = parse_id(vehicle_id)
        vehicle = None
        if canonical_id is not None:
            vehicle = await db.get(Vehicle, canonical_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)
        return vehicle

    @staticmethod
    async def list_page(
        db: AsyncSession,
        is_active: Optional[bool] = None,
        page: int = 1,
        page_size: int = 10
    ) -> Tuple[List[Vehicle], int]:
        """
        List vehicles newest first.

        Returns:
            (vehicles on the requested page, total matching vehicles)
        """
        filters = []
        if is_active is not None:
            filters.append(Vehicle.is_active.is_(is_active))

        total_result = await db.execute(select(func.count(Vehicle.id)).where(*filters))
        total = total_result.scalar()

        offset = (page - 1) * page_size
        result = await db.execute(
            select(Vehicle).where(*filters)
            .order_by(Vehicle.created_at.desc(), Vehicle.id)
            .offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    @staticmethod
    async def set_active(db: AsyncSession, vehicle_id: str, is_active: bool) -> Vehicle:
        """
        Toggle whether a vehicle accepts new bookings.

        Existing bookings are left untouched.
        """
        vehicle = await VehicleRegistry.find_by_id(db, vehicle_id)
        if vehicle.is_active == is_active:
            return vehicle

        try:
            vehicle.is_active = is_active
            vehicle.updated_at = utc_now()
            record_event(
                db,
                action=AuditAction.VEHICLE_ACTIVATED if is_active else AuditAction.VEHICLE_DEACTIVATED,
                entity_type="vehicle",
                entity_id=vehicle.id,
                metadata={"name": vehicle.name}
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Vehicle %s is_active=%s", vehicle.id, is_active)
        return vehicle
