"""
Vehicle API Endpoints.

Registration, listing, activation toggles and availability search.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlink.app.core.config import settings
from fleetlink.app.core.dependencies import get_availability_index, page_count
from fleetlink.app.db.session import get_db
from fleetlink.app.domain.booking.availability import AvailabilityIndex
from fleetlink.app.domain.fleet.registry import VehicleRegistry
from fleetlink.app.schemas.booking import PINCODE_PATTERN
from fleetlink.app.schemas.vehicle import (
    AvailabilityResponse,
    AvailableVehicleResponse,
    INTEGER_COLUMN_MAX,
    VehicleCreate,
    VehicleListResponse,
    VehicleResponse,
)

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def register_vehicle(
    vehicle_data: VehicleCreate,
    db: AsyncSession = Depends(get_db)
):
    """
    Register a new vehicle.

    Vehicle names are unique; a duplicate name is rejected with 400.
    """
    vehicle = await VehicleRegistry.register(
        db,
        name=vehicle_data.name,
        capacity_kg=vehicle_data.capacity_kg,
        tyres=vehicle_data.tyres
    )
    return VehicleResponse.model_validate(vehicle)


@router.get("/available", response_model=AvailabilityResponse)
async def search_available_vehicles(
    capacity_required: int = Query(..., ge=1, le=INTEGER_COLUMN_MAX, description="Minimum capacity in kg"),
    from_pincode: str = Query(..., pattern=PINCODE_PATTERN, description="6-digit origin pincode"),
    to_pincode: str = Query(..., pattern=PINCODE_PATTERN, description="6-digit destination pincode"),
    start_time: datetime = Query(..., description="ISO 8601 start time"),
    db: AsyncSession = Depends(get_db),
    availability: AvailabilityIndex = Depends(get_availability_index)
):
    """
    Find active vehicles with enough capacity that are free for the ride.

    The ride window is [start_time, start_time + estimated duration).
    """
    result = await availability.find_available(
        db,
        min_capacity=capacity_required,
        from_pincode=from_pincode,
        to_pincode=to_pincode,
        start_time=start_time
    )

    vehicles = [
        AvailableVehicleResponse(
            **VehicleResponse.model_validate(vehicle).model_dump(),
            estimated_ride_duration_hours=hours
        )
        for vehicle, hours in result.vehicles
    ]

    return AvailabilityResponse(
        message=f"Found {len(vehicles)} available vehicles" if vehicles else "No eligible vehicles found",
        vehicles=vehicles,
        estimated_ride_duration_hours=result.estimated_ride_duration_hours,
        start_time=result.start_time,
        end_time=result.end_time
    )


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    page: int = Query(1, ge=1, le=INTEGER_COLUMN_MAX, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    """List vehicles, newest first."""
    vehicles, total = await VehicleRegistry.list_page(db, is_active=is_active, page=page, page_size=page_size)

    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(vehicle) for vehicle in vehicles],
        total=total,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size)
    )


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Get details of a specific vehicle."""
    vehicle = await VehicleRegistry.find_by_id(db, vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.patch("/{vehicle_id}/deactivate", response_model=VehicleResponse)
async def deactivate_vehicle(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Deactivate a vehicle (soft delete).

    The vehicle disappears from availability search; existing bookings stay.
    """
    vehicle = await VehicleRegistry.set_active(db, vehicle_id, False)
    return VehicleResponse.model_validate(vehicle)


@router.patch("/{vehicle_id}/activate", response_model=VehicleResponse)
async def activate_vehicle(
    vehicle_id: str = Path(..., description="Vehicle ID"),
    db: AsyncSession = Depends(get_db)
):
    """Put a deactivated vehicle back into service."""
    vehicle = await VehicleRegistry.set_active(db, vehicle_id, True)
    return VehicleResponse.model_validate(vehicle)
