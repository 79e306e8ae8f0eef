"""
Booking API Endpoints.

Create, list, inspect and cancel vehicle bookings.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Path
from sqlalchemy.ext.asyncio import AsyncSession

from fleetlink.app.core.config import settings
from fleetlink.app.core.dependencies import get_booking_ledger, page_count
from fleetlink.app.db.session import get_db
from fleetlink.app.domain.booking.ledger import BookingLedger
from fleetlink.app.models.booking_enums import BookingStatus
from fleetlink.app.schemas.booking import BookingCreate, BookingListResponse, BookingResponse
from fleetlink.app.schemas.vehicle import INTEGER_COLUMN_MAX

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    db: AsyncSession = Depends(get_db),
    ledger: BookingLedger = Depends(get_booking_ledger)
):
    """
    Book a vehicle for a ride.

    Returns 404 if the vehicle is missing or inactive and 400 if it is
    already booked for an overlapping window.
    """
    booking = await ledger.create(
        db,
        vehicle_id=str(booking_data.vehicle_id),
        customer_id=booking_data.customer_id,
        from_pincode=booking_data.from_pincode,
        to_pincode=booking_data.to_pincode,
        start_time=booking_data.start_time
    )
    return BookingResponse.model_validate(booking)


@router.get("", response_model=BookingListResponse)
async def list_bookings(
    customer_id: Optional[str] = Query(None, description="Filter by customer"),
    vehicle_id: Optional[str] = Query(None, description="Filter by vehicle"),
    status_filter: Optional[str] = Query(None, alias="status", description="BOOKED, CANCELLED or COMPLETED"),
    start_date: Optional[datetime] = Query(None, description="Earliest start time"),
    end_date: Optional[datetime] = Query(None, description="Latest start time"),
    page: int = Query(1, ge=1, le=INTEGER_COLUMN_MAX, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Items per page"),
    db: AsyncSession = Depends(get_db),
    ledger: BookingLedger = Depends(get_booking_ledger)
):
    """List bookings, newest first."""
    booking_status = None
    if status_filter:
        try:
            booking_status = BookingStatus(status_filter)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Unknown booking status: {status_filter}"
            )

    bookings, total = await ledger.list(
        db,
        customer_id=customer_id,
        vehicle_id=vehicle_id,
        status=booking_status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        page_size=page_size
    )

    return BookingListResponse(
        bookings=[BookingResponse.model_validate(booking) for booking in bookings],
        total=total,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size)
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str = Path(..., description="Booking ID"),
    db: AsyncSession = Depends(get_db),
    ledger: BookingLedger = Depends(get_booking_ledger)
):
    """Get details of a specific booking."""
    booking = await ledger.get(db, booking_id)
    return BookingResponse.model_validate(booking)


@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancel_booking(
    booking_id: str = Path(..., description="Booking ID"),
    db: AsyncSession = Depends(get_db),
    ledger: BookingLedger = Depends(get_booking_ledger)
):
    """
    Cancel a booking.

    Only BOOKED bookings starting at least an hour from now can be cancelled.
    The vehicle becomes available for the window immediately.
    """
    booking = await ledger.cancel(db, booking_id)
    return BookingResponse.model_validate(booking)
