"""
Booking Pydantic schemas.

Defines request and response models for booking management.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List
from uuid import UUID
from fleetlink.app.models.booking_enums import BookingStatus

PINCODE_PATTERN = r"^\d{6}$"


class BookingCreate(BaseModel):
    """Schema for reserving a vehicle."""
    vehicle_id: UUID = Field(..., description="Vehicle to book")
    customer_id: str = Field(..., min_length=1, max_length=100, description="Customer making the booking")
    from_pincode: str = Field(..., pattern=PINCODE_PATTERN, description="6-digit origin pincode")
    to_pincode: str = Field(..., pattern=PINCODE_PATTERN, description="6-digit destination pincode")
    start_time: datetime = Field(..., description="ISO 8601 start time, UTC if no offset given")

    class Config:
        str_strip_whitespace = True


class BookedVehicleSummary(BaseModel):
    """Vehicle details embedded in a booking."""
    id: str
    name: str
    capacity_kg: int
    tyres: int

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    """Schema for booking response."""
    id: str
    vehicle_id: str
    vehicle: BookedVehicleSummary
    customer_id: str
    from_pincode: str
    to_pincode: str
    start_time: datetime
    end_time: datetime
    estimated_ride_duration_hours: int
    status: BookingStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BookingListResponse(BaseModel):
    """Schema for paginated booking list."""
    bookings: List[BookingResponse]
    total: int
    page: int
    page_size: int
    pages: int
