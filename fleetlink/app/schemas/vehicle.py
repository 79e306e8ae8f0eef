"""
Vehicle Pydantic schemas.

Defines request and response models for vehicle registration and search.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List

# Largest value an INTEGER column holds
INTEGER_COLUMN_MAX = 2_147_483_647


class VehicleCreate(BaseModel):
    """Schema for registering a new vehicle."""
    name: str = Field(..., min_length=2, max_length=100, description="Unique vehicle name")
    capacity_kg: int = Field(..., ge=1, le=INTEGER_COLUMN_MAX, description="Load capacity in kg")
    tyres: int = Field(..., ge=2, le=INTEGER_COLUMN_MAX, description="Number of tyres")

    class Config:
        str_strip_whitespace = True


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: str
    name: str
    capacity_kg: int
    tyres: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    """Schema for paginated vehicle list."""
    vehicles: List[VehicleResponse]
    total: int
    page: int
    page_size: int
    pages: int


class AvailableVehicleResponse(VehicleResponse):
    """A free vehicle annotated with the ride duration it was searched for."""
    estimated_ride_duration_hours: int


class AvailabilityResponse(BaseModel):
    """Schema for availability search results."""
    message: str
    vehicles: List[AvailableVehicleResponse]
    estimated_ride_duration_hours: int
    start_time: datetime
    end_time: datetime
