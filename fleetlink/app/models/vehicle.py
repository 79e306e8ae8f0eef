"""
Vehicle database model.

Operators register vehicles with a load capacity and tyre count.
"""

from sqlalchemy import Column, String, Integer, Boolean
from fleetlink.app.db.session import Base
from fleetlink.app.db.types import UTCDateTime, new_id, utc_now


class Vehicle(Base):
    """
    Vehicle model.

    Inactive vehicles are hidden from availability searches but keep their
    booking history. Vehicles are never deleted while bookings reference them.
    """
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=new_id)

    # Identification (unique constraint is the authoritative duplicate guard)
    name = Column(String(100), unique=True, nullable=False, index=True)

    # Capacity
    capacity_kg = Column(Integer, nullable=False, index=True)
    tyres = Column(Integer, nullable=False)

    # Status
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Timestamps
    created_at = Column(UTCDateTime, default=utc_now, nullable=False, index=True)
    updated_at = Column(UTCDateTime, default=utc_now, nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, name='{self.name}', capacity_kg={self.capacity_kg})>"
