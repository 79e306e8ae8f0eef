"""
Shared column types and id helpers.

All timestamps are handled as timezone-aware UTC datetimes in Python.
SQLite drops tz information on storage, so values are normalised on the
way in and on the way out.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def new_id() -> str:
    """Opaque primary key for vehicles and bookings."""
    return str(uuid.uuid4())


def parse_id(value: str) -> Optional[str]:
    """
    Normalise an opaque id.

    Returns:
        Canonical id string, or None if value is not a well-formed id
    """
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError):
        return None


class UTCDateTime(TypeDecorator):
    """DateTime column that always round-trips aware UTC datetimes."""
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)
