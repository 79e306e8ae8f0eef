"""
Domain errors for the booking engine.

Each error carries a stable error code and a human readable message.
Status codes are chosen by the HTTP boundary, not here.
"""

from typing import Any, Dict


class BookingDomainError(Exception):
    """Base class for every failure the booking engine reports."""

    error_code = "ERR_DOMAIN"

    def __init__(self, message: str, details: Dict[str, Any] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidTimeWindowError(BookingDomainError):
    """Raised when a start time is not strictly in the future."""

    error_code = "ERR_TIME_WINDOW"

    def __init__(self, message: str = "Start time must be in the future", details: Dict[str, Any] = None):
        super().__init__(message, details)


class InvalidIdError(BookingDomainError):
    """Raised when an id is not well formed."""

    error_code = "ERR_INVALID_ID"

    def __init__(self, resource: str, resource_id: Any = None):
        super().__init__(
            f"Invalid {resource.lower()} ID",
            details={"resource": resource, "id": resource_id}
        )


class NotFoundError(BookingDomainError):
    """Raised when a vehicle or booking id does not resolve."""

    error_code = "ERR_NOT_FOUND_001"

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(message, details={"resource": resource, "id": resource_id})


class VehicleInactiveError(BookingDomainError):
    """Raised when a vehicle exists but is not accepting bookings."""

    error_code = "ERR_VEHICLE_INACTIVE"

    def __init__(self, vehicle_id: Any = None):
        super().__init__(
            f"Vehicle with ID {vehicle_id} is not active",
            details={"resource": "Vehicle", "id": vehicle_id}
        )


class ConflictError(BookingDomainError):
    """Raised when a write would double-book a vehicle or duplicate a name."""

    error_code = "ERR_CONFLICT"


class AlreadyTerminalError(BookingDomainError):
    """Raised when a transition is attempted out of CANCELLED or COMPLETED."""

    error_code = "ERR_ALREADY_TERMINAL"


class TooLateToCancelError(BookingDomainError):
    """Raised when a cancellation falls inside the cutoff before start."""

    error_code = "ERR_TOO_LATE_TO_CANCEL"

    def __init__(self, cutoff_minutes: int):
        super().__init__(
            f"Cannot cancel booking less than {cutoff_minutes} minutes before start time",
            details={"cutoff_minutes": cutoff_minutes}
        )
