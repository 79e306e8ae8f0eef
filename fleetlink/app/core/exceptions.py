"""
Error handlers for consistent error responses.

Maps booking domain errors to HTTP status codes and provides the global
exception handlers registered on the application.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fleetlink.app.domain.errors import (
    AlreadyTerminalError,
    BookingDomainError,
    ConflictError,
    InvalidIdError,
    InvalidTimeWindowError,
    NotFoundError,
    TooLateToCancelError,
    VehicleInactiveError,
)

logger = logging.getLogger("fleetlink.errors")


# Inactive vehicles are reported exactly like missing ones
DOMAIN_STATUS_CODES = {
    InvalidTimeWindowError: status.HTTP_400_BAD_REQUEST,
    InvalidIdError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    VehicleInactiveError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_400_BAD_REQUEST,
    AlreadyTerminalError: status.HTTP_400_BAD_REQUEST,
    TooLateToCancelError: status.HTTP_400_BAD_REQUEST,
}


def status_code_for(exc: BookingDomainError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in DOMAIN_STATUS_CODES:
            return DOMAIN_STATUS_CODES[error_type]
    return status.HTTP_400_BAD_REQUEST


# Global Exception Handlers

async def domain_exception_handler(request: Request, exc: BookingDomainError) -> JSONResponse:
    """Handler for booking domain errors."""
    if isinstance(exc, VehicleInactiveError):
        error_code = NotFoundError.error_code
        message = "Vehicle not found"
    else:
        error_code = exc.error_code
        message = exc.message

    return JSONResponse(
        status_code=status_code_for(exc),
        content={
            "error_code": error_code,
            "message": message,
            "details": jsonable_encoder(exc.details)
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        429: "ERR_RATE_LIMITED",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors (malformed input is a 400)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions, e.g. storage outages."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
