"""
FastAPI Application Entry Point.

This is the main application file for the FleetLink Booking Backend.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fleetlink.app.core.config import settings
from fleetlink.app.api.v1.router import router as api_v1_router
from fleetlink.app.db.session import engine, Base
from fleetlink.app.core.observability import ObservabilityMiddleware, configure_logging
from fleetlink.app.core.rate_limit import RateLimitMiddleware
from fleetlink.app.core.redis_client import ping_redis
from fleetlink.app.domain.errors import BookingDomainError
from fleetlink.app.core.exceptions import (
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from fleetlink.app.models.vehicle import Vehicle
from fleetlink.app.models.booking import Booking
from fleetlink.app.models.audit_log import AuditLog

configure_logging(settings.log_level)
logger = logging.getLogger("fleetlink.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started", settings.app_name)
    yield
    await engine.dispose()
    logger.info("%s stopped", settings.app_name)

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Vehicle registration, availability search and booking",
    lifespan=lifespan,
)

# Middleware (last added runs first)
app.add_middleware(RateLimitMiddleware, prefix=f"/{settings.api_version}")
app.add_middleware(ObservabilityMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register global exception handlers
app.add_exception_handler(BookingDomainError, domain_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to FleetLink Booking API",
        "docs": "/docs",
        "health": "/health",
    }
