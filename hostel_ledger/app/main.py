"""
FastAPI Application Entry Point.

This is the main application file for the Hostel Ledger service.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from hostel_ledger.app.core.config import settings
from hostel_ledger.app.core.observability import ObservabilityMiddleware, configure_logging
from hostel_ledger.app.core.redis_client import ping_redis
from hostel_ledger.app.api.v1.router import router as api_v1_router
from hostel_ledger.app.db.session import engine, Base
from hostel_ledger.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from hostel_ledger.app.models.resident import Resident
from hostel_ledger.app.models.due_period import DuePeriod, DueItem
from hostel_ledger.app.models.payment_transaction import PaymentTransaction
from hostel_ledger.app.models.item_claim import ItemClaim
from hostel_ledger.app.models.complaint import Complaint
from hostel_ledger.app.models.audit_log import AuditLog

configure_logging()
logger = logging.getLogger("hostel_ledger")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Checks Redis; the service runs uncached without it.
    3. Disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if not await ping_redis():
        logger.warning("Redis unavailable at startup; dashboards will be served uncached")
    logger.info("%s %s started", settings.app_name, settings.api_version)
    yield
    await engine.dispose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Hostel dues reconciliation ledger and complaint lifecycle tracker",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
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
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the Hostel Ledger API",
        "docs": "/docs",
        "health": "/health",
    }
