"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payroll_ledger.api.routes import health_router, ledger_router, payments_router
from payroll_ledger.config import Settings, get_settings
from payroll_ledger.core.errors import (
    InvalidTransitionError,
    NotFoundError,
    PayrollLedgerError,
    ValidationError,
)
from payroll_ledger.database import create_schema, dispose_db, init_db
from payroll_ledger.logging_config import configure_logging
from payroll_ledger.services import CheckNumberAllocator

logger = logging.getLogger(__name__)

# Domain error -> (HTTP status, error code)
ERROR_STATUS = {
    ValidationError: (status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
    NotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    engine, _ = init_db(app.state.settings.database_url)
    await create_schema(engine)
    logger.info("Payroll ledger API started")
    yield
    # Shutdown
    await dispose_db()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Payroll Ledger API",
        description="Weekly payment obligations, check sequencing and an append-only payment ledger",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.check_allocator = CheckNumberAllocator(settings.check_start_number)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollLedgerError)
    async def ledger_error_handler(request: Request, exc: PayrollLedgerError) -> JSONResponse:
        """Map domain errors to HTTP status codes."""
        status_code, code = status.HTTP_400_BAD_REQUEST, "LEDGER_ERROR"
        for error_type, mapped in ERROR_STATUS.items():
            if isinstance(exc, error_type):
                status_code, code = mapped
                break
        return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(payments_router, prefix="/api/v1")
    app.include_router(ledger_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
