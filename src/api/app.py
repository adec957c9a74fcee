# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the learning
progress analytics API.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src import __version__
from src.api.dependencies import close_db, init_db
from src.api.middleware.auth import AuthMiddleware
from src.api.routes import health
from src.api.v1 import router as v1_router
from src.core.config import get_settings
from src.domains.exceptions import (
    AnalyticsServiceError,
    InvalidInputError,
    NotAuthenticatedError,
    OwnershipViolationError,
    PermissionDeniedError,
    StudentNotFoundError,
)
from src.infrastructure.database.connection import DatabaseError, create_schema
from src.utils.logging import get_logger, setup_logging

logger = logging.getLogger(__name__)

# First matching class wins
_ERROR_STATUS: tuple[tuple[type[AnalyticsServiceError], int], ...] = (
    (NotAuthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (OwnershipViolationError, status.HTTP_403_FORBIDDEN),
    (StudentNotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidInputError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Initializes logging and the progress store on startup and closes
    the store on shutdown. SQLite stores get their tables created
    directly; PostgreSQL schemas are migrated with Alembic.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings = get_settings()
    setup_logging(settings)
    startup_log = get_logger(__name__)
    startup_log.info(
        "Starting progress analytics API",
        environment=settings.environment,
        debug=settings.debug,
        sqlite=settings.database.is_sqlite,
    )

    # =========================================================================
    # Startup
    # =========================================================================
    try:
        await init_db()
        if settings.database.is_sqlite:
            await create_schema()
        logger.info("Database connection initialized")
    except DatabaseError as e:
        logger.warning("Failed to initialize database connection: %s", str(e))

    yield

    # =========================================================================
    # Shutdown
    # =========================================================================
    await close_db()
    logger.info("Shutting down progress analytics API")


def status_for_error(exc: AnalyticsServiceError) -> int:
    """Map a domain exception to an HTTP status code."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def service_error_handler(request: Request, exc: AnalyticsServiceError) -> JSONResponse:
    """Render a domain exception as a JSON error response."""
    return JSONResponse(
        status_code=status_for_error(exc),
        content={"code": exc.code, "message": exc.message, "details": exc.details},
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Render a store failure as 503 without leaking driver details."""
    logger.error("Database error on %s %s: %s", request.method, request.url.path, str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"code": "database_unavailable", "message": "Progress store unavailable"},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Learning Progress Analytics API",
        description="Learning progress, topic mastery and usage analytics",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(AnalyticsServiceError, service_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================

    # Auth middleware - validates JWT tokens
    app.add_middleware(AuthMiddleware)

    # CORS middleware (added last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
