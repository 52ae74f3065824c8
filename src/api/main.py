"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from src.adapters.events import ThreadPoolEventBus
from src.adapters.repository.postgres import run_migrations
from src.adapters.smtp.console import ConsoleEmailSender
from src.api.auth import router as auth_router
from src.api.errors import install_exception_handlers
from src.config.settings import get_settings
from src.domain.notifications import AccountNotifier

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "Login, registration, email verification, password reset and token refresh",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool on startup
    - Runs migrations on startup
    - Starts the event bus and subscribes the mail notifier
    - Drains the event bus and closes the pool on shutdown
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Every statement on a pooled connection is bounded by statement_timeout
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        kwargs={"options": f"-c statement_timeout={settings.statement_timeout_ms}"},
        open=True,
    )

    logger.info("Running database migrations...")
    run_migrations(pool)

    event_bus = ThreadPoolEventBus(max_workers=settings.event_workers)
    AccountNotifier(ConsoleEmailSender()).subscribe(event_bus)

    # Store shared resources in app state for dependency injection
    app.state.pool = pool
    app.state.event_bus = event_bus

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application...")
    event_bus.shutdown(wait=True)
    logger.info("Event bus drained")
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="authservice",
    description="Authentication and account lifecycle API - token issuance, validation, rotation and expiry",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

install_exception_handlers(app)
app.include_router(auth_router, prefix="/api/auth")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    with pool.connection() as conn:
        conn.execute("SELECT 1")

    return {"status": "healthy"}
