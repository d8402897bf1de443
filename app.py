"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires all services, registers routers, and runs startup initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from batoo.controllers.booking_controller import router as booking_router
from batoo.controllers.listing_controller import router as listing_router
from batoo.controllers.messaging_controller import router as messaging_router
from batoo.repository.data_repository import DataRepository
from batoo.services.booking_service import BookingService
from batoo.services.calendar_service import CalendarService
from batoo.services.listing_service import ListingService
from batoo.services.messaging_service import MessagingService
from batoo.utils.config import Settings, get_settings
from batoo.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    calendar_service: Optional[CalendarService] = None,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services are created here and stored on app.state; controllers resolve
    them through the providers in batoo.controllers.dependencies.
    """
    settings = settings or get_settings()

    # --- Repository (single SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services ---
    calendar_service = calendar_service or CalendarService(settings=settings)
    listing_service = ListingService(repository=repository, settings=settings)
    booking_service = BookingService(
        repository=repository,
        calendar_service=calendar_service,
        settings=settings,
    )
    messaging_service = MessagingService(repository=repository, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(listing_router)
    app.include_router(booking_router)
    app.include_router(messaging_router)

    app.state.settings = settings
    app.state.repository = repository
    app.state.calendar_service = calendar_service
    app.state.listing_service = listing_service
    app.state.booking_service = booking_service
    app.state.messaging_service = messaging_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema creation must precede demo seeding.
    """
    repository: DataRepository = app.state.repository
    settings: Settings = app.state.settings

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if settings.seed_demo_data:
        logger.info("Startup: seeding demo listings (skipped if Listings table not empty)")
        repository.seed_demo_listings_if_empty()

    if not app.state.calendar_service.is_configured:
        logger.info("Startup: calendar not configured; availability checks assume free days")

    logger.info("Startup complete, system ready")


# Module-level app object for uvicorn
app = create_app()
