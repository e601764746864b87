"""
app.py — FastAPI application factory and startup lifecycle.

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

from backend.controllers.analytics_controller import router as analytics_router
from backend.controllers.bookings_controller import router as bookings_router
from backend.controllers.rooms_controller import router as rooms_router
from backend.repository.data_repository import DataRepository
from backend.services.analytics_service import AnalyticsService
from backend.services.booking_service import BookingService
from backend.services.room_service import RoomService
from backend.services.status_service import RoomStatusService
from backend.utils.clock import Clock, SystemClock
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    seed: bool = True,
) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Instantiates all services with explicit dependency injection via app.state.
    The clock is shared by the status and analytics services so tests can pin
    "now" for the whole app.
    """
    settings = settings or get_settings()
    clock = clock or SystemClock()

    # --- Repository (single SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services (business logic, no direct DB access) ---
    room_service = RoomService(repository=repository, settings=settings)
    booking_service = BookingService(repository=repository, settings=settings)
    status_service = RoomStatusService(
        repository=repository,
        settings=settings,
        clock=clock,
    )
    analytics_service = AnalyticsService(
        repository=repository,
        settings=settings,
        clock=clock,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app, seed=seed)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(rooms_router)
    app.include_router(bookings_router)
    app.include_router(analytics_router)

    @app.get("/health", tags=["system"])
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": settings.app_version}

    # --- Inject services into app.state for dependency resolution ---
    app.state.clock = clock
    app.state.repository = repository
    app.state.room_service = room_service
    app.state.booking_service = booking_service
    app.state.status_service = status_service
    app.state.analytics_service = analytics_service

    return app


def _startup(app: FastAPI, seed: bool = True) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    Schema must exist before seeding; seeding is skipped when rooms exist.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema")
    repository.initialize_database()

    if seed:
        logger.info("Startup: seeding demo rooms and bookings")
        repository.seed_synthetic_data()

    logger.info("Startup complete — system ready")


# Module-level app object for uvicorn
app = create_app()
