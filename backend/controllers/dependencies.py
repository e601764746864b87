"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from backend.services.analytics_service import AnalyticsService
from backend.services.booking_service import BookingService
from backend.services.room_service import RoomService
from backend.services.status_service import RoomStatusService
from backend.utils.config import get_settings


def _require_repository(request: Request):
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Repository is not initialized",
        )
    return repository


def get_room_service(request: Request) -> RoomService:
    service = getattr(request.app.state, "room_service", None)
    if service is None:
        service = RoomService(
            repository=_require_repository(request),
            settings=get_settings(),
        )
        request.app.state.room_service = service
    return service


def get_booking_service(request: Request) -> BookingService:
    service = getattr(request.app.state, "booking_service", None)
    if service is None:
        service = BookingService(
            repository=_require_repository(request),
            settings=get_settings(),
        )
        request.app.state.booking_service = service
    return service


def get_status_service(request: Request) -> RoomStatusService:
    service = getattr(request.app.state, "status_service", None)
    if service is None:
        service = RoomStatusService(
            repository=_require_repository(request),
            settings=get_settings(),
            clock=getattr(request.app.state, "clock", None),
        )
        request.app.state.status_service = service
    return service


def get_analytics_service(request: Request) -> AnalyticsService:
    service = getattr(request.app.state, "analytics_service", None)
    if service is None:
        service = AnalyticsService(
            repository=_require_repository(request),
            settings=get_settings(),
            clock=getattr(request.app.state, "clock", None),
        )
        request.app.state.analytics_service = service
    return service
