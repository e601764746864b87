"""HTTP controller layer for booking creation, edits and conflict checks."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator

from backend.controllers.dependencies import get_booking_service
from backend.domain.constraints import (
    BookingValidationError,
    ConflictError,
    InactiveRoomError,
)
from backend.domain.models import Booking
from backend.services.booking_service import BookingNotFoundError, BookingService
from backend.services.room_service import RoomNotFoundError
from backend.utils.clock import to_reference_time
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


class BookingCreateRequest(BaseModel):
    room_id: int = Field(gt=0)
    title: str = Field(min_length=1, max_length=200)
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_reference_time(value)


class BookingUpdateRequest(BaseModel):
    room_id: Optional[int] = Field(default=None, gt=0)
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is None:
            return None
        return to_reference_time(value)


class AvailabilityCheckRequest(BaseModel):
    room_id: int = Field(gt=0)
    start: datetime
    end: datetime
    booking_id: Optional[int] = Field(default=None, gt=0)

    @field_validator("start", "end")
    @classmethod
    def normalize_timestamp(cls, value: datetime) -> datetime:
        return to_reference_time(value)


class BookingResponse(BaseModel):
    booking_id: int = Field(gt=0)
    room_id: int = Field(gt=0)
    title: str
    start: datetime
    end: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AvailabilityCheckResponse(BaseModel):
    available: bool
    reason: Optional[str] = None
    error_type: Optional[str] = None
    conflicting_booking_ids: list[int] = Field(default_factory=list)


def _booking_response(booking: Booking) -> BookingResponse:
    return BookingResponse(**booking.to_dict())


def _validation_http_error(exc: BookingValidationError) -> HTTPException:
    if isinstance(exc, ConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "conflicting_booking_ids": exc.conflicting_ids,
            },
        )
    if isinstance(exc, InactiveRoomError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("/bookings", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
async def list_bookings(
    room_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    service: BookingService = Depends(get_booking_service),
) -> list[BookingResponse]:
    bookings = service.list_bookings(
        room_id=room_id,
        start=to_reference_time(start) if start is not None else None,
        end=to_reference_time(end) if end is not None else None,
    )
    return [_booking_response(booking) for booking in bookings]


@router.post(
    "/bookings/check",
    response_model=AvailabilityCheckResponse,
    status_code=status.HTTP_200_OK,
)
async def check_availability(
    payload: AvailabilityCheckRequest,
    service: BookingService = Depends(get_booking_service),
) -> AvailabilityCheckResponse:
    """Preview whether a slot can be booked without committing it."""
    try:
        result = service.check_availability(
            room_id=payload.room_id,
            start=payload.start,
            end=payload.end,
            booking_id=payload.booking_id,
        )
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    if result.ok:
        return AvailabilityCheckResponse(available=True)
    error = result.error
    return AvailabilityCheckResponse(
        available=False,
        reason=str(error),
        error_type=type(error).__name__,
        conflicting_booking_ids=(
            error.conflicting_ids if isinstance(error, ConflictError) else []
        ),
    )


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreateRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.create_booking(
            room_id=payload.room_id,
            title=payload.title,
            start=payload.start,
            end=payload.end,
        )
        return _booking_response(booking)
    except BookingValidationError as exc:
        raise _validation_http_error(exc) from exc
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking creation failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking",
        ) from exc


@router.get(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        return _booking_response(service.get_booking(booking_id))
    except BookingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.put(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def update_booking(
    booking_id: int,
    payload: BookingUpdateRequest,
    service: BookingService = Depends(get_booking_service),
) -> BookingResponse:
    try:
        booking = service.update_booking(
            booking_id,
            room_id=payload.room_id,
            title=payload.title,
            start=payload.start,
            end=payload.end,
        )
        return _booking_response(booking)
    except BookingValidationError as exc:
        raise _validation_http_error(exc) from exc
    except (BookingNotFoundError, RoomNotFoundError) as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected booking update failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking",
        ) from exc


@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: int,
    service: BookingService = Depends(get_booking_service),
) -> Response:
    try:
        service.delete_booking(booking_id)
    except BookingNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
