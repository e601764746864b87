"""HTTP controller layer for room management and occupancy status."""

from __future__ import annotations

from datetime import datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, Field, field_validator, model_validator

from backend.controllers.dependencies import get_room_service, get_status_service
from backend.domain.models import Room, StatusSnapshot
from backend.services.room_service import RoomNotFoundError, RoomService, RoomValidationError
from backend.services.status_service import RoomStatusService
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["rooms"])


class WorkHoursPayload(BaseModel):
    start: time
    end: time

    @model_validator(mode="after")
    def validate_window(self) -> "WorkHoursPayload":
        if self.start >= self.end:
            raise ValueError("work hours start must be earlier than end")
        return self


class RoomCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    capacity: int = Field(gt=0)
    work_hours: Optional[WorkHoursPayload] = None
    amenities: list[str] = Field(default_factory=list)
    active: bool = True

    @field_validator("name", "location")
    @classmethod
    def validate_non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must be non-empty")
        return value.strip()


class RoomUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    capacity: Optional[int] = Field(default=None, gt=0)
    work_hours: Optional[WorkHoursPayload] = None
    amenities: Optional[list[str]] = None
    active: Optional[bool] = None


class WorkHoursResponse(BaseModel):
    start: str
    end: str


class RoomResponse(BaseModel):
    room_id: int = Field(gt=0)
    name: str
    location: str
    capacity: int = Field(gt=0)
    work_hours: WorkHoursResponse
    amenities: list[str]
    active: bool


class RoomStatusResponse(BaseModel):
    room_id: int = Field(gt=0)
    status: str
    next_change: Optional[datetime] = None
    next_status: Optional[str] = None
    current_booking_id: Optional[int] = None


class StatusBoardResponse(BaseModel):
    rooms: list[RoomStatusResponse]


def _room_response(room: Room) -> RoomResponse:
    return RoomResponse(**room.to_dict())


def _status_response(snapshot: StatusSnapshot) -> RoomStatusResponse:
    return RoomStatusResponse(**snapshot.to_dict())


@router.get("/rooms/status", response_model=StatusBoardResponse, status_code=status.HTTP_200_OK)
async def status_board(
    service: RoomStatusService = Depends(get_status_service),
) -> StatusBoardResponse:
    """Current status of every room evaluated at one instant."""
    try:
        return StatusBoardResponse(
            rooms=[_status_response(snapshot) for snapshot in service.status_board()]
        )
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected status board failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute room status",
        ) from exc


@router.get(
    "/rooms/{room_id}/status",
    response_model=RoomStatusResponse,
    status_code=status.HTTP_200_OK,
)
async def room_status(
    room_id: int,
    service: RoomStatusService = Depends(get_status_service),
) -> RoomStatusResponse:
    try:
        return _status_response(service.room_status(room_id))
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected room status failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute room status",
        ) from exc


@router.get("/rooms", response_model=list[RoomResponse], status_code=status.HTTP_200_OK)
async def list_rooms(
    active_only: bool = False,
    service: RoomService = Depends(get_room_service),
) -> list[RoomResponse]:
    return [_room_response(room) for room in service.list_rooms(active_only=active_only)]


@router.post("/rooms", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    payload: RoomCreateRequest,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.create_room(
            name=payload.name,
            location=payload.location,
            capacity=payload.capacity,
            work_start=payload.work_hours.start if payload.work_hours else None,
            work_end=payload.work_hours.end if payload.work_hours else None,
            amenities=payload.amenities,
            active=payload.active,
        )
        return _room_response(room)
    except RoomValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc


@router.get("/rooms/{room_id}", response_model=RoomResponse, status_code=status.HTTP_200_OK)
async def get_room(
    room_id: int,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        return _room_response(service.get_room(room_id))
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.put("/rooms/{room_id}", response_model=RoomResponse, status_code=status.HTTP_200_OK)
async def update_room(
    room_id: int,
    payload: RoomUpdateRequest,
    service: RoomService = Depends(get_room_service),
) -> RoomResponse:
    try:
        room = service.update_room(
            room_id,
            name=payload.name,
            location=payload.location,
            capacity=payload.capacity,
            work_start=payload.work_hours.start if payload.work_hours else None,
            work_end=payload.work_hours.end if payload.work_hours else None,
            amenities=payload.amenities,
            active=payload.active,
        )
        return _room_response(room)
    except RoomValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc


@router.delete("/rooms/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_room(
    room_id: int,
    service: RoomService = Depends(get_room_service),
) -> Response:
    try:
        service.delete_room(room_id)
    except RoomNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
