"""Room management: listing, creating, editing, activating and deleting rooms."""

from __future__ import annotations

from dataclasses import replace
from datetime import time
from typing import Iterable, Optional

from backend.domain.models import Room, WorkHours
from backend.repository.data_repository import DataRepository
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


class RoomError(Exception):
    """Base exception for room management failures."""


class RoomValidationError(RoomError):
    """Raised when room attributes are invalid."""


class RoomNotFoundError(RoomError):
    """Raised when a room id does not exist in persisted state."""


def _normalize_amenities(amenities: Iterable[str]) -> frozenset[str]:
    return frozenset(item.strip() for item in amenities if item and item.strip())


def validate_room_fields(
    name: str,
    location: str,
    capacity: int,
    work_hours: WorkHours,
) -> None:
    if not name.strip():
        raise RoomValidationError("name must be non-empty")
    if not location.strip():
        raise RoomValidationError("location must be non-empty")
    if capacity <= 0:
        raise RoomValidationError("capacity must be a positive integer")
    if work_hours.start >= work_hours.end:
        raise RoomValidationError("work hours start must be earlier than end")


class RoomService:
    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)

    @property
    def default_work_hours(self) -> WorkHours:
        return WorkHours(
            start=self._settings.default_work_start,
            end=self._settings.default_work_end,
        )

    def list_rooms(self, active_only: bool = False) -> list[Room]:
        return self._repository.list_rooms(active_only=active_only)

    def get_room(self, room_id: int) -> Room:
        room = self._repository.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(f"room_id {room_id} not found")
        return room

    def create_room(
        self,
        *,
        name: str,
        location: str,
        capacity: int,
        work_start: Optional[time] = None,
        work_end: Optional[time] = None,
        amenities: Iterable[str] = (),
        active: bool = True,
    ) -> Room:
        work_hours = WorkHours(
            start=work_start if work_start is not None else self._settings.default_work_start,
            end=work_end if work_end is not None else self._settings.default_work_end,
        )
        validate_room_fields(name, location, capacity, work_hours)
        room = self._repository.create_room(
            name=name.strip(),
            location=location.strip(),
            capacity=capacity,
            work_hours=work_hours,
            amenities=_normalize_amenities(amenities),
            active=active,
        )
        logger.info("Room %s created (%s)", room.room_id, room.name)
        return room

    def update_room(
        self,
        room_id: int,
        *,
        name: Optional[str] = None,
        location: Optional[str] = None,
        capacity: Optional[int] = None,
        work_start: Optional[time] = None,
        work_end: Optional[time] = None,
        amenities: Optional[Iterable[str]] = None,
        active: Optional[bool] = None,
    ) -> Room:
        """Apply a partial edit; omitted fields keep their stored values."""
        current = self.get_room(room_id)
        updated = replace(
            current,
            name=(name if name is not None else current.name).strip(),
            location=(location if location is not None else current.location).strip(),
            capacity=capacity if capacity is not None else current.capacity,
            work_hours=WorkHours(
                start=work_start if work_start is not None else current.work_hours.start,
                end=work_end if work_end is not None else current.work_hours.end,
            ),
            amenities=(
                _normalize_amenities(amenities) if amenities is not None else current.amenities
            ),
            active=active if active is not None else current.active,
        )
        validate_room_fields(updated.name, updated.location, updated.capacity, updated.work_hours)
        stored = self._repository.update_room(updated)
        if stored is None:
            raise RoomNotFoundError(f"room_id {room_id} not found")
        logger.info("Room %s updated", room_id)
        return stored

    def set_active(self, room_id: int, active: bool) -> Room:
        return self.update_room(room_id, active=active)

    def delete_room(self, room_id: int) -> None:
        if not self._repository.delete_room(room_id):
            raise RoomNotFoundError(f"room_id {room_id} not found")
        logger.info("Room %s deleted with its bookings", room_id)
