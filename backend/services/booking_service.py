"""Booking lifecycle: every create and update passes the validator before commit."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from threading import RLock
from typing import Optional

from backend.domain.constraints import ValidationResult, validate_booking
from backend.domain.models import Booking
from backend.repository.data_repository import DataRepository
from backend.services.room_service import RoomNotFoundError
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def _stored_precision(value: datetime) -> datetime:
    """Bookings persist to the second; validate what will actually be stored."""
    return value.replace(microsecond=0)


class BookingNotFoundError(Exception):
    """Raised when a booking id does not exist in persisted state."""


class BookingService:
    """Validates and commits bookings against the room's current bookings.

    Validation and commit run under one lock so two requests racing for the
    same slot cannot both pass validation against the same snapshot.
    """

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._commit_lock = RLock()

    def list_bookings(
        self,
        room_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Booking]:
        return self._repository.list_bookings(room_id=room_id, start=start, end=end)

    def get_booking(self, booking_id: int) -> Booking:
        booking = self._repository.get_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(f"booking_id {booking_id} not found")
        return booking

    def _validate(self, candidate: Booking) -> ValidationResult:
        room = self._repository.get_room(candidate.room_id)
        if room is None:
            raise RoomNotFoundError(f"room_id {candidate.room_id} not found")
        existing = self._repository.list_bookings(room_id=candidate.room_id)
        return validate_booking(candidate, existing, room_is_active=room.active)

    def check_availability(
        self,
        room_id: int,
        start: datetime,
        end: datetime,
        booking_id: Optional[int] = None,
    ) -> ValidationResult:
        """Dry-run the validator without committing anything."""
        candidate = Booking(
            booking_id=booking_id,
            room_id=room_id,
            title="",
            start=_stored_precision(start),
            end=_stored_precision(end),
        )
        return self._validate(candidate)

    def create_booking(
        self,
        *,
        room_id: int,
        title: str,
        start: datetime,
        end: datetime,
    ) -> Booking:
        candidate = Booking(
            booking_id=None,
            room_id=room_id,
            title=title.strip(),
            start=_stored_precision(start),
            end=_stored_precision(end),
        )
        with self._commit_lock:
            result = self._validate(candidate)
            if not result.ok:
                logger.info("Booking rejected for room %s: %s", room_id, result.error)
            result.raise_for_error()
            booking = self._repository.create_booking(
                room_id=candidate.room_id,
                title=candidate.title,
                start=candidate.start,
                end=candidate.end,
            )
        logger.info(
            "Booking %s committed for room %s (%s - %s)",
            booking.booking_id,
            booking.room_id,
            booking.start.isoformat(),
            booking.end.isoformat(),
        )
        return booking

    def update_booking(
        self,
        booking_id: int,
        *,
        room_id: Optional[int] = None,
        title: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Booking:
        """Apply a partial edit; omitted fields keep their stored values.

        Moving a booking to another room validates against that room.
        """
        with self._commit_lock:
            current = self.get_booking(booking_id)
            candidate = replace(
                current,
                room_id=room_id if room_id is not None else current.room_id,
                title=(title if title is not None else current.title).strip(),
                start=_stored_precision(start) if start is not None else current.start,
                end=_stored_precision(end) if end is not None else current.end,
            )
            result = self._validate(candidate)
            if not result.ok:
                logger.info("Booking %s update rejected: %s", booking_id, result.error)
            result.raise_for_error()
            stored = self._repository.update_booking(candidate)
            if stored is None:
                raise BookingNotFoundError(f"booking_id {booking_id} not found")
        logger.info("Booking %s updated", booking_id)
        return stored

    def delete_booking(self, booking_id: int) -> None:
        with self._commit_lock:
            if not self._repository.delete_booking(booking_id):
                raise BookingNotFoundError(f"booking_id {booking_id} not found")
        logger.info("Booking %s deleted", booking_id)
