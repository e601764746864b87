"""Domain-level validation rules for committing bookings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from backend.domain.intervals import overlaps
from backend.domain.models import Booking


class BookingValidationError(Exception):
    """Base class for booking rejections that are shown to the user."""


class InvalidRangeError(BookingValidationError):
    """Raised when a booking does not start strictly before it ends."""


class InactiveRoomError(BookingValidationError):
    """Raised when a booking targets a room that is not active."""


class ConflictError(BookingValidationError):
    """Raised when a booking overlaps existing bookings of the same room."""

    def __init__(self, conflicting_ids: list[int]) -> None:
        self.conflicting_ids = list(conflicting_ids)
        joined = ", ".join(str(booking_id) for booking_id in self.conflicting_ids)
        super().__init__(f"Booking conflicts with existing booking(s): {joined}")


@dataclass(frozen=True)
class ValidationResult:
    error: Optional[BookingValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def validate_booking(
    candidate: Booking,
    existing_bookings: Iterable[Booking],
    room_is_active: bool,
) -> ValidationResult:
    """Decide whether ``candidate`` may be committed to its room.

    ``existing_bookings`` should hold the bookings of the candidate's room;
    entries for other rooms are ignored. When the candidate carries an id it
    is treated as an update and the stored copy of itself is skipped.
    """
    if candidate.start >= candidate.end:
        return ValidationResult(
            InvalidRangeError("Booking start must be earlier than its end")
        )
    if not room_is_active:
        return ValidationResult(
            InactiveRoomError(f"Room {candidate.room_id} is not active and cannot be booked")
        )

    conflicting_ids = [
        booking.booking_id
        for booking in existing_bookings
        if booking.room_id == candidate.room_id
        and not (
            candidate.booking_id is not None and booking.booking_id == candidate.booking_id
        )
        and overlaps(candidate, booking)
    ]
    if conflicting_ids:
        return ValidationResult(ConflictError(sorted(conflicting_ids)))
    return ValidationResult()
