"""Tests for booking validation rules.

Covers every rejection branch of validate_booking() and the self-exclusion
rule for edits.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from backend.domain.constraints import (
    BookingValidationError,
    ConflictError,
    InactiveRoomError,
    InvalidRangeError,
    validate_booking,
)
from backend.domain.models import Booking


def booking(
    booking_id: int | None,
    start: tuple[int, int],
    end: tuple[int, int],
    room_id: int = 1,
) -> Booking:
    return Booking(
        booking_id=booking_id,
        room_id=room_id,
        title="Sync",
        start=datetime(2026, 3, 2, *start),
        end=datetime(2026, 3, 2, *end),
    )


# --- Baseline pass ---

def test_free_slot_passes() -> None:
    result = validate_booking(booking(None, (9, 0), (10, 0)), [], room_is_active=True)
    assert result.ok
    result.raise_for_error()


# --- ConflictError ---

def test_overlapping_candidate_reports_conflicting_id() -> None:
    existing = [booking(7, (10, 30), (11, 30))]

    result = validate_booking(booking(None, (10, 0), (11, 0)), existing, room_is_active=True)

    assert isinstance(result.error, ConflictError)
    assert result.error.conflicting_ids == [7]


def test_conflict_is_symmetric() -> None:
    a = booking(1, (10, 0), (11, 0))
    b = booking(2, (10, 30), (11, 30))

    assert isinstance(validate_booking(a, [b], room_is_active=True).error, ConflictError)
    assert isinstance(validate_booking(b, [a], room_is_active=True).error, ConflictError)


def test_all_conflicting_ids_are_listed_in_order() -> None:
    existing = [
        booking(12, (13, 0), (14, 0)),
        booking(4, (9, 0), (10, 0)),
        booking(8, (15, 0), (16, 0)),
    ]

    result = validate_booking(booking(None, (9, 30), (13, 30)), existing, room_is_active=True)

    assert isinstance(result.error, ConflictError)
    assert result.error.conflicting_ids == [4, 12]


def test_raise_for_error_raises_typed_error() -> None:
    result = validate_booking(
        booking(None, (10, 0), (11, 0)),
        [booking(3, (10, 0), (11, 0))],
        room_is_active=True,
    )
    with pytest.raises(ConflictError):
        result.raise_for_error()


# --- Boundaries ---

def test_back_to_back_bookings_do_not_conflict() -> None:
    existing = [booking(1, (9, 0), (10, 0)), booking(2, (11, 0), (12, 0))]
    result = validate_booking(booking(None, (10, 0), (11, 0)), existing, room_is_active=True)
    assert result.ok


def test_bookings_of_other_rooms_are_ignored() -> None:
    existing = [booking(5, (10, 0), (11, 0), room_id=2)]
    result = validate_booking(booking(None, (10, 0), (11, 0)), existing, room_is_active=True)
    assert result.ok


# --- Updates ---

def test_update_to_unchanged_interval_excludes_itself() -> None:
    stored = booking(9, (14, 0), (15, 0))
    result = validate_booking(stored, [stored], room_is_active=True)
    assert result.ok


def test_update_still_conflicts_with_other_bookings() -> None:
    stored = booking(9, (14, 0), (15, 0))
    neighbour = booking(10, (15, 0), (16, 0))
    moved = booking(9, (14, 30), (15, 30))

    result = validate_booking(moved, [stored, neighbour], room_is_active=True)

    assert isinstance(result.error, ConflictError)
    assert result.error.conflicting_ids == [10]


# --- InvalidRangeError ---

def test_zero_length_booking_is_invalid_range() -> None:
    result = validate_booking(booking(None, (10, 0), (10, 0)), [], room_is_active=True)
    assert isinstance(result.error, InvalidRangeError)


def test_inverted_booking_is_invalid_range_even_for_inactive_room() -> None:
    result = validate_booking(booking(None, (11, 0), (10, 0)), [], room_is_active=False)
    assert isinstance(result.error, InvalidRangeError)


# --- InactiveRoomError ---

def test_inactive_room_rejects_booking() -> None:
    result = validate_booking(booking(None, (10, 0), (11, 0)), [], room_is_active=False)
    assert isinstance(result.error, InactiveRoomError)
    assert isinstance(result.error, BookingValidationError)
