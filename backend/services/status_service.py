"""Occupancy status derivation for rooms.

Status is never stored. It is recomputed from ``(room, bookings, now)`` on
every call, so a host that refreshes a status board on a timer simply calls
again with a new ``now``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from backend.domain.models import Booking, Room, RoomStatus, StatusSnapshot
from backend.repository.data_repository import DataRepository
from backend.services.room_service import RoomNotFoundError
from backend.utils.clock import Clock, SystemClock
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def _end_of_busy_run(covering: Booking, bookings: list[Booking]) -> datetime:
    """Follow back-to-back and overlapping bookings to the first free instant."""
    busy_until = covering.end
    for booking in bookings:
        if booking.start > busy_until:
            break
        if booking.end > busy_until:
            busy_until = booking.end
    return busy_until


def derive_status(room: Room, bookings: Iterable[Booking], now: datetime) -> StatusSnapshot:
    """Return the room's status at ``now`` and its next status change.

    Bookings belonging to other rooms are ignored. When several bookings
    cover ``now`` the one ending last is reported as current.
    """
    if not room.active:
        return StatusSnapshot(room_id=room.room_id, status=RoomStatus.UNAVAILABLE)

    room_bookings = sorted(
        (
            booking
            for booking in bookings
            if booking.room_id == room.room_id and booking.start < booking.end
        ),
        key=lambda booking: (booking.start, booking.end),
    )

    covering = [booking for booking in room_bookings if booking.start <= now < booking.end]
    if covering:
        current = max(covering, key=lambda booking: (booking.end, booking.start))
        later = [booking for booking in room_bookings if booking.end > now]
        return StatusSnapshot(
            room_id=room.room_id,
            status=RoomStatus.BUSY,
            next_change=_end_of_busy_run(current, later),
            next_status=RoomStatus.AVAILABLE,
            current_booking_id=current.booking_id,
        )

    upcoming: Optional[Booking] = next(
        (booking for booking in room_bookings if booking.start > now),
        None,
    )
    if upcoming is None:
        return StatusSnapshot(room_id=room.room_id, status=RoomStatus.AVAILABLE)
    return StatusSnapshot(
        room_id=room.room_id,
        status=RoomStatus.AVAILABLE,
        next_change=upcoming.start,
        next_status=RoomStatus.BUSY,
    )


class RoomStatusService:
    """Evaluates room status against store snapshots and an injected clock."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or SystemClock()

    def room_status(self, room_id: int) -> StatusSnapshot:
        room = self._repository.get_room(room_id)
        if room is None:
            raise RoomNotFoundError(f"room_id {room_id} not found")
        now = self._clock.now()
        bookings = self._repository.list_bookings(room_id=room_id, start=now)
        return derive_status(room, bookings, now)

    def status_board(self) -> list[StatusSnapshot]:
        """Status of every room evaluated at one shared instant."""
        now = self._clock.now()
        rooms = self._repository.list_rooms()
        bookings = self._repository.list_bookings(start=now)
        snapshots = [derive_status(room, bookings, now) for room in rooms]
        logger.debug("Status board evaluated for %s rooms at %s", len(snapshots), now)
        return snapshots
