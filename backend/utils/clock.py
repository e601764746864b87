"""Injectable time sources for status derivation and analytics defaults."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in local naive time, matching how bookings are stored."""

    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)


class FixedClock:
    """Clock pinned to one instant; ``advance_to`` moves it explicitly."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance_to(self, instant: datetime) -> None:
        self._instant = instant


def to_reference_time(value: datetime) -> datetime:
    """Drop timezone info after converting aware values to local wall time.

    Bookings are stored as naive timestamps in one reference timezone.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
