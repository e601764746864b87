"""Primitive operations on half-open time intervals.

Every interval here is ``[start, end)``: the start instant is included and the
end instant is not, so a booking ending at 10:00 and another starting at 10:00
never share an instant. Callers reject ``start >= end`` before reaching these
helpers.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Protocol

from backend.domain.models import TimeInterval, WorkHours


class Interval(Protocol):
    @property
    def start(self) -> datetime:
        ...

    @property
    def end(self) -> datetime:
        ...


def overlaps(a: Interval, b: Interval) -> bool:
    return a.start < b.end and b.start < a.end


def clip(interval: Interval, window: Interval) -> Optional[TimeInterval]:
    """Return the intersection of ``interval`` and ``window``, or None if disjoint."""
    start = max(interval.start, window.start)
    end = min(interval.end, window.end)
    if start >= end:
        return None
    return TimeInterval(start=start, end=end)


def duration_minutes(interval: Interval) -> int:
    """Whole minutes covered by the interval, truncated and never negative."""
    seconds = (interval.end - interval.start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def window_on_day(work_hours: WorkHours, day: date) -> TimeInterval:
    return TimeInterval(
        start=datetime.combine(day, work_hours.start),
        end=datetime.combine(day, work_hours.end),
    )


def split_by_day(interval: Interval) -> list[TimeInterval]:
    """Cut an interval at every midnight it crosses."""
    pieces: list[TimeInterval] = []
    cursor = interval.start
    while cursor < interval.end:
        next_midnight = datetime.combine(cursor.date() + timedelta(days=1), time.min)
        piece_end = min(next_midnight, interval.end)
        pieces.append(TimeInterval(start=cursor, end=piece_end))
        cursor = piece_end
    return pieces


def split_by_hour(interval: Interval) -> list[TimeInterval]:
    """Cut an interval at every top of the hour it crosses."""
    pieces: list[TimeInterval] = []
    cursor = interval.start
    while cursor < interval.end:
        next_hour = cursor.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
        piece_end = min(next_hour, interval.end)
        pieces.append(TimeInterval(start=cursor, end=piece_end))
        cursor = piece_end
    return pieces


def intersect_work_hours(a: WorkHours, b: Optional[WorkHours]) -> Optional[WorkHours]:
    """Narrow a room's work hours by an optional reporting window."""
    if b is None:
        return a
    start = max(a.start, b.start)
    end = min(a.end, b.end)
    if start >= end:
        return None
    return WorkHours(start=start, end=end)
