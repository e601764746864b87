"""Domain models for room booking, occupancy status and utilization analytics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Iterator, Optional


@dataclass(frozen=True)
class WorkHours:
    """Daily bookable time-of-day window ``[start, end)``."""

    start: time
    end: time

    @property
    def minutes_per_day(self) -> int:
        start_minutes = self.start.hour * 60 + self.start.minute
        end_minutes = self.end.hour * 60 + self.end.minute
        return max(0, end_minutes - start_minutes)

    def to_dict(self) -> dict[str, str]:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
        }


@dataclass(frozen=True)
class TimeInterval:
    """Absolute half-open interval ``[start, end)``."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class Room:
    room_id: int
    name: str
    location: str
    capacity: int
    work_hours: WorkHours
    amenities: frozenset[str] = frozenset()
    active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "name": self.name,
            "location": self.location,
            "capacity": self.capacity,
            "work_hours": self.work_hours.to_dict(),
            "amenities": sorted(self.amenities),
            "active": self.active,
        }


@dataclass(frozen=True)
class Booking:
    """A reservation of one room; ``booking_id`` is None before commit."""

    booking_id: Optional[int]
    room_id: int
    title: str
    start: datetime
    end: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(start=self.start, end=self.end)

    def to_dict(self) -> dict[str, Any]:
        return {
            "booking_id": self.booking_id,
            "room_id": self.room_id,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class DateRange:
    """Calendar date range, inclusive of both ``start`` and ``end``.

    A range whose end precedes its start is empty and spans zero days.
    """

    start: date
    end: date

    @property
    def days(self) -> int:
        return max(0, (self.end - self.start).days + 1)

    def iter_days(self) -> Iterator[date]:
        for offset in range(self.days):
            yield self.start + timedelta(days=offset)

    def as_interval(self) -> TimeInterval:
        start = datetime.combine(self.start, time.min)
        return TimeInterval(start=start, end=start + timedelta(days=self.days))


class RoomStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class StatusSnapshot:
    room_id: int
    status: RoomStatus
    next_change: Optional[datetime] = None
    next_status: Optional[RoomStatus] = None
    current_booking_id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "status": self.status.value,
            "next_change": self.next_change.isoformat() if self.next_change else None,
            "next_status": self.next_status.value if self.next_status else None,
            "current_booking_id": self.current_booking_id,
        }


@dataclass(frozen=True)
class PeakHour:
    hour: int
    booked_minutes: int


@dataclass(frozen=True)
class DailyTrendPoint:
    day: date
    booked_minutes: int
    booking_count: int


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    room_id: int
    room_name: str
    booked_minutes: int
    booking_count: int
    utilization_rate: float


@dataclass(frozen=True)
class AnalyticsResult:
    date_range: DateRange
    room_ids: list[int]
    utilization_rate: float
    total_booked_minutes: int
    total_available_minutes: int
    booking_count: int
    peak_hours: list[PeakHour] = field(default_factory=list)
    daily_trend: list[DailyTrendPoint] = field(default_factory=list)
    heatmap: list[list[int]] = field(default_factory=list)
    leaderboard: list[LeaderboardEntry] = field(default_factory=list)

    @property
    def room_utilization(self) -> dict[int, float]:
        return {entry.room_id: entry.utilization_rate for entry in self.leaderboard}

    def to_dict(self) -> dict[str, Any]:
        busiest = max(
            self.daily_trend,
            key=lambda point: (point.booked_minutes, -point.day.toordinal()),
            default=None,
        )
        return {
            "start_date": self.date_range.start.isoformat(),
            "end_date": self.date_range.end.isoformat(),
            "room_ids": list(self.room_ids),
            "utilization_rate": self.utilization_rate,
            "total_booked_minutes": self.total_booked_minutes,
            "total_available_minutes": self.total_available_minutes,
            "booking_count": self.booking_count,
            "peak_hours": [
                {"hour": item.hour, "booked_minutes": item.booked_minutes}
                for item in self.peak_hours
            ],
            "daily_trend": [
                {
                    "date": point.day.isoformat(),
                    "booked_minutes": point.booked_minutes,
                    "booking_count": point.booking_count,
                }
                for point in self.daily_trend
            ],
            "heatmap": [list(row) for row in self.heatmap],
            "leaderboard": [
                {
                    "rank": entry.rank,
                    "room_id": entry.room_id,
                    "room_name": entry.room_name,
                    "booked_minutes": entry.booked_minutes,
                    "booking_count": entry.booking_count,
                    "utilization_rate": entry.utilization_rate,
                }
                for entry in self.leaderboard
            ],
            "summary": {
                "busiest_day": (
                    busiest.day.isoformat()
                    if busiest is not None and busiest.booked_minutes > 0
                    else None
                ),
                "top_room_id": (
                    self.leaderboard[0].room_id
                    if self.leaderboard and self.leaderboard[0].booked_minutes > 0
                    else None
                ),
            },
        }
