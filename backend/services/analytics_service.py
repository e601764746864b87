"""Utilization analytics over a date range, a room filter and a work-hours window."""

from __future__ import annotations

from datetime import date, time
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd

from backend.domain.intervals import (
    clip,
    duration_minutes,
    intersect_work_hours,
    split_by_day,
    split_by_hour,
    window_on_day,
)
from backend.domain.models import (
    AnalyticsResult,
    Booking,
    DailyTrendPoint,
    DateRange,
    LeaderboardEntry,
    PeakHour,
    Room,
    TimeInterval,
    WorkHours,
)
from backend.repository.data_repository import DataRepository
from backend.utils.clock import Clock, SystemClock
from backend.utils.config import Settings, get_settings
from backend.utils.logger import get_logger


logger = get_logger(__name__)

_SEGMENT_COLUMNS = ["booking_id", "room_id", "day", "weekday", "hour", "minutes"]


class AnalyticsValidationError(Exception):
    """Raised when an analytics query is outside the supported bounds."""


def _select_rooms(rooms: Iterable[Room], room_filter: Sequence[int]) -> list[Room]:
    """Active rooms named by the filter, or every active room when it is empty."""
    active = {room.room_id: room for room in rooms if room.active}
    if not room_filter:
        return [active[room_id] for room_id in sorted(active)]
    wanted = {int(room_id) for room_id in room_filter}
    return [active[room_id] for room_id in sorted(wanted) if room_id in active]


def build_segment_frame(
    rooms: Sequence[Room],
    bookings: Iterable[Booking],
    date_range: DateRange,
    windows: dict[int, Optional[WorkHours]],
) -> pd.DataFrame:
    """Clip qualifying bookings to work hours once, one row per hour slice.

    Bookings are first bounded to the date range, then split at midnight so
    every calendar day is clipped to that day's window, then split at each
    top of the hour for hour-of-day bucketing. Hour slices share out the
    clipped piece's whole minutes, so they always sum to its duration.
    Uncommitted bookings without an id get a negative positional key.
    """
    room_ids = {room.room_id for room in rooms}
    range_interval = date_range.as_interval()
    rows: list[tuple[int, int, date, int, int, int]] = []
    for position, booking in enumerate(bookings):
        if booking.room_id not in room_ids or booking.start >= booking.end:
            continue
        key = booking.booking_id if booking.booking_id is not None else -(position + 1)
        window = windows.get(booking.room_id)
        if window is None:
            continue
        in_range = clip(booking, range_interval)
        if in_range is None:
            continue
        for day_piece in split_by_day(in_range):
            day = day_piece.start.date()
            clipped = clip(day_piece, window_on_day(window, day))
            if clipped is None:
                continue
            counted = 0
            for hour_piece in split_by_hour(clipped):
                # minutes elapsed since the clipped start, truncated once
                through = duration_minutes(TimeInterval(clipped.start, hour_piece.end))
                minutes = through - counted
                counted = through
                if minutes <= 0:
                    continue
                rows.append(
                    (
                        int(key),
                        booking.room_id,
                        day,
                        day.weekday(),
                        hour_piece.start.hour,
                        minutes,
                    )
                )
    return pd.DataFrame(rows, columns=_SEGMENT_COLUMNS)


def _peak_hours(segments: pd.DataFrame) -> list[PeakHour]:
    by_hour = segments.groupby("hour")["minutes"].sum()
    ranked = sorted(
        ((int(hour), int(minutes)) for hour, minutes in by_hour.items() if minutes > 0),
        key=lambda item: (-item[1], item[0]),
    )
    return [PeakHour(hour=hour, booked_minutes=minutes) for hour, minutes in ranked]


def _daily_trend(segments: pd.DataFrame, date_range: DateRange) -> list[DailyTrendPoint]:
    days = list(date_range.iter_days())
    if not days:
        return []
    if segments.empty:
        return [DailyTrendPoint(day=day, booked_minutes=0, booking_count=0) for day in days]
    per_day = (
        segments.groupby("day")
        .agg(booked_minutes=("minutes", "sum"), booking_count=("booking_id", "nunique"))
        .reindex(days, fill_value=0)
    )
    return [
        DailyTrendPoint(
            day=day,
            booked_minutes=int(row.booked_minutes),
            booking_count=int(row.booking_count),
        )
        for day, row in zip(days, per_day.itertuples(index=False))
    ]


def _heatmap(segments: pd.DataFrame) -> list[list[int]]:
    """Minutes per (weekday, hour); rows Monday..Sunday, columns 0..23."""
    matrix = np.zeros((7, 24), dtype=np.int64)
    if not segments.empty:
        np.add.at(
            matrix,
            (segments["weekday"].to_numpy(), segments["hour"].to_numpy()),
            segments["minutes"].to_numpy(),
        )
    return matrix.tolist()


def _leaderboard(
    segments: pd.DataFrame,
    rooms: Sequence[Room],
    windows: dict[int, Optional[WorkHours]],
    days: int,
) -> list[LeaderboardEntry]:
    minutes_by_room = segments.groupby("room_id")["minutes"].sum()
    bookings_by_room = segments.groupby("room_id")["booking_id"].nunique()
    ordered = sorted(
        rooms,
        key=lambda room: (-int(minutes_by_room.get(room.room_id, 0)), room.name),
    )
    entries: list[LeaderboardEntry] = []
    for rank, room in enumerate(ordered, start=1):
        booked = int(minutes_by_room.get(room.room_id, 0))
        window = windows.get(room.room_id)
        available = days * window.minutes_per_day if window is not None else 0
        entries.append(
            LeaderboardEntry(
                rank=rank,
                room_id=room.room_id,
                room_name=room.name,
                booked_minutes=booked,
                booking_count=int(bookings_by_room.get(room.room_id, 0)),
                utilization_rate=booked / available if available > 0 else 0.0,
            )
        )
    return entries


def aggregate(
    rooms: Iterable[Room],
    bookings: Iterable[Booking],
    date_range: DateRange,
    room_filter: Sequence[int] = (),
    work_hours: Optional[WorkHours] = None,
) -> AnalyticsResult:
    """Compute utilization, peak hours, daily trend, heatmap and leaderboard.

    Each room is clipped to its own work hours, narrowed by ``work_hours``
    when given. The clipped dataset is built once and every metric is read
    from it. Empty or unknown filters and empty ranges yield zero results.
    """
    selected = _select_rooms(rooms, room_filter)
    windows = {
        room.room_id: intersect_work_hours(room.work_hours, work_hours) for room in selected
    }
    segments = build_segment_frame(selected, bookings, date_range, windows)

    days = date_range.days
    total_available = sum(
        days * window.minutes_per_day for window in windows.values() if window is not None
    )
    total_booked = int(segments["minutes"].sum()) if not segments.empty else 0
    utilization = total_booked / total_available if total_available > 0 else 0.0

    return AnalyticsResult(
        date_range=date_range,
        room_ids=[room.room_id for room in selected],
        utilization_rate=utilization,
        total_booked_minutes=total_booked,
        total_available_minutes=total_available,
        booking_count=int(segments["booking_id"].nunique()),
        peak_hours=_peak_hours(segments),
        daily_trend=_daily_trend(segments, date_range),
        heatmap=_heatmap(segments),
        leaderboard=_leaderboard(segments, selected, windows, days),
    )


class AnalyticsService:
    """Reads store snapshots and runs the aggregator over them."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._clock = clock or SystemClock()

    def _resolve_work_hours(
        self,
        work_start: Optional[time],
        work_end: Optional[time],
    ) -> Optional[WorkHours]:
        if work_start is None and work_end is None:
            return None
        window = WorkHours(
            start=work_start if work_start is not None else self._settings.default_work_start,
            end=work_end if work_end is not None else self._settings.default_work_end,
        )
        if window.start >= window.end:
            raise AnalyticsValidationError("work_start must be earlier than work_end")
        return window

    def compute(
        self,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        room_ids: Optional[Sequence[int]] = None,
        work_start: Optional[time] = None,
        work_end: Optional[time] = None,
    ) -> AnalyticsResult:
        today = self._clock.now().date()
        date_range = DateRange(
            start=start_date or end_date or today,
            end=end_date or start_date or today,
        )
        if date_range.days > self._settings.analytics_max_range_days:
            raise AnalyticsValidationError(
                f"date range exceeds {self._settings.analytics_max_range_days} days"
            )
        work_hours = self._resolve_work_hours(work_start, work_end)

        range_interval = date_range.as_interval()
        rooms = self._repository.list_rooms()
        bookings = self._repository.list_bookings(
            start=range_interval.start,
            end=range_interval.end,
        )
        result = aggregate(
            rooms,
            bookings,
            date_range,
            room_filter=list(room_ids or []),
            work_hours=work_hours,
        )
        logger.debug(
            "Analytics computed for %s rooms over %s days (utilization=%.4f)",
            len(result.room_ids),
            date_range.days,
            result.utilization_rate,
        )
        return result
