"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import random
import sqlite3
from datetime import datetime, time, timedelta
from pathlib import Path
from typing import Iterable, List, Optional

from backend.domain.models import Booking, Room, WorkHours
from backend.utils.config import Settings, get_settings, parse_time_of_day
from backend.utils.logger import get_logger


logger = get_logger(__name__)


def _to_db_timestamp(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat(timespec="seconds")


def _from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(str(value))


def _now_timestamp() -> str:
    return _to_db_timestamp(datetime.now())


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._db_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @staticmethod
    def _row_to_room(row: sqlite3.Row) -> Room:
        return Room(
            room_id=int(row["id"]),
            name=str(row["name"]),
            location=str(row["location"]),
            capacity=int(row["capacity"]),
            work_hours=WorkHours(
                start=parse_time_of_day(str(row["work_start"])),
                end=parse_time_of_day(str(row["work_end"])),
            ),
            amenities=frozenset(json.loads(row["amenities"] or "[]")),
            active=bool(row["active"]),
        )

    @staticmethod
    def _row_to_booking(row: sqlite3.Row) -> Booking:
        return Booking(
            booking_id=int(row["id"]),
            room_id=int(row["room_id"]),
            title=str(row["title"]),
            start=datetime.fromisoformat(str(row["start_at"])),
            end=datetime.fromisoformat(str(row["end_at"])),
            created_at=_from_db_timestamp(row["created_at"]),
            updated_at=_from_db_timestamp(row["updated_at"]),
        )

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        location TEXT NOT NULL,
                        capacity INTEGER NOT NULL CHECK (capacity > 0),
                        work_start TEXT NOT NULL DEFAULT '08:00',
                        work_end TEXT NOT NULL DEFAULT '20:00',
                        amenities TEXT NOT NULL DEFAULT '[]',
                        active INTEGER NOT NULL DEFAULT 1 CHECK (active IN (0,1)),
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        room_id INTEGER NOT NULL,
                        title TEXT NOT NULL,
                        start_at TEXT NOT NULL,
                        end_at TEXT NOT NULL,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        CHECK (start_at < end_at),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id) ON DELETE CASCADE
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_room_start
                    ON Bookings(room_id, start_at);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_synthetic_data(self) -> None:
        """Seed deterministic demo rooms and bookings only when tables are empty.

        Each seeded booking starts on the hour and lasts at most sixty
        minutes, and no two share a start hour per room and day, so the seed
        never violates the no-overlap rule.
        """
        rng = random.Random(self._settings.synthetic_random_seed)
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute("SELECT COUNT(*) AS count FROM Rooms;")
                room_count = int(cursor.fetchone()["count"])
                if room_count > 0:
                    logger.info("Synthetic data already present; skipping seed")
                    return

                stamp = _now_timestamp()
                work_start = self._settings.default_work_start
                work_end = self._settings.default_work_end
                cursor.executemany(
                    """
                    INSERT INTO Rooms (
                        name, location, capacity, work_start, work_end,
                        amenities, active, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?);
                    """,
                    [
                        (
                            name,
                            location,
                            capacity,
                            work_start.strftime("%H:%M"),
                            work_end.strftime("%H:%M"),
                            json.dumps(sorted(amenities)),
                            stamp,
                            stamp,
                        )
                        for name, location, capacity, amenities in self._settings.synthetic_rooms
                    ],
                )

                cursor.execute("SELECT id FROM Rooms ORDER BY id ASC;")
                room_ids = [int(row["id"]) for row in cursor.fetchall()]
                first_day = datetime.now().date() - timedelta(
                    days=self._settings.synthetic_seed_days
                )
                # seeded bookings last at most an hour, so the last start hour is end - 1
                last_start_hour = max(work_start.hour, work_end.hour - 1)
                start_hours = list(range(work_start.hour, last_start_hour + 1))
                titles = ("Stand-up", "Planning", "1:1", "Design review", "Client call", "Retro")

                booking_entries = []
                for offset in range(self._settings.synthetic_seed_days + 7):
                    current_day = first_day + timedelta(days=offset)
                    per_day = self._settings.synthetic_bookings_per_day
                    if current_day.weekday() >= 5:
                        per_day = per_day // 4
                    for room_id in room_ids:
                        count = min(per_day, len(start_hours))
                        for hour in sorted(rng.sample(start_hours, count)):
                            start_at = datetime.combine(current_day, time(hour, 0))
                            end_at = start_at + timedelta(minutes=rng.choice((30, 45, 60)))
                            booking_entries.append(
                                (
                                    room_id,
                                    rng.choice(titles),
                                    _to_db_timestamp(start_at),
                                    _to_db_timestamp(end_at),
                                    stamp,
                                    stamp,
                                )
                            )

                cursor.executemany(
                    """
                    INSERT INTO Bookings (
                        room_id, title, start_at, end_at, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    booking_entries,
                )
                conn.commit()
            logger.info(
                "Synthetic seed completed with %s rooms and %s bookings",
                len(room_ids),
                len(booking_entries),
            )
        except sqlite3.Error as exc:
            raise RuntimeError(f"Synthetic data seeding failed: {exc}") from exc

    def list_rooms(self, active_only: bool = False) -> List[Room]:
        """Return a snapshot of all rooms ordered by id."""
        query = "SELECT * FROM Rooms"
        if active_only:
            query += " WHERE active = 1"
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(query + " ORDER BY id ASC;")
            return [self._row_to_room(row) for row in cursor.fetchall()]

    def get_room(self, room_id: int) -> Optional[Room]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Rooms WHERE id = ?;", (room_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_room(row)

    def create_room(
        self,
        name: str,
        location: str,
        capacity: int,
        work_hours: WorkHours,
        amenities: Iterable[str] = (),
        active: bool = True,
    ) -> Room:
        """Insert a room row and return the stored snapshot."""
        stamp = _now_timestamp()
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Rooms (
                    name, location, capacity, work_start, work_end,
                    amenities, active, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    name,
                    location,
                    capacity,
                    work_hours.start.strftime("%H:%M"),
                    work_hours.end.strftime("%H:%M"),
                    json.dumps(sorted(set(amenities))),
                    1 if active else 0,
                    stamp,
                    stamp,
                ),
            )
            conn.commit()
            room_id = int(cursor.lastrowid)
        room = self.get_room(room_id)
        if room is None:
            raise RuntimeError(f"Room {room_id} vanished after insert")
        return room

    def update_room(self, room: Room) -> Optional[Room]:
        """Overwrite every mutable column of an existing room."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE Rooms
                SET name = ?,
                    location = ?,
                    capacity = ?,
                    work_start = ?,
                    work_end = ?,
                    amenities = ?,
                    active = ?,
                    updated_at = ?
                WHERE id = ?;
                """,
                (
                    room.name,
                    room.location,
                    room.capacity,
                    room.work_hours.start.strftime("%H:%M"),
                    room.work_hours.end.strftime("%H:%M"),
                    json.dumps(sorted(room.amenities)),
                    1 if room.active else 0,
                    _now_timestamp(),
                    room.room_id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
        return self.get_room(room.room_id)

    def delete_room(self, room_id: int) -> bool:
        """Delete a room; its bookings go with it through the cascade."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Rooms WHERE id = ?;", (room_id,))
            conn.commit()
            return cursor.rowcount > 0

    def list_bookings(
        self,
        room_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Booking]:
        """Return bookings, optionally restricted to a room and to ``[start, end)``."""
        clauses: list[str] = []
        params: list[object] = []
        if room_id is not None:
            clauses.append("room_id = ?")
            params.append(room_id)
        if end is not None:
            clauses.append("start_at < ?")
            params.append(_to_db_timestamp(end))
        if start is not None:
            clauses.append("end_at > ?")
            params.append(_to_db_timestamp(start))
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT *
                FROM Bookings
                {where}
                ORDER BY start_at ASC, id ASC;
                """,
                tuple(params),
            )
            return [self._row_to_booking(row) for row in cursor.fetchall()]

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Bookings WHERE id = ?;", (booking_id,))
            row = cursor.fetchone()
            if row is None:
                return None
            return self._row_to_booking(row)

    def create_booking(
        self,
        room_id: int,
        title: str,
        start: datetime,
        end: datetime,
    ) -> Booking:
        """Insert a booking row; callers validate before committing."""
        stamp = _now_timestamp()
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Bookings (
                    room_id, title, start_at, end_at, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (
                    room_id,
                    title,
                    _to_db_timestamp(start),
                    _to_db_timestamp(end),
                    stamp,
                    stamp,
                ),
            )
            conn.commit()
            booking_id = int(cursor.lastrowid)
        booking = self.get_booking(booking_id)
        if booking is None:
            raise RuntimeError(f"Booking {booking_id} vanished after insert")
        return booking

    def update_booking(self, booking: Booking) -> Optional[Booking]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                UPDATE Bookings
                SET room_id = ?,
                    title = ?,
                    start_at = ?,
                    end_at = ?,
                    updated_at = ?
                WHERE id = ?;
                """,
                (
                    booking.room_id,
                    booking.title,
                    _to_db_timestamp(booking.start),
                    _to_db_timestamp(booking.end),
                    _now_timestamp(),
                    booking.booking_id,
                ),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
        return self.get_booking(int(booking.booking_id))

    def delete_booking(self, booking_id: int) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM Bookings WHERE id = ?;", (booking_id,))
            conn.commit()
            return cursor.rowcount > 0

    def count_bookings(self) -> int:
        """Return persisted booking count for diagnostics and tests."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT COUNT(*) AS count FROM Bookings;")
            return int(cursor.fetchone()["count"])
