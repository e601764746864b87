"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import time
from functools import lru_cache
from pathlib import Path


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def parse_time_of_day(value: str) -> time:
    """Parse an ``HH:MM`` string into a time-of-day."""
    try:
        hour_text, minute_text = value.strip().split(":")
        return time(hour=int(hour_text), minute=int(minute_text))
    except ValueError as exc:
        raise ValueError(f"time of day must follow HH:MM format, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str = "Meeting Room Booking & Analytics"
    app_version: str = "1.0.0"
    database_path: Path = Path("data/meeting_rooms.db")
    log_level: str = "INFO"

    default_work_start: time = time(8, 0)
    default_work_end: time = time(20, 0)
    analytics_max_range_days: int = 366

    synthetic_seed_days: int = 28
    synthetic_random_seed: int = 42
    synthetic_bookings_per_day: int = 4
    synthetic_rooms: tuple[tuple[str, str, int, tuple[str, ...]], ...] = (
        ("Aurora", "Floor 1", 6, ("display", "whiteboard")),
        ("Borealis", "Floor 1", 10, ("display", "video")),
        ("Cascade", "Floor 2", 4, ("whiteboard",)),
        ("Delta", "Floor 2", 12, ("display", "video", "whiteboard")),
        ("Ember", "Floor 3", 20, ("projector", "video")),
    )


def _validate_settings(settings: Settings) -> None:
    if settings.default_work_start >= settings.default_work_end:
        raise ValueError("DEFAULT_WORK_START must be earlier than DEFAULT_WORK_END")
    if settings.analytics_max_range_days <= 0:
        raise ValueError("ANALYTICS_MAX_RANGE_DAYS must be > 0")
    if settings.synthetic_seed_days < 0:
        raise ValueError("SYNTHETIC_SEED_DAYS must be >= 0")
    if settings.synthetic_bookings_per_day < 0:
        raise ValueError("SYNTHETIC_BOOKINGS_PER_DAY must be >= 0")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process from environment variables."""
    defaults = Settings()
    settings = Settings(
        app_name=_env_str("APP_NAME", defaults.app_name),
        app_version=_env_str("APP_VERSION", defaults.app_version),
        database_path=Path(_env_str("DATABASE_PATH", str(defaults.database_path))),
        log_level=_env_str("LOG_LEVEL", defaults.log_level),
        default_work_start=parse_time_of_day(_env_str("DEFAULT_WORK_START", "08:00")),
        default_work_end=parse_time_of_day(_env_str("DEFAULT_WORK_END", "20:00")),
        analytics_max_range_days=_env_int(
            "ANALYTICS_MAX_RANGE_DAYS", defaults.analytics_max_range_days
        ),
        synthetic_seed_days=_env_int("SYNTHETIC_SEED_DAYS", defaults.synthetic_seed_days),
        synthetic_random_seed=_env_int("SYNTHETIC_RANDOM_SEED", defaults.synthetic_random_seed),
        synthetic_bookings_per_day=_env_int(
            "SYNTHETIC_BOOKINGS_PER_DAY", defaults.synthetic_bookings_per_day
        ),
    )
    _validate_settings(settings)
    return settings
