#!/usr/bin/env python3
"""Validate local environment readiness for the booking and analytics API."""

from __future__ import annotations

import importlib
import shutil
import sys
import tempfile
from dataclasses import replace
from datetime import datetime, timedelta
from importlib.metadata import version
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backend.repository.data_repository import DataRepository
from backend.services.analytics_service import AnalyticsService
from backend.services.booking_service import BookingService
from backend.utils.config import get_settings

SEPARATOR_LINE = "=" * 44


def _print_result(name: str, success: bool, detail: str = "") -> tuple[bool, str]:
    if success:
        return True, f"[PASS] {name}{detail}"
    return False, f"[FAIL] {name}: {detail}"


def main() -> int:
    results: list[str] = []
    all_passed = True
    temp_dir = tempfile.mkdtemp(prefix="rooms-env-")

    # CHECK 1 — Python version >= 3.10
    if sys.version_info >= (3, 10):
        ok, line = _print_result("Python " + sys.version.split()[0], True)
    else:
        ok, line = _print_result(
            "Python version >= 3.10",
            False,
            f"found {sys.version.split()[0]}",
        )
    results.append(line)
    all_passed = all_passed and ok

    # CHECK 2 — Required packages importable with versions
    package_specs = [
        ("fastapi", "fastapi"),
        ("uvicorn", "uvicorn"),
        ("pydantic", "pydantic"),
        ("numpy", "numpy"),
        ("pandas", "pandas"),
        ("httpx", "httpx"),
        ("pytest", "pytest"),
    ]
    import_errors: list[str] = []
    for module_name, dist_name in package_specs:
        try:
            importlib.import_module(module_name)
            version(dist_name)
        except Exception as exc:  # pragma: no cover - runtime guard
            import_errors.append(f"{module_name} ({exc})")
    if import_errors:
        ok, line = _print_result(
            "Required packages",
            False,
            "missing/unimportable -> " + "; ".join(import_errors),
        )
    else:
        ok, line = _print_result("Required packages: all importable", True)
    results.append(line)
    all_passed = all_passed and ok

    try:
        validation_settings = replace(
            get_settings(),
            database_path=Path(temp_dir) / "rooms_validation.db",
        )
        repository = DataRepository(validation_settings)

        # CHECK 3 — Database initialization
        try:
            repository.initialize_database()
            ok, line = _print_result("Database initialization", True)
        except Exception as exc:
            ok, line = _print_result("Database initialization", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 4 — Synthetic data seeding
        try:
            repository.seed_synthetic_data()
            seeded_rooms = len(repository.list_rooms())
            seeded_bookings = repository.count_bookings()
            if seeded_rooms != len(validation_settings.synthetic_rooms):
                raise RuntimeError(f"expected {len(validation_settings.synthetic_rooms)} rooms")
            ok, line = _print_result(
                "Synthetic dataset",
                True,
                f": {seeded_rooms} rooms, {seeded_bookings} bookings",
            )
        except Exception as exc:
            ok, line = _print_result("Synthetic dataset", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 5 — Conflict validation round-trip
        try:
            booking_service = BookingService(repository=repository, settings=validation_settings)
            probe_start = datetime.combine(
                datetime.now().date() + timedelta(days=30),
                validation_settings.default_work_start,
            )
            result = booking_service.check_availability(
                room_id=1,
                start=probe_start,
                end=probe_start + timedelta(hours=1),
            )
            if not result.ok:
                raise RuntimeError(f"expected free probe slot, got {result.error}")
            ok, line = _print_result("Booking validation", True)
        except Exception as exc:
            ok, line = _print_result("Booking validation", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

        # CHECK 6 — Analytics smoke computation
        try:
            analytics = AnalyticsService(repository=repository, settings=validation_settings)
            today = datetime.now().date()
            summary = analytics.compute(
                start_date=today - timedelta(days=7),
                end_date=today,
            )
            if not 0.0 <= summary.utilization_rate <= 1.0:
                raise RuntimeError("utilization out of [0,1] bounds")
            ok, line = _print_result(
                "Analytics aggregation",
                True,
                f": utilization={summary.utilization_rate:.4f}",
            )
        except Exception as exc:
            ok, line = _print_result("Analytics aggregation", False, str(exc))
        results.append(line)
        all_passed = all_passed and ok

    finally:
        shutil.rmtree(temp_dir, ignore_errors=True)

    print(SEPARATOR_LINE)
    print(" Environment Validation")
    print(SEPARATOR_LINE)
    for line in results:
        print(f" {line}")
    print(SEPARATOR_LINE)
    if all_passed:
        print(" All checks passed. Environment is ready.")
        print(SEPARATOR_LINE)
        return 0
    print(" One or more checks failed.")
    print(SEPARATOR_LINE)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
