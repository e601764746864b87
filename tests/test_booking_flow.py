from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from app import create_app
from backend.domain.constraints import ConflictError, InactiveRoomError, InvalidRangeError
from backend.repository.data_repository import DataRepository
from backend.services.booking_service import BookingNotFoundError, BookingService
from backend.services.room_service import RoomService, RoomValidationError
from backend.utils.clock import FixedClock
from backend.utils.config import get_settings


NOW = datetime(2026, 3, 2, 14, 0)


def _build_test_settings(tmp_path, filename: str):
    base = get_settings()
    return replace(
        base,
        database_path=tmp_path / filename,
        synthetic_seed_days=3,
    )


def _build_services(tmp_path, filename: str) -> tuple[RoomService, BookingService, DataRepository]:
    settings = _build_test_settings(tmp_path, filename)
    repository = DataRepository(settings)
    repository.initialize_database()
    return (
        RoomService(repository=repository, settings=settings),
        BookingService(repository=repository, settings=settings),
        repository,
    )


def test_booking_service_commits_only_valid_bookings(tmp_path):
    rooms, bookings, repository = _build_services(tmp_path, "booking_service.db")
    room = rooms.create_room(name="Aurora", location="Floor 1", capacity=6)

    first = bookings.create_booking(
        room_id=room.room_id,
        title="Planning",
        start=datetime(2026, 3, 2, 10, 30),
        end=datetime(2026, 3, 2, 11, 30),
    )

    with pytest.raises(ConflictError) as excinfo:
        bookings.create_booking(
            room_id=room.room_id,
            title="Overlap",
            start=datetime(2026, 3, 2, 10, 0),
            end=datetime(2026, 3, 2, 11, 0),
        )
    assert excinfo.value.conflicting_ids == [first.booking_id]
    assert repository.count_bookings() == 1

    adjacent = bookings.create_booking(
        room_id=room.room_id,
        title="Follow-up",
        start=datetime(2026, 3, 2, 11, 30),
        end=datetime(2026, 3, 2, 12, 0),
    )
    assert repository.count_bookings() == 2

    renamed = bookings.update_booking(first.booking_id, title="Planning (moved title)")
    assert renamed.start == first.start
    assert renamed.title == "Planning (moved title)"

    with pytest.raises(ConflictError):
        bookings.update_booking(adjacent.booking_id, start=datetime(2026, 3, 2, 11, 0))


def test_booking_service_rejects_inactive_room_and_missing_booking(tmp_path):
    rooms, bookings, _ = _build_services(tmp_path, "inactive.db")
    room = rooms.create_room(name="Aurora", location="Floor 1", capacity=6, active=False)

    with pytest.raises(InactiveRoomError):
        bookings.create_booking(
            room_id=room.room_id,
            title="Planning",
            start=datetime(2026, 3, 2, 9, 0),
            end=datetime(2026, 3, 2, 10, 0),
        )
    with pytest.raises(BookingNotFoundError):
        bookings.delete_booking(12345)


def test_room_service_validates_fields(tmp_path):
    rooms, _, _ = _build_services(tmp_path, "rooms.db")

    with pytest.raises(RoomValidationError):
        rooms.create_room(name="  ", location="Floor 1", capacity=6)
    with pytest.raises(RoomValidationError):
        rooms.create_room(name="Aurora", location="Floor 1", capacity=0)

    room = rooms.create_room(
        name="Aurora",
        location="Floor 1",
        capacity=6,
        amenities=["video", " video ", "whiteboard"],
    )
    assert room.amenities == frozenset({"video", "whiteboard"})
    assert rooms.set_active(room.room_id, False).active is False


def test_sub_second_booking_is_rejected_before_commit(tmp_path):
    rooms, bookings, repository = _build_services(tmp_path, "sub_second.db")
    room = rooms.create_room(name="Aurora", location="Floor 1", capacity=6)

    with pytest.raises(InvalidRangeError):
        bookings.create_booking(
            room_id=room.room_id,
            title="Blink",
            start=datetime(2026, 3, 2, 10, 0, 0, 200000),
            end=datetime(2026, 3, 2, 10, 0, 0, 800000),
        )
    assert repository.count_bookings() == 0
    assert not bookings.check_availability(
        room.room_id,
        datetime(2026, 3, 2, 10, 0, 0, 200000),
        datetime(2026, 3, 2, 10, 0, 0, 800000),
    ).ok

    kept = bookings.create_booking(
        room_id=room.room_id,
        title="Planning",
        start=datetime(2026, 3, 2, 10, 0, 0, 500000),
        end=datetime(2026, 3, 2, 11, 0, 30, 900000),
    )
    assert kept.start == datetime(2026, 3, 2, 10, 0, 0)
    assert kept.end == datetime(2026, 3, 2, 11, 0, 30)

    with pytest.raises(InvalidRangeError):
        bookings.update_booking(
            kept.booking_id,
            start=datetime(2026, 3, 2, 11, 0, 30, 100000),
        )


def test_repository_raises_when_inserted_row_cannot_be_read_back(tmp_path, monkeypatch):
    rooms, _, repository = _build_services(tmp_path, "readback.db")
    room = rooms.create_room(name="Aurora", location="Floor 1", capacity=6)

    monkeypatch.setattr(repository, "get_booking", lambda booking_id: None)
    with pytest.raises(RuntimeError):
        repository.create_booking(
            room_id=room.room_id,
            title="Planning",
            start=datetime(2026, 3, 2, 9, 0),
            end=datetime(2026, 3, 2, 10, 0),
        )

    monkeypatch.setattr(repository, "get_room", lambda room_id: None)
    with pytest.raises(RuntimeError):
        repository.create_room(
            name="Borealis",
            location="Floor 2",
            capacity=4,
            work_hours=room.work_hours,
        )


def test_seed_is_idempotent_and_conflict_free(tmp_path):
    _, bookings, repository = _build_services(tmp_path, "seed.db")
    repository.seed_synthetic_data()
    seeded_count = repository.count_bookings()
    repository.seed_synthetic_data()
    assert repository.count_bookings() == seeded_count

    seeded = repository.list_bookings()
    assert seeded
    for booking in seeded:
        assert bookings.check_availability(
            booking.room_id,
            booking.start,
            booking.end,
            booking_id=booking.booking_id,
        ).ok


def _client(tmp_path, filename: str) -> TestClient:
    app = create_app(
        settings=_build_test_settings(tmp_path, filename),
        clock=FixedClock(NOW),
        seed=False,
    )
    return TestClient(app)


def test_booking_api_end_to_end_flow(tmp_path):
    with _client(tmp_path, "api_flow.db") as client:
        assert client.get("/health").json()["status"] == "ok"

        room_response = client.post(
            "/rooms",
            json={
                "name": "Aurora",
                "location": "Floor 1",
                "capacity": 6,
                "work_hours": {"start": "08:00", "end": "20:00"},
                "amenities": ["display"],
            },
        )
        assert room_response.status_code == 201
        room_id = room_response.json()["room_id"]

        created = client.post(
            "/bookings",
            json={
                "room_id": room_id,
                "title": "Planning",
                "start": "2026-03-02T13:00:00",
                "end": "2026-03-02T15:00:00",
            },
        )
        assert created.status_code == 201
        booking_id = created.json()["booking_id"]

        conflict = client.post(
            "/bookings",
            json={
                "room_id": room_id,
                "title": "Overlap",
                "start": "2026-03-02T14:30:00",
                "end": "2026-03-02T15:30:00",
            },
        )
        assert conflict.status_code == 409
        assert conflict.json()["detail"]["conflicting_booking_ids"] == [booking_id]

        check = client.post(
            "/bookings/check",
            json={
                "room_id": room_id,
                "start": "2026-03-02T14:30:00",
                "end": "2026-03-02T15:30:00",
            },
        )
        assert check.status_code == 200
        assert check.json()["available"] is False
        assert check.json()["error_type"] == "ConflictError"

        follow_up = client.post(
            "/bookings",
            json={
                "room_id": room_id,
                "title": "Follow-up",
                "start": "2026-03-02T15:00:00",
                "end": "2026-03-02T16:00:00",
            },
        )
        assert follow_up.status_code == 201

        invalid = client.post(
            "/bookings",
            json={
                "room_id": room_id,
                "title": "Backwards",
                "start": "2026-03-02T18:00:00",
                "end": "2026-03-02T18:00:00",
            },
        )
        assert invalid.status_code == 400

        unchanged = client.put(
            f"/bookings/{booking_id}",
            json={"start": "2026-03-02T13:00:00", "end": "2026-03-02T15:00:00"},
        )
        assert unchanged.status_code == 200

        status_response = client.get(f"/rooms/{room_id}/status")
        assert status_response.status_code == 200
        status_payload = status_response.json()
        assert status_payload["status"] == "busy"
        assert status_payload["next_change"] == "2026-03-02T16:00:00"
        assert status_payload["current_booking_id"] == booking_id

        analytics_response = client.post(
            "/analytics",
            json={
                "start_date": "2026-03-02",
                "end_date": "2026-03-02",
                "room_ids": [room_id],
            },
        )
        assert analytics_response.status_code == 200
        analytics_payload = analytics_response.json()
        assert analytics_payload["total_booked_minutes"] == 180
        assert analytics_payload["utilization_rate"] == pytest.approx(180 / 720)
        assert analytics_payload["peak_hours"][0]["hour"] == 13
        assert analytics_payload["leaderboard"][0]["room_id"] == room_id

        deactivated = client.put(f"/rooms/{room_id}", json={"active": False})
        assert deactivated.status_code == 200
        board = client.get("/rooms/status").json()["rooms"]
        assert board == [
            {
                "room_id": room_id,
                "status": "unavailable",
                "next_change": None,
                "next_status": None,
                "current_booking_id": None,
            }
        ]

        inactive = client.post(
            "/bookings",
            json={
                "room_id": room_id,
                "title": "Late",
                "start": "2026-03-02T18:00:00",
                "end": "2026-03-02T19:00:00",
            },
        )
        assert inactive.status_code == 409

        assert client.delete(f"/bookings/{booking_id}").status_code == 204
        assert client.get(f"/bookings/{booking_id}").status_code == 404


def test_unknown_room_returns_404(tmp_path):
    with _client(tmp_path, "api_missing.db") as client:
        assert client.get("/rooms/999").status_code == 404
        assert client.get("/rooms/999/status").status_code == 404
        response = client.post(
            "/bookings",
            json={
                "room_id": 999,
                "title": "Ghost",
                "start": "2026-03-02T09:00:00",
                "end": "2026-03-02T10:00:00",
            },
        )
        assert response.status_code == 404


def test_analytics_endpoint_rejects_inverted_dates(tmp_path):
    with _client(tmp_path, "api_analytics.db") as client:
        response = client.post(
            "/analytics",
            json={"start_date": "2026-03-05", "end_date": "2026-03-01"},
        )
        assert response.status_code == 422


def test_sub_second_booking_returns_400_not_500(tmp_path):
    with _client(tmp_path, "api_sub_second.db") as client:
        room_id = client.post(
            "/rooms",
            json={"name": "Aurora", "location": "Floor 1", "capacity": 6},
        ).json()["room_id"]
        response = client.post(
            "/bookings",
            json={
                "room_id": room_id,
                "title": "Blink",
                "start": "2026-03-02T10:00:00.200",
                "end": "2026-03-02T10:00:00.800",
            },
        )
        assert response.status_code == 400
