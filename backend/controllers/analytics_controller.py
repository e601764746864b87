"""HTTP controller layer for utilization analytics."""

from __future__ import annotations

from datetime import date, time
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator, model_validator

from backend.controllers.dependencies import get_analytics_service
from backend.services.analytics_service import AnalyticsService, AnalyticsValidationError
from backend.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["analytics"])


class AnalyticsRequest(BaseModel):
    """Query DTO; omitted dates default to today, empty room_ids to all active rooms."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    room_ids: list[int] = Field(default_factory=list)
    work_start: Optional[time] = None
    work_end: Optional[time] = None

    @field_validator("room_ids")
    @classmethod
    def validate_room_ids(cls, value: list[int]) -> list[int]:
        for room_id in value:
            if room_id <= 0:
                raise ValueError("room_ids values must be positive integers")
        return value

    @model_validator(mode="after")
    def validate_bounds(self) -> "AnalyticsRequest":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        if self.work_start and self.work_end and self.work_start >= self.work_end:
            raise ValueError("work_start must be earlier than work_end")
        return self


class PeakHourRow(BaseModel):
    hour: int = Field(ge=0, le=23)
    booked_minutes: int = Field(ge=0)


class DailyTrendRow(BaseModel):
    date: date
    booked_minutes: int = Field(ge=0)
    booking_count: int = Field(ge=0)


class LeaderboardRow(BaseModel):
    rank: int = Field(gt=0)
    room_id: int = Field(gt=0)
    room_name: str
    booked_minutes: int = Field(ge=0)
    booking_count: int = Field(ge=0)
    utilization_rate: float = Field(ge=0.0, le=1.0)


class AnalyticsSummary(BaseModel):
    busiest_day: Optional[date] = None
    top_room_id: Optional[int] = None


class AnalyticsResponse(BaseModel):
    start_date: date
    end_date: date
    room_ids: list[int]
    utilization_rate: float = Field(ge=0.0, le=1.0)
    total_booked_minutes: int = Field(ge=0)
    total_available_minutes: int = Field(ge=0)
    booking_count: int = Field(ge=0)
    peak_hours: list[PeakHourRow]
    daily_trend: list[DailyTrendRow]
    heatmap: list[list[int]]
    leaderboard: list[LeaderboardRow]
    summary: AnalyticsSummary


@router.post("/analytics", response_model=AnalyticsResponse, status_code=status.HTTP_200_OK)
async def analytics(
    payload: AnalyticsRequest,
    service: AnalyticsService = Depends(get_analytics_service),
) -> AnalyticsResponse:
    """Utilization, peak hours, daily trend, heatmap and leaderboard for a range."""
    try:
        result = service.compute(
            start_date=payload.start_date,
            end_date=payload.end_date,
            room_ids=payload.room_ids,
            work_start=payload.work_start,
            work_end=payload.work_end,
        )
        return AnalyticsResponse(**result.to_dict())
    except AnalyticsValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except Exception as exc:  # pragma: no cover - defensive fallback
        logger.exception("Unexpected analytics failure")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute analytics",
        ) from exc
