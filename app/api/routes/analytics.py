"""Usage analytics route."""

from __future__ import annotations

from fastapi import APIRouter

from app.schemas.analytics import AnalyticsResponse
from app.services import analytics as analytics_service


router = APIRouter(prefix="/analytics")


@router.get(
    "",
    response_model=AnalyticsResponse,
    summary="Usage analytics",
    description="Top indicators, daily view trend, category breakdown and data freshness, read from one snapshot.",
)
async def get_analytics() -> AnalyticsResponse:
    return await analytics_service.get_analytics()
