"""Analytics response assembly."""

from __future__ import annotations

from datetime import datetime, timedelta

from app.core.config import settings
from app.repositories import analytics_orm as analytics_repo
from app.schemas.analytics import (
    AnalyticsResponse,
    CategoryBreakdown,
    DailyTrendBucket,
    DataFreshness,
    TopIndicator,
)


def is_stale(last_update: datetime | None, now: datetime, stale_after: timedelta) -> bool:
    """Never-collected indicators count as stale."""
    if last_update is None:
        return True
    return now - last_update > stale_after


async def get_analytics(now: datetime | None = None) -> AnalyticsResponse:
    snapshot = await analytics_repo.snapshot(
        window_days=settings.view_count_window_days,
        trend_days=settings.analytics_trend_days,
        top_n=settings.analytics_top_n,
        now=now,
    )
    stale_after = timedelta(hours=settings.freshness_stale_hours)

    return AnalyticsResponse(
        generated_at=snapshot.generated_at,
        window_days=settings.view_count_window_days,
        trend_days=settings.analytics_trend_days,
        total_views=snapshot.total_views,
        top_indicators=[TopIndicator(**row) for row in snapshot.top_indicators],
        daily_trend=[DailyTrendBucket(**row) for row in snapshot.daily_trend],
        category_breakdown=[CategoryBreakdown(**row) for row in snapshot.category_breakdown],
        data_freshness=[
            DataFreshness(
                **row,
                is_stale=is_stale(row["last_update"], snapshot.generated_at, stale_after),
            )
            for row in snapshot.data_freshness
        ],
    )
