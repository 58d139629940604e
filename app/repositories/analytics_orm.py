"""Analytics aggregation queries over the catalog, time series and view ledger.

Every query is a pure statement builder plus a thin executor. `snapshot()`
runs the whole set on one REPEATABLE READ connection so the sections of an
analytics response describe the same state of the ledger.

Usage:
    from app.repositories import analytics_orm as analytics_repo

    snapshot = await analytics_repo.snapshot(window_days=30, trend_days=7, top_n=10)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import Date, and_, cast, desc, distinct, func, nulls_last, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_logger
from app.database.connection import get_session
from app.database.orm import Indicator, IndicatorData, IndicatorView


logger = get_logger("repositories.analytics_orm")


@dataclass
class AnalyticsSnapshot:
    """Raw rows of every analytics section, read in one transaction."""

    generated_at: datetime
    top_indicators: list[dict[str, Any]] = field(default_factory=list)
    daily_trend: list[dict[str, Any]] = field(default_factory=list)
    category_breakdown: list[dict[str, Any]] = field(default_factory=list)
    data_freshness: list[dict[str, Any]] = field(default_factory=list)
    total_views: int = 0


# =============================================================================
# STATEMENT BUILDERS
# =============================================================================


def build_top_indicators_query(since: datetime, limit: int):
    """Active indicators by views since `since`; unviewed indicators are omitted."""
    view_count = func.count(IndicatorView.id).label("view_count")
    return (
        select(
            Indicator.id,
            Indicator.name,
            Indicator.category,
            view_count,
            func.max(IndicatorView.viewed_at).label("last_viewed"),
        )
        .join(IndicatorView, IndicatorView.indicator_id == Indicator.id)
        .where(
            Indicator.is_active.is_(True),
            IndicatorView.viewed_at >= since,
        )
        .group_by(Indicator.id, Indicator.name, Indicator.category)
        .order_by(desc(view_count), Indicator.name.asc())
        .limit(limit)
    )


def build_daily_trend_query(since: datetime):
    """View counts per UTC calendar day, newest day first."""
    day = cast(func.timezone("UTC", IndicatorView.viewed_at), Date).label("date")
    return (
        select(day, func.count(IndicatorView.id).label("views"))
        .where(IndicatorView.viewed_at >= since)
        .group_by(day)
        .order_by(day.desc())
    )


def build_category_breakdown_query(since: datetime | None = None):
    """Active indicator count and views per category.

    With `since`, only views inside the window are counted; categories are
    listed even when none of their indicators was viewed.
    """
    join_on = IndicatorView.indicator_id == Indicator.id
    if since is not None:
        join_on = and_(join_on, IndicatorView.viewed_at >= since)

    total_views = func.count(IndicatorView.id).label("total_views")
    return (
        select(
            Indicator.category,
            func.count(distinct(Indicator.id)).label("indicator_count"),
            total_views,
        )
        .outerjoin(IndicatorView, join_on)
        .where(Indicator.is_active.is_(True))
        .group_by(Indicator.category)
        .order_by(desc(total_views), Indicator.category.asc())
    )


def build_data_freshness_query():
    """Newest point timestamp and point count per active indicator."""
    last_update = func.max(IndicatorData.ts_utc).label("last_update")
    return (
        select(
            Indicator.id,
            Indicator.name,
            last_update,
            func.count(IndicatorData.id).label("data_points"),
        )
        .outerjoin(IndicatorData, IndicatorData.indicator_id == Indicator.id)
        .where(Indicator.is_active.is_(True))
        .group_by(Indicator.id, Indicator.name)
        .order_by(nulls_last(desc(last_update)), Indicator.name.asc())
    )


def build_total_views_query(since: datetime | None = None):
    stmt = select(func.count(IndicatorView.id))
    if since is not None:
        stmt = stmt.where(IndicatorView.viewed_at >= since)
    return stmt


# =============================================================================
# EXECUTORS
# =============================================================================


async def _rows(session: AsyncSession, stmt) -> list[dict[str, Any]]:
    result = await session.execute(stmt)
    return [dict(row) for row in result.mappings().all()]


async def top_indicators(session: AsyncSession, since: datetime, limit: int) -> list[dict[str, Any]]:
    return await _rows(session, build_top_indicators_query(since, limit))


async def daily_trend(session: AsyncSession, since: datetime) -> list[dict[str, Any]]:
    return await _rows(session, build_daily_trend_query(since))


async def category_breakdown(session: AsyncSession, since: datetime | None = None) -> list[dict[str, Any]]:
    return await _rows(session, build_category_breakdown_query(since))


async def data_freshness(session: AsyncSession) -> list[dict[str, Any]]:
    return await _rows(session, build_data_freshness_query())


async def total_views(session: AsyncSession, since: datetime | None = None) -> int:
    result = await session.execute(build_total_views_query(since))
    return result.scalar_one()


async def snapshot(
    window_days: int = 30,
    trend_days: int = 7,
    top_n: int = 10,
    now: datetime | None = None,
) -> AnalyticsSnapshot:
    """Read every analytics section from one consistent snapshot.

    Args:
        window_days: Trailing window for top indicators and category views
        trend_days: Trailing window for the daily trend
        top_n: Maximum number of top indicators
        now: Anchor for the windows (defaults to the current time)
    """
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=window_days)
    trend_start = now - timedelta(days=trend_days)

    async with get_session() as session:
        await session.connection(
            execution_options={"isolation_level": "REPEATABLE READ"}
        )
        result = AnalyticsSnapshot(
            generated_at=now,
            top_indicators=await top_indicators(session, window_start, top_n),
            daily_trend=await daily_trend(session, trend_start),
            category_breakdown=await category_breakdown(session, window_start),
            data_freshness=await data_freshness(session),
            total_views=await total_views(session),
        )

    logger.debug(
        "Analytics snapshot read",
        extra={"window_days": window_days, "trend_days": trend_days, "top_n": top_n},
    )
    return result
