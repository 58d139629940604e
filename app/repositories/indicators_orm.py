"""Indicator catalog repository using SQLAlchemy ORM.

Catalog rows are created by seeding or by an admin registration and are never
deleted; deactivation hides an indicator from listings and detail reads while
its history stays in place.

Usage:
    from app.repositories import indicators_orm as indicators_repo

    indicator = await indicators_repo.get_active_indicator("cnn-fgi")
    rows = await indicators_repo.list_with_latest(category="sentiment")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, nulls_last, or_, select, true
from sqlalchemy.dialects.postgresql import insert

from app.core.logging import get_logger
from app.database.connection import get_session
from app.database.orm import Indicator, IndicatorData, IndicatorView
from app.domain import SortDirection, SortField


logger = get_logger("repositories.indicators_orm")


@dataclass(frozen=True)
class IndicatorDefinition:
    """Catalog entry as seeded or registered."""

    id: str
    name: str
    category: str
    source: str
    description: str | None = None


# =============================================================================
# CATALOG
# =============================================================================


async def get_indicator(indicator_id: str) -> Indicator | None:
    """Get a catalog entry by id, active or not."""
    async with get_session() as session:
        return await session.get(Indicator, indicator_id)


async def get_active_indicator(indicator_id: str) -> Indicator | None:
    """Get a catalog entry by id, or None if missing or deactivated."""
    async with get_session() as session:
        result = await session.execute(
            select(Indicator).where(
                Indicator.id == indicator_id,
                Indicator.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()


async def list_categories() -> list[dict[str, Any]]:
    """Get categories that have at least one active indicator, with counts."""
    async with get_session() as session:
        result = await session.execute(
            select(
                Indicator.category,
                func.count(Indicator.id).label("indicator_count"),
            )
            .where(Indicator.is_active.is_(True))
            .group_by(Indicator.category)
            .order_by(Indicator.category.asc())
        )
        return [dict(row) for row in result.mappings().all()]


async def register_indicator(definition: IndicatorDefinition) -> Indicator:
    """Create an indicator or update the descriptive fields of an existing one.

    The id is immutable; re-registering an id also reactivates it.
    """
    values = {
        "id": definition.id,
        "name": definition.name,
        "description": definition.description,
        "category": definition.category,
        "source": definition.source,
        "is_active": True,
    }
    async with get_session() as session:
        stmt = insert(Indicator).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "category": stmt.excluded.category,
                "source": stmt.excluded.source,
                "is_active": True,
            },
        ).returning(Indicator)
        result = await session.execute(stmt)
        indicator = result.scalar_one()
        await session.commit()

    logger.info(f"Registered indicator {definition.id} ({definition.category})")
    return indicator


async def seed_indicators(definitions: Iterable[IndicatorDefinition]) -> int:
    """Insert catalog entries that do not exist yet.

    Existing rows are left untouched, including their active flag, so seeding
    on every startup never undoes an admin deactivation.

    Returns:
        Number of entries created
    """
    rows = [
        {
            "id": d.id,
            "name": d.name,
            "description": d.description,
            "category": d.category,
            "source": d.source,
        }
        for d in definitions
    ]
    if not rows:
        return 0

    async with get_session() as session:
        result = await session.execute(
            insert(Indicator)
            .values(rows)
            .on_conflict_do_nothing(index_elements=["id"])
            .returning(Indicator.id)
        )
        created = [row[0] for row in result.all()]
        await session.commit()

    if created:
        logger.info(f"Seeded {len(created)} indicators: {', '.join(created)}")
    return len(created)


async def deactivate_indicator(indicator_id: str) -> Indicator | None:
    """Mark an indicator inactive. Returns None if the id is unknown."""
    async with get_session() as session:
        indicator = await session.get(Indicator, indicator_id)
        if indicator is None:
            return None
        indicator.is_active = False
        await session.commit()

    logger.info(f"Deactivated indicator {indicator_id}")
    return indicator


# =============================================================================
# LISTING WITH LATEST POINT AND VIEW COUNTS
# =============================================================================


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_listing_query(
    category: str | None = None,
    search: str | None = None,
    sort_by: SortField = SortField.VIEW_COUNT,
    sort_dir: SortDirection = SortDirection.DESC,
    view_window_days: int = 30,
    limit: int | None = None,
    offset: int = 0,
    now: datetime | None = None,
):
    """Build the listing SELECT.

    One row per active indicator with its latest point (a LATERAL lookup
    that walks the `(indicator_id, ts_utc)` index once per indicator),
    total point count and views inside the trailing window.
    Indicators without data or views still appear with NULL latest fields
    and zero counts. NULL sort keys go last in either direction and ties
    fall back to name.
    """
    since = (now or datetime.now(timezone.utc)) - timedelta(days=view_window_days)

    latest = (
        select(
            IndicatorData.value,
            IndicatorData.label,
            IndicatorData.ts_utc,
        )
        .where(IndicatorData.indicator_id == Indicator.id)
        .order_by(IndicatorData.ts_utc.desc(), IndicatorData.id.desc())
        .limit(1)
        .lateral("latest_data")
    )
    data_counts = (
        select(
            IndicatorData.indicator_id,
            func.count(IndicatorData.id).label("data_count"),
        )
        .group_by(IndicatorData.indicator_id)
        .subquery("data_counts")
    )
    view_counts = (
        select(
            IndicatorView.indicator_id,
            func.count(IndicatorView.id).label("view_count"),
        )
        .where(IndicatorView.viewed_at >= since)
        .group_by(IndicatorView.indicator_id)
        .subquery("view_counts")
    )

    view_count = func.coalesce(view_counts.c.view_count, 0)
    data_count = func.coalesce(data_counts.c.data_count, 0)

    stmt = (
        select(
            Indicator.id,
            Indicator.name,
            Indicator.description,
            Indicator.category,
            Indicator.source,
            latest.c.value.label("latest_value"),
            latest.c.label.label("latest_label"),
            latest.c.ts_utc.label("latest_ts"),
            data_count.label("data_count"),
            view_count.label("view_count"),
        )
        .outerjoin(latest, true())
        .outerjoin(data_counts, data_counts.c.indicator_id == Indicator.id)
        .outerjoin(view_counts, view_counts.c.indicator_id == Indicator.id)
        .where(Indicator.is_active.is_(True))
    )

    if category and category != "all":
        stmt = stmt.where(Indicator.category == category)

    if search:
        pattern = f"%{_escape_like(search.strip())}%"
        stmt = stmt.where(
            or_(
                Indicator.name.ilike(pattern, escape="\\"),
                func.coalesce(Indicator.description, "").ilike(pattern, escape="\\"),
            )
        )

    sort_columns = {
        SortField.VIEW_COUNT: view_count,
        SortField.NAME: func.lower(Indicator.name),
        SortField.LATEST_VALUE: latest.c.value,
        SortField.LATEST_TS: latest.c.ts_utc,
    }
    sort_column = sort_columns[SortField(sort_by)]
    if SortDirection(sort_dir) == SortDirection.ASC:
        primary = nulls_last(sort_column.asc())
    else:
        primary = nulls_last(sort_column.desc())

    stmt = stmt.order_by(primary, Indicator.name.asc(), Indicator.id.asc())
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)
    return stmt


async def list_with_latest(
    category: str | None = None,
    search: str | None = None,
    sort_by: SortField = SortField.VIEW_COUNT,
    sort_dir: SortDirection = SortDirection.DESC,
    view_window_days: int = 30,
    limit: int | None = None,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Get active indicators with latest point, data count and recent views.

    Returns:
        List of row dicts keyed by the listing column labels
    """
    async with get_session() as session:
        result = await session.execute(
            build_listing_query(
                category=category,
                search=search,
                sort_by=sort_by,
                sort_dir=sort_dir,
                view_window_days=view_window_days,
                limit=limit,
                offset=offset,
            )
        )
        return [dict(row) for row in result.mappings().all()]
