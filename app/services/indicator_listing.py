"""Indicator listing with a short-lived read-through cache.

The cache is keyed by the filter and sort parameters and expires purely by
time; writes to the time series do not invalidate it.

Usage:
    cache = get_listing_cache()
    indicators = await list_indicators(cache, category="crypto", search="fear")
"""

from __future__ import annotations

from app.cache import Cache, create_backend
from app.core.config import settings
from app.core.logging import get_logger
from app.domain import SortDirection, SortField
from app.repositories import indicators_orm as indicators_repo
from app.schemas.indicators import IndicatorSummary


logger = get_logger("services.indicator_listing")

_listing_cache: Cache | None = None


def get_listing_cache() -> Cache:
    """FastAPI dependency returning the process-wide listing cache."""
    global _listing_cache
    if _listing_cache is None:
        _listing_cache = Cache(
            prefix="indicators",
            default_ttl=settings.indicators_cache_ttl,
            backend=create_backend(settings.cache_backend),
        )
    return _listing_cache


def reset_listing_cache() -> None:
    global _listing_cache
    _listing_cache = None


def listing_cache_key(
    category: str | None,
    search: str | None,
    sort_by: SortField,
    sort_dir: SortDirection,
) -> tuple[str | None, ...]:
    normalized_search = search.strip().lower() if search and search.strip() else None
    normalized_category = None if category in (None, "", "all") else category
    return (
        normalized_category,
        normalized_search,
        SortField(sort_by).value,
        SortDirection(sort_dir).value,
    )


async def list_indicators(
    cache: Cache,
    category: str | None = None,
    search: str | None = None,
    sort_by: SortField = SortField.VIEW_COUNT,
    sort_dir: SortDirection = SortDirection.DESC,
) -> list[IndicatorSummary]:
    """Active indicators with latest value and counts, filtered and sorted."""
    key = listing_cache_key(category, search, sort_by, sort_dir)
    cached = await cache.get(key)
    if cached is not None:
        return [IndicatorSummary.model_validate(item) for item in cached]

    rows = await indicators_repo.list_with_latest(
        category=category,
        search=search.strip() if search else None,
        sort_by=sort_by,
        sort_dir=sort_dir,
        view_window_days=settings.view_count_window_days,
    )
    summaries = [IndicatorSummary.from_row(row) for row in rows]
    await cache.set(key, [s.model_dump(mode="json") for s in summaries])
    return summaries
