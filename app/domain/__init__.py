"""Domain types shared by collectors, repositories and the API.

Usage:
    from app.domain import CanonicalPoint, TimeRange

    point = CanonicalPoint("cnn-fgi", ts, Decimal("42"), "Neutral")
    since = TimeRange("7d").start()
"""

from app.domain.indicator import (
    CanonicalPoint,
    IndicatorCategory,
    SortDirection,
    SortField,
    TimeRange,
    ensure_utc,
    parse_decimal,
)

__all__ = [
    "CanonicalPoint",
    "IndicatorCategory",
    "SortDirection",
    "SortField",
    "TimeRange",
    "ensure_utc",
    "parse_decimal",
]
