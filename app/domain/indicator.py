"""Indicator domain models.

Types shared by the collectors, the time-series repository and the API:
categories, time ranges, sort keys and the canonical data point every upstream
payload is normalized into.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class IndicatorCategory(str, Enum):
    """Indicator categories."""
    SENTIMENT = "sentiment"
    CRYPTO = "crypto"
    VALUATION = "valuation"
    VOLATILITY = "volatility"
    OTHER = "other"


class TimeRange(str, Enum):
    """Relative windows for the detail chart."""
    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"
    ALL = "all"

    @property
    def delta(self) -> timedelta | None:
        return _RANGE_DELTAS[self]

    def start(self, now: datetime | None = None) -> datetime | None:
        """Lower bound of the window anchored at `now`, or None for all history."""
        if self.delta is None:
            return None
        return (now or datetime.now(timezone.utc)) - self.delta


_RANGE_DELTAS: dict[TimeRange, timedelta | None] = {
    TimeRange.DAY: timedelta(hours=24),
    TimeRange.WEEK: timedelta(days=7),
    TimeRange.MONTH: timedelta(days=30),
    TimeRange.QUARTER: timedelta(days=90),
    TimeRange.YEAR: timedelta(days=365),
    TimeRange.ALL: None,
}


class SortField(str, Enum):
    VIEW_COUNT = "view_count"
    NAME = "name"
    LATEST_VALUE = "latest_value"
    LATEST_TS = "latest_ts"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


def parse_decimal(value: Any) -> Decimal:
    """Parse a value into a finite Decimal.

    Floats go through their string form so 0.1 stays 0.1 instead of the
    binary expansion.

    Raises:
        ValueError: if the value is missing, boolean, unparseable, NaN or infinite
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Invalid numeric value: {value!r}") from None
    else:
        raise ValueError(f"Invalid numeric value: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Value must be finite, got {value!r}")
    return result


def ensure_utc(ts: datetime) -> datetime:
    """Return a timezone-aware UTC datetime; naive values are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


@dataclass(frozen=True)
class CanonicalPoint:
    """One normalized observation ready for the time-series store."""

    indicator_id: str
    ts_utc: datetime
    value: Decimal
    label: str | None = None
    metadata: dict[str, Any] | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "ts_utc", ensure_utc(self.ts_utc))
        object.__setattr__(self, "value", parse_decimal(self.value))

    @property
    def key(self) -> tuple[str, datetime]:
        """Idempotency key in the store."""
        return (self.indicator_id, self.ts_utc)
