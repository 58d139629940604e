"""Data access layer repositories.

Each repository module provides async functions for database operations.
All code uses SQLAlchemy ORM models from `app.database.orm` with the
`get_session()` context manager.

ORM-based repositories:
- indicators_orm: indicator catalog and the listing query
- indicator_data_orm: append-only indicator time series
- indicator_views_orm: indicator view ledger
- analytics_orm: view and freshness aggregations
- fgi_hourly_orm: legacy hourly CNN Fear & Greed reads
"""

from . import indicators_orm
from . import indicator_data_orm
from . import indicator_views_orm
from . import analytics_orm
from . import fgi_hourly_orm

__all__ = [
    "indicators_orm",
    "indicator_data_orm",
    "indicator_views_orm",
    "analytics_orm",
    "fgi_hourly_orm",
]
