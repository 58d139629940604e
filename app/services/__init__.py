"""Business logic services."""

from . import analytics, catalog, indicator_listing, views


__all__ = [
    "analytics",
    "catalog",
    "indicator_listing",
    "views",
]
