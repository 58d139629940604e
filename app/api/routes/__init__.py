"""API routes package."""

from . import (
    analytics,
    collectors,
    fgi,
    health,
    indicators,
    views,
)


__all__ = [
    "analytics",
    "collectors",
    "fgi",
    "health",
    "indicators",
    "views",
]
