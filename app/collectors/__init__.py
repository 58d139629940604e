"""Upstream data collectors.

Importing this package registers every collector:

    from app.collectors import get_collector

    result = await get_collector("fgi").collect()
"""

from . import cnn, crypto, vix  # noqa: F401  (registration side effects)
from .base import Collector
from .errors import CollectorError, PayloadError, UpstreamError
from .normalize import MILLISECONDS_THRESHOLD, normalize_timestamp, round_score
from .registry import (
    get_all_collectors,
    get_collector,
    list_sources,
    register_collector,
    run_all_collectors,
)


__all__ = [
    "Collector",
    "CollectorError",
    "PayloadError",
    "UpstreamError",
    "MILLISECONDS_THRESHOLD",
    "normalize_timestamp",
    "round_score",
    "get_all_collectors",
    "get_collector",
    "list_sources",
    "register_collector",
    "run_all_collectors",
]
