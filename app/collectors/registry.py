"""Collector registry mapping source ids to collector instances."""

from __future__ import annotations

import asyncio

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.collectors import CollectionResult

from .base import Collector


logger = get_logger("collectors.registry")

# Global collector registry
_registry: dict[str, Collector] = {}


def register_collector(cls: type[Collector]) -> type[Collector]:
    """
    Class decorator registering a collector under its `source` id.

    Usage:
        @register_collector
        class CryptoFearGreedCollector(Collector):
            source = "crypto-fgi"
            ...
    """
    _registry[cls.source] = cls()
    logger.debug(f"Registered collector: {cls.source}")
    return cls


def get_collector(source: str) -> Collector | None:
    """Get a registered collector by source id."""
    return _registry.get(source)


def get_all_collectors() -> dict[str, Collector]:
    """Get all registered collectors."""
    return _registry.copy()


def list_sources() -> list[str]:
    """List all registered source ids."""
    return list(_registry.keys())


async def run_all_collectors() -> list[CollectionResult]:
    """Run every registered collector concurrently with one shared client.

    Each collector reports its own failure, so one broken upstream does not
    affect the others.
    """
    async with httpx.AsyncClient(
        timeout=settings.external_api_timeout,
        follow_redirects=True,
    ) as client:
        results = await asyncio.gather(
            *(collector.collect(client) for collector in _registry.values())
        )

    failed = [r.source for r in results if not r.stored]
    if failed:
        logger.warning(f"Collectors failed: {', '.join(failed)}")
    return list(results)
