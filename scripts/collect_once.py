#!/usr/bin/env python
"""Run collectors once, for cron or other external schedulers.

Usage:
    python scripts/collect_once.py            # every collector
    python scripts/collect_once.py fgi vix    # selected sources

Exits non-zero if any collector failed so the scheduler can alert.
"""
import asyncio
import sys

from app.collectors import get_collector, list_sources, run_all_collectors
from app.core.logging import setup_logging
from app.database.connection import close_database, init_database


async def main(sources: list[str]) -> int:
    setup_logging()
    unknown = [s for s in sources if get_collector(s) is None]
    if unknown:
        print(f"Unknown sources: {', '.join(unknown)} (known: {', '.join(list_sources())})")
        return 2

    await init_database()
    try:
        if sources:
            results = [await get_collector(s).collect() for s in sources]
        else:
            results = await run_all_collectors()
    finally:
        await close_database()

    for result in results:
        if result.stored:
            print(f"{result.source}: {result.count} points ({result.inserted} new)")
        else:
            print(f"{result.source}: FAILED - {result.error}")
    return 0 if all(r.stored for r in results) else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
