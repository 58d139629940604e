#!/usr/bin/env python
"""Insert the default indicator catalog (existing rows are left alone)."""
import asyncio

from app.core.logging import setup_logging
from app.database.connection import close_database, init_database
from app.services.catalog import seed_default_catalog


async def main() -> None:
    setup_logging()
    await init_database()
    try:
        created = await seed_default_catalog()
        print(f"Seeded {created} new indicators")
    finally:
        await close_database()


if __name__ == "__main__":
    asyncio.run(main())
