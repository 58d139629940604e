"""Read-only access to the legacy hourly CNN Fear & Greed table.

New CNN readings are stored as `cnn-fgi` points in the indicator time series;
this table is only read for older clients.

Usage:
    from app.repositories import fgi_hourly_orm as fgi_hourly_repo

    row = await fgi_hourly_repo.get_latest()
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import select

from app.database.connection import get_session
from app.database.orm import FgiHourly
from app.domain import ensure_utc


async def get_latest() -> FgiHourly | None:
    async with get_session() as session:
        result = await session.execute(
            select(FgiHourly).order_by(FgiHourly.ts_utc.desc()).limit(1)
        )
        return result.scalar_one_or_none()


async def get_history(since: datetime | None = None, limit: int = 168) -> Sequence[FgiHourly]:
    """Get hourly rows newest first, optionally bounded below by `since`."""
    stmt = select(FgiHourly)
    if since is not None:
        stmt = stmt.where(FgiHourly.ts_utc >= ensure_utc(since))
    async with get_session() as session:
        result = await session.execute(
            stmt.order_by(FgiHourly.ts_utc.desc()).limit(limit)
        )
        return result.scalars().all()
