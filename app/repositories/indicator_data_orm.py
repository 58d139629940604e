"""Indicator time-series repository using SQLAlchemy ORM.

The store is append-only: a point is identified by (indicator_id, ts_utc) and
a second write for the same key is ignored, never applied. Both the single
and the batch path go through one INSERT ... ON CONFLICT DO NOTHING so the
check and the write cannot race.

Usage:
    from app.repositories import indicator_data_orm as indicator_data_repo

    inserted = await indicator_data_repo.upsert_data_point("cnn-fgi", ts, 42, "Neutral")
    points = await indicator_data_repo.query_range("cnn-fgi", start=since, limit=500)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError

from app.core.logging import get_logger
from app.database.connection import get_session
from app.database.orm import IndicatorData
from app.domain import CanonicalPoint, ensure_utc


logger = get_logger("repositories.indicator_data_orm")

_TABLE = IndicatorData.__table__


def _point_row(point: CanonicalPoint) -> dict[str, Any]:
    return {
        "indicator_id": point.indicator_id,
        "ts_utc": point.ts_utc,
        "value": point.value,
        "label": point.label,
        "metadata": point.metadata,
    }


def build_insert_ignore(points: Sequence[CanonicalPoint]):
    """INSERT for `points` that skips rows whose key already exists.

    Built on the table so row dicts use column names.

    RETURNING only yields ids of rows actually written, so the number of
    returned rows is the number of new points.
    """
    return (
        insert(_TABLE)
        .values([_point_row(p) for p in points])
        .on_conflict_do_nothing(index_elements=["indicator_id", "ts_utc"])
        .returning(_TABLE.c.id)
    )


async def upsert_data_point(
    indicator_id: str,
    ts: datetime,
    value: Decimal | int | float | str,
    label: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> bool:
    """Insert one point unless its (indicator_id, ts) key already exists.

    Args:
        indicator_id: Catalog id the point belongs to
        ts: Observation instant; naive datetimes are taken as UTC
        value: Finite numeric value
        label: Optional classification text
        metadata: Optional source-specific extras

    Returns:
        True if a row was inserted, False if the key was already present

    Raises:
        ValueError: if the value is not a finite number
    """
    point = CanonicalPoint(indicator_id, ts, value, label, metadata)

    async with get_session() as session:
        result = await session.execute(build_insert_ignore([point]))
        inserted = result.first() is not None
        await session.commit()

    if not inserted:
        logger.debug(f"Duplicate data point ignored: {indicator_id}@{point.ts_utc.isoformat()}")
    return inserted


async def batch_upsert(points: Sequence[CanonicalPoint]) -> int:
    """Insert many points in one statement, ignoring existing keys.

    If the multi-row statement fails (for example one point references an
    unknown indicator), the batch is retried row by row inside savepoints so
    the valid points still land.

    Returns:
        Number of points actually inserted
    """
    if not points:
        return 0

    async with get_session() as session:
        try:
            result = await session.execute(build_insert_ignore(points))
            inserted = len(result.all())
            await session.commit()
            logger.debug(f"Stored {inserted}/{len(points)} data points")
            return inserted
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning(
                f"Batch insert of {len(points)} points failed, retrying per row: {e}"
            )

        inserted = 0
        for point in points:
            try:
                async with session.begin_nested():
                    result = await session.execute(build_insert_ignore([point]))
                    if result.first() is not None:
                        inserted += 1
            except SQLAlchemyError as e:
                logger.warning(
                    f"Skipped data point {point.indicator_id}@{point.ts_utc.isoformat()}: {e}"
                )
        await session.commit()

    logger.debug(f"Stored {inserted}/{len(points)} data points (per-row)")
    return inserted


async def latest_point(indicator_id: str) -> IndicatorData | None:
    """Get the newest point for an indicator.

    Equal timestamps cannot coexist for one indicator; the id tiebreak keeps
    the ordering total regardless.
    """
    async with get_session() as session:
        result = await session.execute(
            select(IndicatorData)
            .where(IndicatorData.indicator_id == indicator_id)
            .order_by(IndicatorData.ts_utc.desc(), IndicatorData.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()


def build_range_query(
    indicator_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 1000,
    offset: int = 0,
):
    stmt = select(IndicatorData).where(IndicatorData.indicator_id == indicator_id)
    if start is not None:
        stmt = stmt.where(IndicatorData.ts_utc >= ensure_utc(start))
    if end is not None:
        stmt = stmt.where(IndicatorData.ts_utc <= ensure_utc(end))
    return (
        stmt.order_by(IndicatorData.ts_utc.desc(), IndicatorData.id.desc())
        .limit(limit)
        .offset(offset)
    )


async def query_range(
    indicator_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 1000,
    offset: int = 0,
) -> Sequence[IndicatorData]:
    """Get points within [start, end], newest first.

    Args:
        indicator_id: Catalog id
        start: Inclusive lower bound, or None for no lower bound
        end: Inclusive upper bound, or None for no upper bound
        limit: Maximum number of points
        offset: Number of points to skip

    Returns:
        Sequence of IndicatorData ordered by ts_utc descending
    """
    async with get_session() as session:
        result = await session.execute(
            build_range_query(indicator_id, start, end, limit, offset)
        )
        return result.scalars().all()

