"""Indicator view ledger repository using SQLAlchemy ORM.

Views are append-only impressions. User names are read from the auth
service's users table at query time and never copied into the ledger.

Usage:
    from app.repositories import indicator_views_orm as views_repo

    view = await views_repo.record_view("cnn-fgi", user_id=None, ip_hash=digest)
    rows = await views_repo.list_views("cnn-fgi", limit=50)
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select

from app.core.logging import get_logger
from app.database.connection import get_session
from app.database.orm import AppUser, IndicatorView


logger = get_logger("repositories.indicator_views_orm")


async def record_view(
    indicator_id: str,
    user_id: str | None = None,
    session_id: str | None = None,
    user_agent: str | None = None,
    ip_hash: str | None = None,
) -> IndicatorView:
    """Append one view to the ledger.

    Args:
        indicator_id: Catalog id that was viewed
        user_id: Authenticated user id, or None for anonymous
        session_id: Auth session id when known
        user_agent: User-Agent summary as JSON (browser, os, device, raw)
        ip_hash: Salted SHA-256 of the client IP; raw IPs are never stored

    Returns:
        The stored IndicatorView with id and viewed_at populated
    """
    async with get_session() as session:
        view = IndicatorView(
            indicator_id=indicator_id,
            user_id=user_id,
            session_id=session_id,
            user_agent=user_agent,
            ip_hash=ip_hash,
        )
        session.add(view)
        await session.commit()
        await session.refresh(view)

    logger.debug(
        f"Recorded view of {indicator_id}",
        extra={"indicator_id": indicator_id, "authenticated": user_id is not None},
    )
    return view


async def list_views(
    indicator_id: str,
    limit: int = 50,
    offset: int = 0,
) -> list[dict[str, Any]]:
    """Get views of one indicator, newest first, with the viewer's display name.

    Returns:
        Row dicts with id, viewed_at, user_agent, user_id and user_name
    """
    async with get_session() as session:
        result = await session.execute(
            select(
                IndicatorView.id,
                IndicatorView.viewed_at,
                IndicatorView.user_agent,
                IndicatorView.user_id,
                AppUser.name.label("user_name"),
            )
            .outerjoin(AppUser, AppUser.id == IndicatorView.user_id)
            .where(IndicatorView.indicator_id == indicator_id)
            .order_by(IndicatorView.viewed_at.desc(), IndicatorView.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return [dict(row) for row in result.mappings().all()]


async def count_views(indicator_id: str) -> int:
    async with get_session() as session:
        result = await session.execute(
            select(func.count(IndicatorView.id)).where(
                IndicatorView.indicator_id == indicator_id
            )
        )
        return result.scalar_one()
