"""Indicator view attribution routes."""

from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Query, Request

from app.api.dependencies import Viewer, get_viewer
from app.core.client_identity import get_ip_hash, get_user_agent
from app.core.exceptions import NotFoundError
from app.repositories import indicator_views_orm as views_repo
from app.repositories import indicators_orm as indicators_repo
from app.schemas.views import ViewAttribution, ViewListResponse, ViewRecordResponse


router = APIRouter(prefix="/indicators")


async def _require_indicator(indicator_id: str) -> None:
    if await indicators_repo.get_active_indicator(indicator_id) is None:
        raise NotFoundError(f"Indicator not found: {indicator_id}")


@router.get(
    "/{indicator_id}/views",
    response_model=ViewListResponse,
    summary="List views",
    description="Recent views of an indicator, newest first, with viewer display names.",
)
async def list_views(
    indicator_id: str,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> ViewListResponse:
    await _require_indicator(indicator_id)
    rows, total = await asyncio.gather(
        views_repo.list_views(indicator_id, limit=limit, offset=offset),
        views_repo.count_views(indicator_id),
    )
    return ViewListResponse(
        views=[ViewAttribution.from_row(row) for row in rows],
        total=total,
        has_more=offset + len(rows) < total,
    )


@router.post(
    "/{indicator_id}/views",
    response_model=ViewRecordResponse,
    summary="Record view",
    description="Record one view of an indicator. Every call is recorded; de-duplication is up to the client.",
)
async def record_view(
    indicator_id: str,
    request: Request,
    viewer: Viewer = Depends(get_viewer),
) -> ViewRecordResponse:
    await _require_indicator(indicator_id)
    view = await views_repo.record_view(
        indicator_id,
        user_id=viewer.user_id,
        session_id=viewer.session_id,
        user_agent=get_user_agent(request),
        ip_hash=get_ip_hash(request),
    )
    return ViewRecordResponse(view_id=view.id, authenticated=viewer.is_authenticated)
