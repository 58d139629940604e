"""Indicator catalog, listing, detail and manual data-point routes."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status

from app.api.dependencies import Viewer, get_viewer, require_admin
from app.cache import Cache
from app.core.client_identity import get_ip_hash, get_user_agent
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger
from app.domain import SortDirection, SortField, TimeRange
from app.repositories import indicator_data_orm as indicator_data_repo
from app.repositories import indicators_orm as indicators_repo
from app.repositories.indicators_orm import IndicatorDefinition
from app.schemas.indicators import (
    CategoryCount,
    DataPointCreate,
    DataPointInsertResponse,
    DataPointResponse,
    IndicatorCreate,
    IndicatorDetailResponse,
    IndicatorListResponse,
    IndicatorResponse,
)
from app.services import views as views_service
from app.services.indicator_listing import get_listing_cache, list_indicators


logger = get_logger("api.indicators")

router = APIRouter(prefix="/indicators")


@router.get(
    "",
    response_model=IndicatorListResponse,
    summary="List indicators",
    description="Active indicators with their latest value, data count and 30-day view count.",
)
async def get_indicators(
    category: str | None = Query(None, description="Category filter; 'all' disables it"),
    search: str | None = Query(None, max_length=100, description="Case-insensitive match on name or description"),
    sort_by: SortField = Query(SortField.VIEW_COUNT, alias="sortBy"),
    sort_dir: SortDirection = Query(SortDirection.DESC, alias="sortDir"),
    cache: Cache = Depends(get_listing_cache),
) -> IndicatorListResponse:
    indicators = await list_indicators(
        cache,
        category=category,
        search=search,
        sort_by=sort_by,
        sort_dir=sort_dir,
    )
    return IndicatorListResponse(indicators=indicators, total=len(indicators))


@router.get(
    "/categories",
    response_model=list[CategoryCount],
    summary="List categories",
)
async def get_categories() -> list[CategoryCount]:
    rows = await indicators_repo.list_categories()
    return [CategoryCount(**row) for row in rows]


@router.post(
    "",
    response_model=IndicatorResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register indicator",
    description="Create an indicator or update its catalog fields. Admin only.",
)
async def register_indicator(
    payload: IndicatorCreate,
    admin: Viewer = Depends(require_admin),
) -> IndicatorResponse:
    indicator = await indicators_repo.register_indicator(
        IndicatorDefinition(
            id=payload.id,
            name=payload.name,
            category=payload.category.value,
            source=payload.source,
            description=payload.description,
        )
    )
    logger.info(f"Indicator {payload.id} registered by {admin.user_id}")
    return IndicatorResponse.model_validate(indicator)


@router.get(
    "/{indicator_id}",
    response_model=IndicatorDetailResponse,
    summary="Indicator detail",
    description="Catalog entry, latest point and the series within `range`, newest first. Records a view.",
)
async def get_indicator_detail(
    indicator_id: str,
    request: Request,
    background_tasks: BackgroundTasks,
    range_: TimeRange = Query(TimeRange.MONTH, alias="range"),
    limit: int = Query(1000, ge=1, le=5000),
    offset: int = Query(0, ge=0),
    viewer: Viewer = Depends(get_viewer),
) -> IndicatorDetailResponse:
    indicator, points, latest = await asyncio.gather(
        indicators_repo.get_active_indicator(indicator_id),
        indicator_data_repo.query_range(
            indicator_id, start=range_.start(), limit=limit, offset=offset
        ),
        indicator_data_repo.latest_point(indicator_id),
    )
    if indicator is None:
        raise NotFoundError(f"Indicator not found: {indicator_id}")

    background_tasks.add_task(
        views_service.record_view_best_effort,
        indicator_id,
        user_id=viewer.user_id,
        session_id=viewer.session_id,
        user_agent=get_user_agent(request),
        ip_hash=get_ip_hash(request),
    )

    return IndicatorDetailResponse(
        indicator=IndicatorResponse.model_validate(indicator),
        range=range_.value,
        latest_value=float(latest.value) if latest else None,
        latest_label=latest.label if latest else None,
        latest_ts=latest.ts_utc if latest else None,
        data=[DataPointResponse.from_orm_row(p) for p in points],
    )


@router.post(
    "/{indicator_id}",
    response_model=DataPointInsertResponse,
    summary="Insert data point",
    description="Store a manual observation stamped with the current time. Existing timestamps are left untouched.",
)
async def insert_data_point(
    indicator_id: str,
    payload: DataPointCreate,
) -> DataPointInsertResponse:
    indicator = await indicators_repo.get_active_indicator(indicator_id)
    if indicator is None:
        raise NotFoundError(f"Indicator not found: {indicator_id}")

    timestamp = datetime.now(timezone.utc)
    inserted = await indicator_data_repo.upsert_data_point(
        indicator_id,
        timestamp,
        payload.value,
        label=payload.label,
        metadata=payload.metadata,
    )
    return DataPointInsertResponse(
        indicator_id=indicator_id,
        timestamp=timestamp,
        value=float(payload.value),
        label=payload.label,
        inserted=inserted,
    )


@router.delete(
    "/{indicator_id}",
    response_model=IndicatorResponse,
    summary="Deactivate indicator",
    description="Hide an indicator from listings and detail reads. Its data is kept. Admin only.",
)
async def deactivate_indicator(
    indicator_id: str,
    admin: Viewer = Depends(require_admin),
) -> IndicatorResponse:
    indicator = await indicators_repo.deactivate_indicator(indicator_id)
    if indicator is None:
        raise NotFoundError(f"Indicator not found: {indicator_id}")
    logger.info(f"Indicator {indicator_id} deactivated by {admin.user_id}")
    return IndicatorResponse.model_validate(indicator)
