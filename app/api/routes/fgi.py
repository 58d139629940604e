"""Read-only routes for the legacy hourly CNN Fear & Greed table."""

from __future__ import annotations

from fastapi import APIRouter, Query

from app.core.exceptions import NotFoundError
from app.repositories import fgi_hourly_orm as fgi_hourly_repo
from app.schemas.fgi import FgiHistoryResponse, FgiHourlyPoint


router = APIRouter(prefix="/fgi")


@router.get("/latest", response_model=FgiHourlyPoint, deprecated=True)
async def get_latest_fgi() -> FgiHourlyPoint:
    row = await fgi_hourly_repo.get_latest()
    if row is None:
        raise NotFoundError("No hourly Fear & Greed data")
    return FgiHourlyPoint.model_validate(row)


@router.get("/history", response_model=FgiHistoryResponse, deprecated=True)
async def get_fgi_history(
    limit: int = Query(168, ge=1, le=5000),
) -> FgiHistoryResponse:
    rows = await fgi_hourly_repo.get_history(limit=limit)
    return FgiHistoryResponse(points=[FgiHourlyPoint.model_validate(r) for r in rows])
