"""Collector trigger routes, intended for the external scheduler."""

from __future__ import annotations

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from app.collectors import get_all_collectors, get_collector, run_all_collectors
from app.core.exceptions import NotFoundError
from app.schemas.collectors import CollectAllResponse, CollectionResult, CollectorInfo


router = APIRouter()


def _result_response(result: CollectionResult) -> CollectionResult | JSONResponse:
    if result.stored:
        return result
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=result.model_dump(mode="json"),
    )


@router.get(
    "/collectors",
    response_model=list[CollectorInfo],
    summary="List collectors",
)
async def list_collectors() -> list[CollectorInfo]:
    return [
        CollectorInfo(source=source, indicator_ids=list(collector.indicators), url=collector.url)
        for source, collector in get_all_collectors().items()
    ]


@router.post(
    "/collectors/run",
    response_model=CollectAllResponse,
    summary="Run all collectors",
)
async def run_collectors() -> CollectAllResponse:
    results = await run_all_collectors()
    succeeded = sum(1 for r in results if r.stored)
    return CollectAllResponse(
        results=results,
        succeeded=succeeded,
        failed=len(results) - succeeded,
    )


@router.api_route(
    "/{source}/collect",
    methods=["GET", "POST"],
    response_model=CollectionResult,
    responses={503: {"model": CollectionResult, "description": "Upstream or storage failure"}},
    summary="Run one collector",
)
async def collect_source(source: str):
    collector = get_collector(source)
    if collector is None:
        raise NotFoundError(f"Unknown collector source: {source}")
    return _result_response(await collector.collect())
