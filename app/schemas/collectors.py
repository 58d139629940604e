"""Collector run schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class CollectedPoint(BaseModel):
    """One normalized point produced by a collector run."""

    id: str = Field(..., description="Indicator id")
    name: str = Field(..., description="Indicator display name")
    timestamp: datetime = Field(..., description="Observation instant (UTC)")
    value: float = Field(..., description="Normalized value")
    label: Optional[str] = Field(None, description="Classification text")


class CollectionResult(BaseModel):
    """Outcome of one collector run.

    `stored` is False when the run failed before anything was persisted;
    `error` then holds the reason.
    """

    source: str = Field(..., description="Collector source id", examples=["fgi"])
    stored: bool = Field(..., description="Whether the run reached the store")
    count: int = Field(0, ge=0, description="Points produced by the run")
    inserted: int = Field(0, ge=0, description="Points that were new to the store")
    indicators: List[CollectedPoint] = Field(default_factory=list)
    error: Optional[str] = Field(None, description="Failure reason when stored is False")


class CollectorInfo(BaseModel):
    source: str = Field(..., description="Collector source id")
    indicator_ids: List[str] = Field(..., description="Indicators this collector writes")
    url: str = Field(..., description="Upstream endpoint")


class CollectAllResponse(BaseModel):
    results: List[CollectionResult]
    succeeded: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
