"""Indicator catalog and time-series schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from app.domain import IndicatorCategory, parse_decimal


def _as_float(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


class IndicatorSummary(BaseModel):
    """Listing row: catalog fields plus latest point and counts."""

    id: str = Field(..., description="Stable indicator slug", examples=["cnn-fgi"])
    name: str = Field(..., description="Display name")
    description: Optional[str] = Field(None, description="Short description")
    category: str = Field(..., description="Indicator category", examples=["sentiment"])
    source: str = Field(..., description="Data provenance", examples=["CNN"])
    latest_value: Optional[float] = Field(None, description="Most recent value")
    latest_label: Optional[str] = Field(None, description="Label of the most recent point")
    latest_ts: Optional[datetime] = Field(None, description="Timestamp of the most recent point")
    data_count: int = Field(0, ge=0, description="Stored data points")
    view_count: int = Field(0, ge=0, description="Views in the trailing window")

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "IndicatorSummary":
        return cls(**{**row, "latest_value": _as_float(row.get("latest_value"))})


class IndicatorListResponse(BaseModel):
    indicators: List[IndicatorSummary]
    total: int = Field(..., ge=0)


class IndicatorResponse(BaseModel):
    """Catalog entry."""

    id: str
    name: str
    description: Optional[str] = None
    category: str
    source: str
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class IndicatorCreate(BaseModel):
    """Admin registration payload."""

    id: str = Field(..., min_length=1, max_length=64, pattern=r"^[a-z0-9][a-z0-9-]*$")
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    category: IndicatorCategory
    source: str = Field(..., min_length=1, max_length=200)


class CategoryCount(BaseModel):
    category: str
    indicator_count: int = Field(..., ge=0)


class DataPointResponse(BaseModel):
    """One stored observation."""

    ts_utc: datetime
    value: float
    label: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_orm_row(cls, row: Any) -> "DataPointResponse":
        return cls(
            ts_utc=row.ts_utc,
            value=float(row.value),
            label=row.label,
            metadata=row.data_metadata,
        )


class IndicatorDetailResponse(BaseModel):
    """Detail view: catalog entry, latest point and the windowed series."""

    indicator: IndicatorResponse
    range: str = Field(..., description="Requested time range", examples=["30d"])
    latest_value: Optional[float] = None
    latest_label: Optional[str] = None
    latest_ts: Optional[datetime] = None
    data: List[DataPointResponse] = Field(default_factory=list, description="Points, newest first")


class DataPointCreate(BaseModel):
    """Manual data-point insert. `value` accepts numbers or numeric strings."""

    value: Decimal = Field(..., description="Finite numeric value", examples=["42"])
    label: Optional[str] = Field(None, max_length=200)
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("value", mode="before")
    @classmethod
    def validate_value(cls, v: Any) -> Decimal:
        return parse_decimal(v)


class DataPointInsertResponse(BaseModel):
    success: bool = True
    indicator_id: str
    timestamp: datetime
    value: float
    label: Optional[str] = None
    inserted: bool = Field(..., description="False when a point with this timestamp already existed")
