"""Analytics response schemas."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TopIndicator(BaseModel):
    id: str
    name: str
    category: str
    view_count: int = Field(..., ge=0)
    last_viewed: Optional[datetime] = None


class DailyTrendBucket(BaseModel):
    date: dt.date = Field(..., description="UTC calendar day")
    views: int = Field(..., ge=0)


class CategoryBreakdown(BaseModel):
    category: str
    indicator_count: int = Field(..., ge=0)
    total_views: int = Field(..., ge=0)


class DataFreshness(BaseModel):
    id: str
    name: str
    last_update: Optional[datetime] = Field(None, description="Newest point; null if never collected")
    data_points: int = Field(..., ge=0)
    is_stale: bool = Field(..., description="No data, or newest point older than the staleness threshold")


class AnalyticsResponse(BaseModel):
    generated_at: datetime
    window_days: int
    trend_days: int
    total_views: int = Field(..., ge=0)
    top_indicators: List[TopIndicator]
    daily_trend: List[DailyTrendBucket]
    category_breakdown: List[CategoryBreakdown]
    data_freshness: List[DataFreshness]
