"""Legacy hourly CNN Fear & Greed schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel


class FgiHourlyPoint(BaseModel):
    ts_utc: datetime
    score: int
    label: str

    model_config = {"from_attributes": True}


class FgiHistoryResponse(BaseModel):
    points: List[FgiHourlyPoint]
