"""View ledger schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ViewerName(BaseModel):
    name: Optional[str] = None


class ViewAttribution(BaseModel):
    """One view with the viewer's display name; emails are never exposed."""

    id: int
    viewed_at: datetime
    user_agent: Optional[str] = None
    user: Optional[ViewerName] = None
    is_authenticated: bool

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ViewAttribution":
        authenticated = row.get("user_id") is not None
        return cls(
            id=row["id"],
            viewed_at=row["viewed_at"],
            user_agent=row.get("user_agent"),
            user=ViewerName(name=row.get("user_name")) if authenticated else None,
            is_authenticated=authenticated,
        )


class ViewListResponse(BaseModel):
    views: List[ViewAttribution]
    total: int = Field(..., ge=0, description="All views of the indicator")
    has_more: bool


class ViewRecordResponse(BaseModel):
    success: bool = True
    view_id: int
    authenticated: bool
