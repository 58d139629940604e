"""Pydantic schemas for API request/response validation."""

from .analytics import (
    AnalyticsResponse,
    CategoryBreakdown,
    DailyTrendBucket,
    DataFreshness,
    TopIndicator,
)
from .collectors import (
    CollectAllResponse,
    CollectedPoint,
    CollectionResult,
    CollectorInfo,
)
from .common import (
    ErrorResponse,
    HealthResponse,
)
from .fgi import (
    FgiHistoryResponse,
    FgiHourlyPoint,
)
from .indicators import (
    CategoryCount,
    DataPointCreate,
    DataPointInsertResponse,
    DataPointResponse,
    IndicatorCreate,
    IndicatorDetailResponse,
    IndicatorListResponse,
    IndicatorResponse,
    IndicatorSummary,
)
from .views import (
    ViewAttribution,
    ViewListResponse,
    ViewRecordResponse,
    ViewerName,
)


__all__ = [
    # Analytics
    "AnalyticsResponse",
    "CategoryBreakdown",
    "DailyTrendBucket",
    "DataFreshness",
    "TopIndicator",
    # Collectors
    "CollectAllResponse",
    "CollectedPoint",
    "CollectionResult",
    "CollectorInfo",
    # Common
    "ErrorResponse",
    "HealthResponse",
    # Legacy FGI
    "FgiHistoryResponse",
    "FgiHourlyPoint",
    # Indicators
    "CategoryCount",
    "DataPointCreate",
    "DataPointInsertResponse",
    "DataPointResponse",
    "IndicatorCreate",
    "IndicatorDetailResponse",
    "IndicatorListResponse",
    "IndicatorResponse",
    "IndicatorSummary",
    # Views
    "ViewAttribution",
    "ViewListResponse",
    "ViewRecordResponse",
    "ViewerName",
]
