"""Pytest configuration and fixtures."""

from __future__ import annotations

import gc
import itertools
import warnings
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import AsyncGenerator, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import AsyncClient, ASGITransport

from app.domain import CanonicalPoint, SortDirection, SortField

# Configure asyncio
pytest_plugins = ["pytest_asyncio"]


def _force_cleanup():
    """Force cleanup of pending async resources."""
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", category=ResourceWarning)
        gc.collect()


@pytest.fixture(scope="function", autouse=True)
def reset_module_state():
    """Reset engine globals and the listing cache around each test."""
    import app.database.connection as db_conn
    from app.services.indicator_listing import reset_listing_cache

    db_conn._engine = None
    db_conn._session_factory = None
    reset_listing_cache()

    yield

    db_conn._engine = None
    db_conn._session_factory = None
    reset_listing_cache()
    _force_cleanup()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI app."""
    from app.api.app import create_api_app

    app = create_api_app()
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    _force_cleanup()


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client for the FastAPI app."""
    from app.api.app import create_api_app

    app = create_api_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_token() -> str:
    """Create a valid JWT token for testing."""
    from app.core.security import create_access_token
    return create_access_token(user_id="user-1", is_admin=False, session_id="sess-1")


@pytest.fixture
def admin_token() -> str:
    """Create an admin JWT token for testing."""
    from app.core.security import create_access_token
    return create_access_token(user_id="admin-1", is_admin=True)


@pytest.fixture
def auth_headers(auth_token: str) -> dict:
    """Create authorization headers with a regular user token."""
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def admin_headers(admin_token: str) -> dict:
    """Create authorization headers with an admin token."""
    return {"Authorization": f"Bearer {admin_token}"}


# ============================================================================
# Mock fixtures for database-independent testing
# ============================================================================


@pytest.fixture
def mock_session(mocker):
    """AsyncSession double usable as `async with get_session() as session`."""
    session = AsyncMock()
    session.__aenter__.return_value = session
    session.__aexit__.return_value = False
    session.add = MagicMock()
    return session


class FakeStore:
    """In-memory stand-in for the repositories used by the API routes."""

    def __init__(self):
        self.indicators: dict[str, SimpleNamespace] = {}
        self.points: list[SimpleNamespace] = []
        self.views: list[SimpleNamespace] = []
        self.users: dict[str, str] = {}
        self._ids = itertools.count(1)

    # ----- seeding helpers -----

    def add_indicator(
        self,
        indicator_id: str,
        name: str | None = None,
        category: str = "sentiment",
        source: str = "test",
        description: str | None = None,
        is_active: bool = True,
    ) -> SimpleNamespace:
        indicator = SimpleNamespace(
            id=indicator_id,
            name=name or indicator_id,
            description=description,
            category=category,
            source=source,
            is_active=is_active,
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        self.indicators[indicator_id] = indicator
        return indicator

    def add_point(self, indicator_id, ts, value, label=None, metadata=None) -> bool:
        point = CanonicalPoint(indicator_id, ts, value, label, metadata)
        if any((p.indicator_id, p.ts_utc) == point.key for p in self.points):
            return False
        self.points.append(
            SimpleNamespace(
                id=next(self._ids),
                indicator_id=point.indicator_id,
                ts_utc=point.ts_utc,
                value=point.value,
                label=point.label,
                data_metadata=point.metadata,
            )
        )
        return True

    def add_view(self, indicator_id, user_id=None, viewed_at=None, user_agent="pytest"):
        view = SimpleNamespace(
            id=next(self._ids),
            indicator_id=indicator_id,
            user_id=user_id,
            session_id=None,
            user_agent=user_agent,
            ip_hash=None,
            viewed_at=viewed_at or datetime.now(timezone.utc),
        )
        self.views.append(view)
        return view

    def _active(self, indicator_id):
        indicator = self.indicators.get(indicator_id)
        return indicator if indicator is not None and indicator.is_active else None

    def _series(self, indicator_id):
        return sorted(
            (p for p in self.points if p.indicator_id == indicator_id),
            key=lambda p: (p.ts_utc, p.id),
            reverse=True,
        )

    # ----- indicators_orm -----

    async def get_active_indicator(self, indicator_id):
        return self._active(indicator_id)

    async def list_categories(self):
        counts: dict[str, int] = {}
        for indicator in self.indicators.values():
            if indicator.is_active:
                counts[indicator.category] = counts.get(indicator.category, 0) + 1
        return [{"category": c, "indicator_count": n} for c, n in sorted(counts.items())]

    async def register_indicator(self, definition):
        return self.add_indicator(
            definition.id,
            name=definition.name,
            category=definition.category,
            source=definition.source,
            description=definition.description,
        )

    async def deactivate_indicator(self, indicator_id):
        indicator = self.indicators.get(indicator_id)
        if indicator is not None:
            indicator.is_active = False
        return indicator

    async def list_with_latest(
        self,
        category=None,
        search=None,
        sort_by=SortField.VIEW_COUNT,
        sort_dir=SortDirection.DESC,
        view_window_days=30,
        limit=None,
        offset=0,
    ):
        since = datetime.now(timezone.utc) - timedelta(days=view_window_days)
        rows = []
        for indicator in self.indicators.values():
            if not indicator.is_active:
                continue
            if category and category != "all" and indicator.category != category:
                continue
            if search:
                haystack = f"{indicator.name}\n{indicator.description or ''}".lower()
                if search.lower() not in haystack:
                    continue
            series = self._series(indicator.id)
            latest = series[0] if series else None
            rows.append(
                {
                    "id": indicator.id,
                    "name": indicator.name,
                    "description": indicator.description,
                    "category": indicator.category,
                    "source": indicator.source,
                    "latest_value": latest.value if latest else None,
                    "latest_label": latest.label if latest else None,
                    "latest_ts": latest.ts_utc if latest else None,
                    "data_count": len(series),
                    "view_count": sum(
                        1 for v in self.views if v.indicator_id == indicator.id and v.viewed_at >= since
                    ),
                }
            )

        rows.sort(key=lambda r: r["name"])
        present = [r for r in rows if r[SortField(sort_by).value] is not None]
        missing = [r for r in rows if r[SortField(sort_by).value] is None]
        present.sort(
            key=lambda r: r[SortField(sort_by).value],
            reverse=SortDirection(sort_dir) == SortDirection.DESC,
        )
        return present + missing

    # ----- indicator_data_orm -----

    async def upsert_data_point(self, indicator_id, ts, value, label=None, metadata=None):
        return self.add_point(indicator_id, ts, value, label, metadata)

    async def query_range(self, indicator_id, start=None, end=None, limit=1000, offset=0):
        series = [
            p
            for p in self._series(indicator_id)
            if (start is None or p.ts_utc >= start) and (end is None or p.ts_utc <= end)
        ]
        return series[offset : offset + limit]

    async def latest_point(self, indicator_id):
        series = self._series(indicator_id)
        return series[0] if series else None

    # ----- indicator_views_orm -----

    async def record_view(self, indicator_id, user_id=None, session_id=None, user_agent=None, ip_hash=None):
        view = self.add_view(indicator_id, user_id=user_id, user_agent=user_agent)
        view.session_id = session_id
        view.ip_hash = ip_hash
        return view

    async def list_views(self, indicator_id, limit=50, offset=0):
        views = sorted(
            (v for v in self.views if v.indicator_id == indicator_id),
            key=lambda v: (v.viewed_at, v.id),
            reverse=True,
        )[offset : offset + limit]
        return [
            {
                "id": v.id,
                "viewed_at": v.viewed_at,
                "user_agent": v.user_agent,
                "user_id": v.user_id,
                "user_name": self.users.get(v.user_id),
            }
            for v in views
        ]

    async def count_views(self, indicator_id):
        return sum(1 for v in self.views if v.indicator_id == indicator_id)

    def install(self, monkeypatch) -> "FakeStore":
        from app.repositories import indicator_data_orm, indicator_views_orm, indicators_orm

        for name in (
            "get_active_indicator",
            "list_categories",
            "register_indicator",
            "deactivate_indicator",
            "list_with_latest",
        ):
            monkeypatch.setattr(indicators_orm, name, getattr(self, name))
        for name in ("upsert_data_point", "query_range", "latest_point"):
            monkeypatch.setattr(indicator_data_orm, name, getattr(self, name))
        for name in ("record_view", "list_views", "count_views"):
            monkeypatch.setattr(indicator_views_orm, name, getattr(self, name))
        return self


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    """In-memory repositories installed in place of the database ones."""
    return FakeStore().install(monkeypatch)
