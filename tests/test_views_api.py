"""Tests for view attribution routes and viewer identity."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from app.api.dependencies import ANONYMOUS, get_viewer
from app.core.client_identity import describe_user_agent
from app.core.security import create_access_token


@pytest.fixture
def viewed(store):
    now = datetime.now(timezone.utc)
    store.add_indicator("vix", "VIX Volatility Index", "volatility", "CBOE")
    store.users["user-1"] = "Ada"
    store.add_view("vix", viewed_at=now - timedelta(minutes=3))
    store.add_view("vix", user_id="user-1", viewed_at=now - timedelta(minutes=2))
    store.add_view("vix", viewed_at=now - timedelta(minutes=1))
    return store


class TestListViews:
    """Tests for GET /indicators/{id}/views."""

    def test_newest_first_with_names(self, client: TestClient, viewed):
        response = client.get("/indicators/vix/views")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 3
        assert data["has_more"] is False

        newest, middle, oldest = data["views"]
        assert newest["is_authenticated"] is False
        assert newest["user"] is None
        assert middle["is_authenticated"] is True
        assert middle["user"] == {"name": "Ada"}
        assert datetime.fromisoformat(newest["viewed_at"]) > datetime.fromisoformat(oldest["viewed_at"])

    def test_email_never_exposed(self, client: TestClient, viewed):
        body = client.get("/indicators/vix/views").text
        assert "email" not in body

    def test_pagination(self, client: TestClient, viewed):
        data = client.get("/indicators/vix/views", params={"limit": 2}).json()

        assert len(data["views"]) == 2
        assert data["total"] == 3
        assert data["has_more"] is True

        rest = client.get("/indicators/vix/views", params={"limit": 2, "offset": 2}).json()
        assert len(rest["views"]) == 1
        assert rest["has_more"] is False

    def test_limit_bounds(self, client: TestClient, viewed):
        response = client.get("/indicators/vix/views", params={"limit": 0})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT

    def test_unknown_indicator_404(self, client: TestClient, store):
        assert client.get("/indicators/nope/views").status_code == status.HTTP_404_NOT_FOUND


class TestRecordView:
    """Tests for POST /indicators/{id}/views."""

    def test_anonymous_view(self, client: TestClient, viewed):
        response = client.post("/indicators/vix/views", headers={"User-Agent": "dashboard/1.0"})

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert body["authenticated"] is False
        assert viewed.views[-1].id == body["view_id"]
        recorded = json.loads(viewed.views[-1].user_agent)
        assert recorded["raw"] == "dashboard/1.0"
        assert recorded["device"] == "desktop"

    def test_authenticated_view(self, client: TestClient, viewed, auth_headers):
        body = client.post("/indicators/vix/views", headers=auth_headers).json()

        assert body["authenticated"] is True
        assert viewed.views[-1].user_id == "user-1"

    def test_every_call_is_recorded(self, client: TestClient, viewed):
        before = len(viewed.views)
        client.post("/indicators/vix/views")
        client.post("/indicators/vix/views")
        assert len(viewed.views) == before + 2

    def test_ip_is_hashed(self, client: TestClient, viewed):
        client.post("/indicators/vix/views", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

        ip_hash = viewed.views[-1].ip_hash
        assert "203.0.113.7" not in ip_hash
        assert len(ip_hash) == 64

    def test_unknown_indicator_404(self, client: TestClient, store):
        assert client.post("/indicators/nope/views").status_code == status.HTTP_404_NOT_FOUND


class TestGetViewer:
    """Tests for the get_viewer dependency."""

    @pytest.mark.asyncio
    async def test_no_credentials_is_anonymous(self):
        assert await get_viewer(authorization=None, session=None, x_session_id=None) is ANONYMOUS

    @pytest.mark.asyncio
    async def test_bearer_token(self):
        token = create_access_token(user_id="u-42", session_id="s-1")
        viewer = await get_viewer(authorization=f"Bearer {token}", session=None, x_session_id=None)

        assert viewer.user_id == "u-42"
        assert viewer.session_id == "s-1"
        assert viewer.is_authenticated
        assert not viewer.is_admin

    @pytest.mark.asyncio
    async def test_session_cookie(self):
        token = create_access_token(user_id="u-42", is_admin=True)
        viewer = await get_viewer(authorization=None, session=token, x_session_id="hdr")

        assert viewer.user_id == "u-42"
        assert viewer.session_id == "hdr"
        assert viewer.is_admin

    @pytest.mark.asyncio
    async def test_invalid_token_degrades_to_anonymous(self):
        viewer = await get_viewer(authorization="Bearer not-a-jwt", session=None, x_session_id="s-9")

        assert not viewer.is_authenticated
        assert viewer.session_id == "s-9"

    @pytest.mark.asyncio
    async def test_expired_token_degrades_to_anonymous(self):
        token = create_access_token(user_id="u-42", expires_delta=timedelta(seconds=-10))
        viewer = await get_viewer(authorization=f"Bearer {token}", session=None, x_session_id=None)
        assert viewer is ANONYMOUS


class TestDescribeUserAgent:
    """Tests for the structured User-Agent summary stored with each view."""

    CHROME_WINDOWS = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.6099.109 Safari/537.36"
    )
    SAFARI_IPHONE = (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
    )

    def test_desktop_browser(self):
        summary = describe_user_agent(self.CHROME_WINDOWS)

        assert summary["browser"].startswith("Chrome 120")
        assert summary["os"].startswith("Windows")
        assert summary["device"] == "desktop"
        assert summary["raw"] == self.CHROME_WINDOWS

    def test_phone_is_mobile(self):
        summary = describe_user_agent(self.SAFARI_IPHONE)

        assert summary["device"] == "mobile"
        assert summary["os"].startswith("iOS")

    def test_missing_header_is_unknown(self):
        assert describe_user_agent("") == {
            "browser": "Unknown",
            "os": "Unknown",
            "device": "desktop",
            "raw": "",
        }

    def test_recorded_view_stores_json(self, client: TestClient, viewed):
        client.post("/indicators/vix/views", headers={"User-Agent": self.SAFARI_IPHONE})

        recorded = json.loads(viewed.views[-1].user_agent)
        assert set(recorded) == {"browser", "os", "device", "raw"}
        assert recorded["device"] == "mobile"
