"""Tests for the listing and analytics SQL builders (compiled for PostgreSQL)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from app.domain import SortDirection, SortField
from app.repositories import analytics_orm, indicators_orm
from app.repositories.indicators_orm import _escape_like, build_listing_query


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def compile_pg(stmt):
    return stmt.compile(dialect=postgresql.dialect())


class TestListingQuery:
    """Tests for build_listing_query()."""

    def test_latest_point_per_indicator(self):
        sql = str(compile_pg(build_listing_query(now=NOW)))

        assert "LEFT OUTER JOIN LATERAL" in sql
        assert "WHERE indicator_data.indicator_id = indicators.id" in sql
        assert "ORDER BY indicator_data.ts_utc DESC, indicator_data.id DESC" in sql
        assert "AS latest_data ON true" in sql

    def test_latest_point_does_not_scan_whole_table(self):
        compiled = compile_pg(build_listing_query(now=NOW))

        assert "DISTINCT ON" not in str(compiled)
        assert "LIMIT" in str(compiled)
        assert 1 in compiled.params.values()

    def test_only_active_indicators_with_outer_joins(self):
        sql = str(compile_pg(build_listing_query(now=NOW)))

        assert "indicators.is_active IS true" in sql
        assert sql.count("LEFT OUTER JOIN") == 3

    def test_missing_counts_default_to_zero(self):
        sql = str(compile_pg(build_listing_query(now=NOW)))

        assert "coalesce(data_counts.data_count" in sql
        assert "coalesce(view_counts.view_count" in sql

    def test_view_window(self):
        compiled = compile_pg(build_listing_query(view_window_days=30, now=NOW))

        assert "indicator_views.viewed_at >=" in str(compiled)
        assert NOW - timedelta(days=30) in compiled.params.values()

    def test_category_filter(self):
        compiled = compile_pg(build_listing_query(category="crypto", now=NOW))

        assert "indicators.category =" in str(compiled)
        assert "crypto" in compiled.params.values()

    @pytest.mark.parametrize("category", [None, "", "all"])
    def test_no_category_filter(self, category):
        sql = str(compile_pg(build_listing_query(category=category, now=NOW)))
        assert "indicators.category =" not in sql

    def test_search_matches_name_or_description(self):
        compiled = compile_pg(build_listing_query(search=" fear ", now=NOW))
        sql = str(compiled)

        assert sql.count("ILIKE") == 2
        assert "coalesce(indicators.description" in sql
        assert "%fear%" in compiled.params.values()

    def test_search_wildcards_escaped(self):
        assert _escape_like("50%_off\\") == "50\\%\\_off\\\\"

    @pytest.mark.parametrize(
        "sort_by,sort_dir,expected",
        [
            (SortField.NAME, SortDirection.ASC, "lower(indicators.name) ASC NULLS LAST"),
            (SortField.LATEST_VALUE, SortDirection.DESC, "latest_data.value DESC NULLS LAST"),
            (SortField.LATEST_TS, SortDirection.ASC, "latest_data.ts_utc ASC NULLS LAST"),
        ],
    )
    def test_sort_nulls_last(self, sort_by, sort_dir, expected):
        sql = str(compile_pg(build_listing_query(sort_by=sort_by, sort_dir=sort_dir, now=NOW)))
        assert expected in sql

    def test_default_sort_by_views_then_name(self):
        sql = str(compile_pg(build_listing_query(now=NOW)))
        order_by = sql.split("ORDER BY")[-1]

        assert "DESC NULLS LAST" in order_by
        assert "indicators.name ASC, indicators.id ASC" in order_by


class TestAnalyticsQueries:
    """Tests for analytics statement builders."""

    SINCE = NOW - timedelta(days=30)

    def test_top_indicators(self):
        sql = str(compile_pg(analytics_orm.build_top_indicators_query(self.SINCE, 10)))

        assert "JOIN indicator_views ON indicator_views.indicator_id = indicators.id" in sql
        assert "LEFT OUTER JOIN" not in sql
        assert "max(indicator_views.viewed_at)" in sql
        assert "ORDER BY view_count DESC, indicators.name ASC" in sql

    def test_daily_trend_buckets_by_utc_day(self):
        compiled = compile_pg(analytics_orm.build_daily_trend_query(self.SINCE))
        sql = str(compiled)

        assert "CAST(timezone(" in sql
        assert "AS DATE)" in sql
        assert "GROUP BY" in sql
        assert "UTC" in compiled.params.values()

    def test_category_breakdown_windows_views_in_join(self):
        sql = str(compile_pg(analytics_orm.build_category_breakdown_query(self.SINCE)))
        join = sql.split("LEFT OUTER JOIN")[1].split("WHERE")[0]

        assert "indicator_views.viewed_at >=" in join
        assert "count(DISTINCT indicators.id)" in sql

    def test_category_breakdown_all_time(self):
        sql = str(compile_pg(analytics_orm.build_category_breakdown_query()))
        assert "viewed_at >=" not in sql

    def test_data_freshness_never_collected_last(self):
        sql = str(compile_pg(analytics_orm.build_data_freshness_query()))

        assert "LEFT OUTER JOIN indicator_data" in sql
        assert "max(indicator_data.ts_utc)" in sql
        assert "NULLS LAST" in sql

    def test_total_views(self):
        assert "WHERE" not in str(compile_pg(analytics_orm.build_total_views_query()))
        assert "WHERE" in str(compile_pg(analytics_orm.build_total_views_query(self.SINCE)))


class TestAnalyticsSnapshot:
    """Tests for analytics_orm.snapshot()."""

    @pytest.mark.asyncio
    async def test_reads_every_section_on_one_repeatable_read_session(self, mocker, mock_session):
        mocker.patch("app.repositories.analytics_orm.get_session", return_value=mock_session)
        result = MagicMock()
        result.mappings.return_value.all.return_value = []
        result.scalar_one.return_value = 7
        mock_session.execute.return_value = result

        snapshot = await analytics_orm.snapshot(window_days=30, trend_days=7, top_n=5, now=NOW)

        mock_session.connection.assert_awaited_once_with(
            execution_options={"isolation_level": "REPEATABLE READ"}
        )
        assert mock_session.execute.await_count == 5
        assert snapshot.generated_at == NOW
        assert snapshot.total_views == 7
        assert snapshot.top_indicators == []


class TestListWithLatest:
    @pytest.mark.asyncio
    async def test_rows_become_dicts(self, mocker, mock_session):
        mocker.patch("app.repositories.indicators_orm.get_session", return_value=mock_session)
        result = MagicMock()
        result.mappings.return_value.all.return_value = [{"id": "vix", "view_count": 3}]
        mock_session.execute.return_value = result

        rows = await indicators_orm.list_with_latest(category="volatility")

        assert rows == [{"id": "vix", "view_count": 3}]
