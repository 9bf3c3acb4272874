"""Test in-memory search analytics."""

import pytest
from datetime import datetime, timedelta

from lostphone_search.analytics import NullAnalyticsSink, SearchEvent


def event(query, results=1, at=datetime(2024, 6, 15, 10), **kwargs):
    return SearchEvent(
        query_text=query,
        search_type=kwargs.pop("search_type", "general"),
        result_count=results,
        timestamp=at,
        **kwargs,
    )


@pytest.fixture
async def populated(analytics):
    """Analytics with a few days of searches."""
    day = datetime(2024, 6, 15, 10)
    events = [
        event("iphone", 3, day, response_time_ms=10, caller_ip="1.1.1.1"),
        event("iPhone ", 1, day, response_time_ms=30, caller_ip="2.2.2.2", cache_hit=True),
        event("iphone 13", 0, day - timedelta(days=1), response_time_ms=20),
        event("samsung", 2, day - timedelta(days=1), filters={"brands": ["samsung"]}),
        event("samsung", 0, day - timedelta(days=2), search_type="phone"),
        event("samsung", 4, day - timedelta(days=400)),
        event("", 5, day),
    ]
    for item in events:
        await analytics.record(item)
    return analytics


class TestPopularSearches:
    """Test popular term tracking."""

    async def test_frequency_and_averages(self, populated):
        """Test terms are normalized and aggregated."""
        popular = populated.popular_searches()

        assert [p["search_term"] for p in popular] == ["samsung", "iphone", "iphone 13"]
        iphone = popular[1]
        assert iphone["frequency"] == 2
        assert iphone["avg_results"] == 2
        assert iphone["success_rate"] == 1.0
        assert popular[0]["success_rate"] == pytest.approx(2 / 3)

    async def test_limit(self, populated):
        """Test the limit applies."""
        assert len(populated.popular_searches(limit=1)) == 1

    async def test_suggestions(self, populated):
        """Test suggestions only offer repeated terms."""
        assert populated.suggestions("iph") == ["iphone"]
        assert populated.suggestions("SUNG") == ["samsung"]
        assert populated.suggestions("") == []


class TestDailyMetrics:
    """Test per-day performance metrics."""

    async def test_daily_rollup(self, populated):
        """Test one entry per day, newest first."""
        metrics = populated.performance_metrics(days=30)

        assert [m["date"] for m in metrics] == ["2024-06-15", "2024-06-14", "2024-06-13"]
        today = metrics[0]
        assert today["total_searches"] == 3
        assert today["avg_response_time"] == pytest.approx(40 / 3)
        assert today["cache_hit_rate"] == pytest.approx(1 / 3)
        assert today["successful_searches"] == 3
        assert today["failed_searches"] == 0
        assert today["unique_users"] == 3

    async def test_trends(self, populated):
        """Test trend breakdowns."""
        trends = populated.search_trends()

        weekly = {t["query_text"]: t["frequency"] for t in trends["weekly_trends"]}
        assert weekly["samsung"] == 2
        by_type = {t["search_type"]: t for t in trends["success_by_type"]}
        assert by_type["phone"]["avg_success_rate"] == 0.0
        usage = {u["filter_type"]: u["usage_count"] for u in trends["filter_usage"]}
        assert usage == {"No Filters": 5, "With Filters": 1}


class TestMaintenance:
    """Test pruning and reporting."""

    async def test_clean_old_data(self, populated, clock):
        """Test old events and idle single-use terms are pruned."""
        clock.advance(timedelta(days=100).total_seconds())

        removed = populated.clean_old_data(days_to_keep=365)

        assert removed == {"events": 1, "days": 1, "terms": 1}
        assert [p["search_term"] for p in populated.popular_searches()] == ["samsung", "iphone"]

    async def test_report(self, populated):
        """Test the summary report."""
        report = populated.generate_report()

        assert report["summary"]["total_searches_30_days"] == 6
        assert report["summary"]["most_popular_term"] == "samsung"
        assert report["generated_at"] == "2024-06-15T12:00:00"
        assert len(report["performance_metrics"]) == 3

    async def test_empty_report(self, analytics):
        """Test a report with no data."""
        report = analytics.generate_report()

        assert report["summary"]["most_popular_term"] == "N/A"
        assert report["summary"]["avg_response_time"] == 0.0


class TestNullSink:
    """Test the no-op sink."""

    async def test_discards(self):
        """Test recording does nothing."""
        sink = NullAnalyticsSink()
        assert await sink.record(event("x")) is None
        await sink.close()
