"""
Application statistics analytics: trends, platform ranking and the dashboard.
"""

from datetime import date

import pytest

from api.stats import analyze_trend, dashboard_metrics, rank_platforms, success_rate


def day(iso, rate):
    return {"date": iso, "successRate": rate}


class TestTrend:

    def test_needs_two_days(self):
        assert analyze_trend([]) == {"trend": "neutral", "change": 0.0, "days": 0}
        assert analyze_trend([day("2026-03-01", 80.0)]) == {"trend": "neutral", "change": 0.0, "days": 1}

    @pytest.mark.parametrize("first,last,trend", [
        (40.0, 60.0, "positive"),
        (60.0, 40.0, "negative"),
        (50.0, 54.0, "neutral"),
        (50.0, 45.0, "neutral"),
    ])
    def test_first_versus_last_day(self, first, last, trend):
        result = analyze_trend([day("2026-03-02", last), day("2026-03-01", first)])

        assert result["trend"] == trend
        assert result["change"] == round(last - first, 1)
        assert result["days"] == 2

    def test_success_rate(self):
        assert success_rate(2, 3) == 66.7
        assert success_rate(0, 0) == 0.0


class TestRankPlatforms:

    def test_best_and_worst_above_sample_size(self):
        platforms = {
            "linkedin": {"total": 20, "successRate": 45.0},
            "indeed": {"total": 11, "successRate": 90.0},
            "glassdoor": {"total": 10, "successRate": 100.0},
        }

        best, worst = rank_platforms(platforms)

        assert best == {"name": "indeed", "successRate": 90.0}
        assert worst == {"name": "linkedin", "successRate": 45.0}

    def test_nothing_qualifies(self):
        assert rank_platforms({"indeed": {"total": 3, "successRate": 100.0}}) == (None, None)


class TestDashboard:

    @pytest.mark.asyncio
    async def test_last_30_days(self, job_store):
        for outcome in ["applied"] * 6 + ["failed"] * 6:
            await job_store.increment_stats("linkedin", outcome, date(2026, 3, 10))
        for _ in range(11):
            await job_store.increment_stats("indeed", "applied", date(2026, 3, 20))
        await job_store.increment_stats("glassdoor", "applied", date(2026, 3, 20))
        # Outside the window
        for _ in range(5):
            await job_store.increment_stats("linkedin", "failed", date(2026, 1, 1))

        metrics = await dashboard_metrics(job_store, today=date(2026, 3, 31))

        assert metrics["last30Days"] == {
            "totalApplications": 24,
            "successRate": 75.0,
            "avgDailySuccessRate": 75.0,
            "trend": "positive",
            "trendChange": 50.0,
        }
        assert metrics["platforms"] == {
            "best": {"name": "indeed", "successRate": 100.0},
            "worst": {"name": "linkedin", "successRate": 50.0},
        }

    @pytest.mark.asyncio
    async def test_empty_store(self, job_store):
        metrics = await dashboard_metrics(job_store, today=date(2026, 3, 31))

        assert metrics["last30Days"]["totalApplications"] == 0
        assert metrics["last30Days"]["avgDailySuccessRate"] == 0.0
        assert metrics["last30Days"]["trend"] == "neutral"
        assert metrics["platforms"] == {"best": None, "worst": None}
