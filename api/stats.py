"""
Application statistics analytics.

Derived figures on top of the daily per-platform counters kept by the job
store: success rates, the first-day versus last-day trend and the dashboard
summary.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

# Percentage points between the first and last day before a trend is called
TREND_THRESHOLD = 5.0
DASHBOARD_DAYS = 30
# Platforms with this many applications or fewer are not ranked
MIN_PLATFORM_SAMPLE = 10


def success_rate(successful: int, total: int) -> float:
    return round(successful / total * 100, 1) if total else 0.0


def analyze_trend(daily: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Compare the success rate of the oldest and newest day."""
    if len(daily) < 2:
        return {"trend": "neutral", "change": 0.0, "days": len(daily)}

    ordered = sorted(daily, key=lambda day: day["date"])
    change = round(ordered[-1]["successRate"] - ordered[0]["successRate"], 1)

    trend = "neutral"
    if change > TREND_THRESHOLD:
        trend = "positive"
    elif change < -TREND_THRESHOLD:
        trend = "negative"
    return {"trend": trend, "change": change, "days": len(ordered)}


def rank_platforms(
    platforms: Dict[str, Dict[str, Any]],
    min_sample: int = MIN_PLATFORM_SAMPLE,
) -> Tuple[Optional[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """(best, worst) platform by success rate, or (None, None) if none qualifies."""
    ranked = sorted(
        ((name, data["successRate"]) for name, data in platforms.items() if data["total"] > min_sample),
        key=lambda item: item[1],
    )
    if not ranked:
        return None, None
    worst, best = ranked[0], ranked[-1]
    return {"name": best[0], "successRate": best[1]}, {"name": worst[0], "successRate": worst[1]}


async def dashboard_metrics(store, today: Optional[date] = None) -> Dict[str, Any]:
    """Headline numbers for the last 30 days."""
    today = today or date.today()
    stats = await store.get_application_stats(date_from=(today - timedelta(days=DASHBOARD_DAYS)).isoformat())

    daily = stats["daily"]
    avg_daily = round(sum(day["successRate"] for day in daily) / len(daily), 1) if daily else 0.0
    best, worst = rank_platforms(stats["platforms"])

    return {
        "last30Days": {
            "totalApplications": stats["totals"]["total"],
            "successRate": stats["totals"]["successRate"],
            "avgDailySuccessRate": avg_daily,
            "trend": stats["trends"]["trend"],
            "trendChange": stats["trends"]["change"],
        },
        "platforms": {
            "best": best,
            "worst": worst,
        },
    }
