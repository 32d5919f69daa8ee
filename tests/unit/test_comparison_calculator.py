from __future__ import annotations

from tabwise.application.services.comparison_calculator import (
    ComparisonCalculator,
    percent_change,
    trend,
)


def _opener(url, visits, engagement=10, behavior="regular_reference"):
    return {
        "normalized_url": url,
        "url": url,
        "title": url,
        "domain": "a.com",
        "visit_count": visits,
        "total_engagement_seconds": engagement,
        "behavior_type": behavior,
    }


def test_percent_change_edges():
    assert percent_change(0, 0) == 0.0
    assert percent_change(5, 0) == 100.0
    assert percent_change(0, 5) == -100.0
    assert percent_change(6, 4) == 50.0


def test_trend_uses_twenty_percent_band():
    assert trend(12, 10) == "stable"
    assert trend(13, 10) == "increasing"
    assert trend(7, 10) == "decreasing"


def test_resource_statuses_sorted_by_change_magnitude():
    current = [_opener("https://a.com/1", 10), _opener("https://a.com/2", 3)]
    previous = [_opener("https://a.com/1", 8), _opener("https://a.com/3", 6)]

    result = ComparisonCalculator().calculate(current, previous)

    statuses = [(r["url"], r["status"], r["visit_count_change"]) for r in result["by_resource"]]
    assert statuses == [
        ("https://a.com/3", "resolved", -6),
        ("https://a.com/2", "new", 3),
        ("https://a.com/1", "continued", 2),
    ]
    assert result["overall"]["total_serial_openers"]["change"] == 0
    assert result["overall"]["total_visits"]["current"] == 13


def test_behavioral_changes_direction_and_summary():
    current = [_opener("https://a.com/1", 20, behavior="compulsive_checking")]
    previous = [_opener("https://a.com/1", 5, behavior="regular_reference")]

    result = ComparisonCalculator().calculate(current, previous)

    change = result["behavioral_changes"][0]
    assert change["direction"] == "worsened"
    assert change["from"] == "regular_reference"
    assert change["to"] == "compulsive_checking"
    assert result["summary"] == "Serial opener activity increased by 300%. 1 resources worsened"


def test_empty_periods_are_stable():
    result = ComparisonCalculator().calculate([], [])
    assert result["by_resource"] == []
    assert result["summary"] == "Serial opener activity remained stable"
