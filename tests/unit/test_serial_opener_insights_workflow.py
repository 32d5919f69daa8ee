from __future__ import annotations

import pytest

from tabwise.application.services.date_range import InvalidDateRangeError
from tabwise.application.workflows.serial_opener_insights import SerialOpenerInsightsWorkflow
from tabwise.domain.browsing import TabClosure
from tabwise.infrastructure.stores.browsing_store import SqlAlchemyBrowsingStore


def _repeat(make_visit, url, count, *, active=5, start_hours_ago=2.0, **kwargs):
    return [
        make_visit(url, minutes_ago=60 * start_hours_ago + 30 * i, active_duration_seconds=active, **kwargs)
        for i in range(count)
    ]


@pytest.fixture
def store(db_url, make_visit):
    s = SqlAlchemyBrowsingStore(db_url=db_url)
    visits = []
    visits += _repeat(make_visit, "https://www.notion.so/tracker", 5, title="Sprint issue tracker")
    visits += _repeat(make_visit, "https://github.com/o/r/pull/1", 3, active=10, title="Fix login PR")
    visits += [make_visit("https://github.com/o/r/pull/1?utm_source=slack", active_duration_seconds=10, title="Fix login PR")]
    # same prefix, different resource
    visits += [make_visit("https://github.com/o/r/pull/10", active_duration_seconds=1)]
    # engaged too long in total
    visits += _repeat(make_visit, "https://example.com/long", 4, active=60)
    # not enough visits for an 8-day window
    visits += _repeat(make_visit, "https://example.com/few", 2)
    visits += _repeat(make_visit, "https://example.com/saved", 4, active=1)
    # previous period only
    visits += [make_visit("https://x.com/home", days_ago=10 + i * 0.1, active_duration_seconds=2) for i in range(3)]
    s.add_visits(visits)
    s.add_reading_list_item(user_id="u1", url="https://example.com/saved/")
    yield s
    s.close()


def test_week_detection_and_criteria(store, now):
    data = SerialOpenerInsightsWorkflow(store).run("u1", now=now, period="week")

    assert data["period"] == "week"
    assert data["date_range"]["days"] == 8.0
    assert data["criteria"] == {
        "min_visits_per_day": 0.43,
        "effective_min_visits": 3,
        "min_visits": 3,
        "max_total_engagement_seconds": 120,
    }
    urls = [o["normalized_url"] for o in data["serial_openers"]]
    assert urls == ["https://www.notion.so/tracker", "https://github.com/o/r/pull/1"]
    assert data["count"] == 2
    assert "comparison" not in data


def test_openers_carry_insights(store, now):
    data = SerialOpenerInsightsWorkflow(store).run("u1", now=now, period="week")
    notion, pull = data["serial_openers"]

    assert notion["visit_count"] == 5
    assert notion["total_engagement_seconds"] == 25
    assert notion["inferred_purpose"] == "task_tracking"
    assert notion["suggested_action"] == "save_to_reading_list"

    assert pull["visit_count"] == 4
    assert pull["inferred_purpose"] == "code_review"
    # the /pull/10 visit at noon is a different resource
    assert pull["peak_hours"] == [9, 10, 12]
    assert pull["time_pattern"] == "work_hours"


def test_insights_use_every_member_when_tracking_param_leads(db_url, make_visit, now):
    s = SqlAlchemyBrowsingStore(db_url=db_url)
    try:
        # 10:00, 09:30, 09:00, 08:30
        s.add_visits(_repeat(make_visit, "https://a.com/x?utm_source=mail&id=1", 4))
        data = SerialOpenerInsightsWorkflow(s).run("u1", now=now, period="week")
    finally:
        s.close()

    (opener,) = data["serial_openers"]
    assert opener["normalized_url"] == "https://a.com/x?id=1"
    assert opener["visit_count"] == 4
    assert opener["peak_hours"] == [9, 8, 10]
    assert opener["most_active_day"] == "Tuesday"
    assert opener["time_pattern"] == "early_morning"


def test_closed_tabs_still_count_as_serial_openers(store, now):
    for visit in store.list_visits("u1"):
        if "notion.so" in visit.url:
            store.add_closure(TabClosure(page_visit_id=visit.id, closed_at=now))

    data = SerialOpenerInsightsWorkflow(store).run("u1", now=now, period="week")
    notion = data["serial_openers"][0]
    assert notion["normalized_url"] == "https://www.notion.so/tracker"
    assert notion["visit_count"] == 5


def test_today_window_has_lower_floor(store, now):
    data = SerialOpenerInsightsWorkflow(store).run("u1", now=now, period="today")
    assert data["criteria"]["effective_min_visits"] == 0
    assert data["criteria"]["min_visits"] == 2
    urls = [o["normalized_url"] for o in data["serial_openers"]]
    assert "https://example.com/few" in urls
    assert "https://example.com/saved" not in urls


def test_comparison_against_previous_period(store, now):
    data = SerialOpenerInsightsWorkflow(store).run("u1", now=now, period="week", include_comparison=True)

    comparison = data["comparison"]
    assert comparison["previous_period"]["period"] == "previous_week"
    new_urls = {r["url"] for r in comparison["by_resource"] if r["status"] == "new"}
    resolved = {r["url"] for r in comparison["by_resource"] if r["status"] == "resolved"}
    assert new_urls == {"https://www.notion.so/tracker", "https://github.com/o/r/pull/1"}
    assert resolved == {"https://x.com/home"}


def test_comparison_failure_is_omitted(store, now):
    class Broken:
        def calculate(self, current, previous):
            raise RuntimeError("boom")

    data = SerialOpenerInsightsWorkflow(store, comparison=Broken()).run(
        "u1", now=now, period="week", include_comparison=True
    )
    assert "comparison" not in data
    assert data["count"] == 2


def test_custom_range(store, now):
    data = SerialOpenerInsightsWorkflow(store).run("u1", now=now, start_date="2025-10-15", end_date="2025-10-21")
    assert data["period"] == "custom"
    assert data["date_range"]["days"] == 7.0
    assert data["criteria"]["effective_min_visits"] == 3


def test_custom_range_errors(store, now):
    workflow = SerialOpenerInsightsWorkflow(store)
    with pytest.raises(InvalidDateRangeError):
        workflow.run("u1", now=now, start_date="2025-10-21", end_date="2025-10-01")
    with pytest.raises(InvalidDateRangeError, match="90 days"):
        workflow.run("u1", now=now, start_date="2025-01-01", end_date="2025-10-21")
