from __future__ import annotations

from tabwise.application.services.tab_age_calculator import calculate_tab_metadata


def test_empty_group_returns_none(now):
    assert calculate_tab_metadata([], now) is None


def test_ages_are_rounded_days(make_visit, now):
    visits = [
        make_visit(days_ago=8.26, engagement_rate=0.2),
        make_visit(days_ago=2.04, engagement_rate=None, title="Latest title"),
    ]
    tab = calculate_tab_metadata(visits, now)

    assert tab.tab_age_days == 8.3
    assert tab.days_since_last_activity == 2.0
    assert tab.visit_count == 2
    assert tab.is_single_visit is False
    assert tab.title == "Latest title"
    assert tab.most_recent_visit.id == visits[1].id


def test_engagement_is_mean_of_recorded_rates(make_visit, now):
    visits = [
        make_visit(days_ago=3, engagement_rate=0.1),
        make_visit(days_ago=2, engagement_rate=0.3),
        make_visit(days_ago=1, engagement_rate=None),
    ]
    assert abs(calculate_tab_metadata(visits, now).engagement_rate - 0.2) < 1e-9


def test_engagement_defaults_to_zero(make_visit, now):
    tab = calculate_tab_metadata([make_visit(days_ago=1)], now)
    assert tab.engagement_rate == 0.0
    assert tab.is_single_visit is True


def test_pinned_and_still_open_flags(make_visit, now):
    visits = [
        make_visit(days_ago=5, metadata={"pinned": True}),
        make_visit(minutes_ago=30, duration_seconds=900),
    ]
    tab = calculate_tab_metadata(visits, now)
    assert tab.is_pinned is True
    assert tab.is_likely_still_open is True


def test_short_recent_visit_is_not_still_open(make_visit, now):
    tab = calculate_tab_metadata([make_visit(minutes_ago=30, duration_seconds=120)], now)
    assert tab.is_likely_still_open is False
