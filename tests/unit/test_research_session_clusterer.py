from __future__ import annotations

from datetime import timedelta

import pytest

from tabwise.application.services.research_session_clusterer import (
    ClusteringCriteria,
    ResearchSessionClusterer,
    extract_topics,
    session_name,
)
from tabwise.domain.research_session import SessionStatus


def _burst(make_visit, now, minutes, *, domain="docs.python.org", title="Python asyncio tutorial"):
    return [
        make_visit(f"https://{domain}/p{i}", visited_at=now + timedelta(minutes=m), title=title, engagement_rate=0.5)
        for i, m in enumerate(minutes)
    ]


def test_splits_on_gap_between_consecutive_visits(make_visit, now):
    visits = _burst(make_visit, now, [0, 2, 4]) + _burst(make_visit, now, [20, 22], domain="github.com")
    sessions = ResearchSessionClusterer(ClusteringCriteria(min_tabs=2)).cluster(visits)

    assert [s.tab_count for s in sessions] == [3, 2]
    assert sessions[0].primary_domain == "docs.python.org"
    assert sessions[1].primary_domain == "github.com"
    assert sessions[0].total_duration_seconds == 240
    assert sessions[0].status is SessionStatus.DETECTED


def test_gap_chains_beyond_window(make_visit, now):
    # every gap is under the split threshold, so one long session results
    visits = _burst(make_visit, now, [0, 8, 16, 24, 32])
    sessions = ResearchSessionClusterer().cluster(visits)
    assert len(sessions) == 1
    assert sessions[0].total_duration_seconds == 32 * 60


def test_small_or_short_clusters_are_dropped(make_visit, now):
    clusterer = ResearchSessionClusterer(ClusteringCriteria(min_tabs=3, min_duration=timedelta(minutes=1)))
    too_few = _burst(make_visit, now, [0, 2])
    too_short = [make_visit(f"https://a.com/{i}", visited_at=now + timedelta(seconds=10 * i)) for i in range(4)]
    assert clusterer.cluster(too_few) == []
    assert clusterer.cluster(too_short) == []


def test_order_independent_input(make_visit, now):
    visits = _burst(make_visit, now, [0, 1, 2, 3, 4])
    sessions = ResearchSessionClusterer().cluster(list(reversed(visits)))
    assert sessions[0].page_visit_ids == [v.id for v in visits]
    assert sessions[0].avg_engagement_rate == 0.5


def test_session_metadata(make_visit, now):
    visits = _burst(make_visit, now, [0, 1, 2]) + _burst(make_visit, now, [3, 4], domain="stackoverflow.com")
    session = ResearchSessionClusterer().cluster(visits)[0]

    assert session.domains == ["docs.python.org", "stackoverflow.com"]
    assert session.topics == ["python", "asyncio", "tutorial"]
    assert session.session_name == "Docs - Oct 21, 12:00PM"


def test_extract_topics_filters_noise():
    titles = ["How to use the Python API", "Python API reference 2024", "Login"]
    assert extract_topics(titles, limit=2) == ["python", "api"]


def test_session_name_without_domain(now):
    assert session_name("", now).startswith("Research - ")


def test_invalid_criteria():
    with pytest.raises(ValueError, match="min_tabs"):
        ClusteringCriteria(min_tabs=0)
    with pytest.raises(ValueError, match="split_gap"):
        ClusteringCriteria(split_gap=timedelta(0))
