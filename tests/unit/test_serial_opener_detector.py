from __future__ import annotations

from datetime import timedelta

from tabwise.application.services.serial_opener_detector import sort_candidates
from tabwise.domain.serial_opener import SerialOpenerCandidate


def _candidate(normalized_url, *, visit_count, last_visit_at):
    return SerialOpenerCandidate(
        normalized_url=normalized_url,
        url=normalized_url,
        title="Example page",
        domain="a.com",
        visit_count=visit_count,
        total_engagement_seconds=10,
        avg_engagement_per_visit=10 / visit_count,
        first_visit_at=last_visit_at - timedelta(hours=3),
        last_visit_at=last_visit_at,
    )


def test_sort_by_count_then_recency_then_url(now):
    older = _candidate("https://a.com/older", visit_count=4, last_visit_at=now - timedelta(hours=2))
    newer = _candidate("https://a.com/newer", visit_count=4, last_visit_at=now - timedelta(hours=1))
    tied = _candidate("https://a.com/a-tied", visit_count=4, last_visit_at=now - timedelta(hours=1))
    busiest = _candidate("https://a.com/busiest", visit_count=9, last_visit_at=now - timedelta(days=3))

    ordered = sort_candidates([older, newer, busiest, tied])

    assert [c.normalized_url for c in ordered] == [
        "https://a.com/busiest",
        "https://a.com/a-tied",
        "https://a.com/newer",
        "https://a.com/older",
    ]
