from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional, Sequence

from tabwise.domain.browsing import PageVisit
from tabwise.domain.hoarder import TabMetadata
from tabwise.domain.url_identity import canonicalize_url

_DAY_SECONDS = 86400.0
STILL_OPEN_WINDOW = timedelta(hours=24)
STILL_OPEN_MIN_DURATION_SECONDS = 300


def _days_between(later: datetime, earlier: datetime) -> float:
    return round(max(0.0, (later - earlier).total_seconds()) / _DAY_SECONDS, 1)


def calculate_tab_metadata(
    visits: Sequence[PageVisit],
    now: datetime,
) -> Optional[TabMetadata]:
    """
    Aggregate every visit to one canonical URL into a TabMetadata.

    Returns None for an empty group. Engagement is the mean of the
    non-null per-visit rates (0.0 when none were recorded).
    """
    if not visits:
        return None

    ordered = sorted(visits, key=lambda v: (v.visited_at, v.id))
    first, latest = ordered[0], ordered[-1]

    rates = [v.engagement_rate for v in ordered if v.engagement_rate is not None]
    engagement_rate = sum(rates) / len(rates) if rates else 0.0

    is_likely_still_open = (
        (now - latest.visited_at) < STILL_OPEN_WINDOW
        and latest.duration_seconds > STILL_OPEN_MIN_DURATION_SECONDS
    )

    return TabMetadata(
        domain=latest.domain,
        url=latest.url,
        canonical_url=canonicalize_url(latest.url),
        title=latest.title,
        tab_age_days=_days_between(now, first.visited_at),
        days_since_last_activity=_days_between(now, latest.visited_at),
        visit_count=len(ordered),
        is_single_visit=len(ordered) == 1,
        engagement_rate=engagement_rate,
        first_visited_at=first.visited_at,
        last_visited_at=latest.visited_at,
        total_duration_seconds=sum(v.duration_seconds for v in ordered),
        total_engagement_seconds=sum(v.active_duration_seconds for v in ordered),
        is_pinned=any(v.is_pinned for v in ordered),
        is_likely_still_open=is_likely_still_open,
        most_recent_visit=latest,
    )
