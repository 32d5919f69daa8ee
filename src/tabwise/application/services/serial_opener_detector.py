from __future__ import annotations

import logging
from datetime import datetime
from typing import List

from tabwise.application.ports.event_store_port import EventStorePort
from tabwise.application.services.adaptive_threshold_calculator import (
    AdaptiveThresholdCalculator,
)
from tabwise.domain.browsing import PageVisit
from tabwise.domain.serial_opener import SerialOpenerCandidate
from tabwise.domain.url_identity import group_by_canonical_url

logger = logging.getLogger(__name__)


def sort_candidates(candidates: List[SerialOpenerCandidate]) -> List[SerialOpenerCandidate]:
    return sorted(
        candidates,
        key=lambda c: (-c.visit_count, -c.last_visit_at.timestamp(), c.normalized_url),
    )


class SerialOpenerDetector:
    """Find resources reopened often without ever being engaged with for long."""

    def __init__(self, store: EventStorePort, calculator: AdaptiveThresholdCalculator):
        self.store = store
        self.calculator = calculator

    def detect(self, user_id: str, *, start: datetime, end: datetime) -> List[SerialOpenerCandidate]:
        visits = self.store.list_visits(user_id, start=start, end=end)
        saved_ids = self.store.reading_list_visit_ids(user_id)
        saved_urls = self.store.reading_list_urls(user_id)

        min_visits = self.calculator.min_serial_opener_visits
        max_engagement = self.calculator.max_serial_opener_engagement_seconds

        candidates: List[SerialOpenerCandidate] = []
        for normalized_url, members in group_by_canonical_url(visits).items():
            if normalized_url in saved_urls or any(v.id in saved_ids for v in members):
                continue
            if len(members) < min_visits:
                continue
            total_engagement = sum(v.active_duration_seconds for v in members)
            if total_engagement >= max_engagement:
                continue
            candidates.append(self._build(normalized_url, members, total_engagement))

        logger.info(
            f"Serial opener detection user={user_id} visits={len(visits)} "
            f"min_visits={min_visits} found={len(candidates)}"
        )
        return sort_candidates(candidates)

    @staticmethod
    def _build(
        normalized_url: str, members: List[PageVisit], total_engagement: int
    ) -> SerialOpenerCandidate:
        ordered = sorted(members, key=lambda v: (v.visited_at, v.id))
        latest = ordered[-1]
        rates = [v.engagement_rate for v in ordered if v.engagement_rate is not None]
        visit_count = len(ordered)
        return SerialOpenerCandidate(
            normalized_url=normalized_url,
            url=latest.url,
            title=latest.title,
            domain=latest.domain,
            category=latest.category,
            visit_count=visit_count,
            total_engagement_seconds=total_engagement,
            avg_engagement_per_visit=total_engagement / visit_count,
            first_visit_at=ordered[0].visited_at,
            last_visit_at=latest.visited_at,
            page_visit_id=latest.id,
            engagement_rate=(sum(rates) / len(rates)) if rates else None,
            member_visit_ids=[v.id for v in ordered],
        )

