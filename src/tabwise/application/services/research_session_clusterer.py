# src/tabwise/application/services/research_session_clusterer.py
"""
Research session clustering.

Walks a user's visits in time order and splits them wherever the gap to the
previous visit exceeds the split threshold. Clusters big enough and long
enough become ResearchSessions in ``detected`` status.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from tabwise.domain.browsing import PageVisit
from tabwise.domain.research_session import ResearchSession

logger = logging.getLogger(__name__)

DEFAULT_MIN_TABS = 5
DEFAULT_SPLIT_GAP = timedelta(minutes=10)
DEFAULT_MIN_DURATION = timedelta(minutes=1)
DEFAULT_TOPIC_COUNT = 5

_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9+#.-]*[a-z0-9+#]|[a-z0-9]")
STOPWORDS = frozenset(
    """
    a an and are as at be by for from has have how in into is it its of on or that the
    this to was what when where which who why will with you your we our can not new
    vs via get using use about all any more most other some such than then there these
    they those com www http https html page home index untitled login sign
    """.split()
)


@dataclass(frozen=True)
class ClusteringCriteria:
    min_tabs: int = DEFAULT_MIN_TABS
    split_gap: timedelta = DEFAULT_SPLIT_GAP
    min_duration: timedelta = DEFAULT_MIN_DURATION
    topic_count: int = DEFAULT_TOPIC_COUNT

    def __post_init__(self) -> None:
        if self.min_tabs < 1:
            raise ValueError("min_tabs must be at least 1")
        if self.split_gap <= timedelta(0):
            raise ValueError("split_gap must be positive")
        if self.min_duration < timedelta(0):
            raise ValueError("min_duration must not be negative")


def extract_topics(titles: Sequence[str], limit: int = DEFAULT_TOPIC_COUNT) -> List[str]:
    counts: Counter = Counter()
    for title in titles:
        for token in _TOKEN_RE.findall((title or "").lower()):
            if len(token) < 3 or token in STOPWORDS or token.isdigit():
                continue
            counts[token] += 1
    # most_common keeps first-seen order for equal counts
    return [token for token, _ in counts.most_common(limit)]


def session_name(primary_domain: str, start: datetime) -> str:
    label = (primary_domain or "").split(".")[0].capitalize() or "Research"
    return f"{label} - {start.strftime('%b %d, %I:%M%p')}"


class ResearchSessionClusterer:
    def __init__(self, criteria: Optional[ClusteringCriteria] = None):
        self.criteria = criteria or ClusteringCriteria()

    def cluster(self, visits: Sequence[PageVisit]) -> List[ResearchSession]:
        ordered = sorted(visits, key=lambda v: (v.visited_at, v.id))
        sessions: List[ResearchSession] = []
        current: List[PageVisit] = []

        for visit in ordered:
            if current and visit.visited_at - current[-1].visited_at > self.criteria.split_gap:
                self._emit(current, sessions)
                current = []
            current.append(visit)
        self._emit(current, sessions)

        logger.debug(f"Clustered {len(ordered)} visits into {len(sessions)} research sessions")
        return sessions

    def _emit(self, members: List[PageVisit], out: List[ResearchSession]) -> None:
        if len(members) < self.criteria.min_tabs:
            return
        start, end = members[0].visited_at, members[-1].visited_at
        if end - start < self.criteria.min_duration:
            return
        out.append(self._build(members, start, end))

    def _build(self, members: List[PageVisit], start: datetime, end: datetime) -> ResearchSession:
        domains = list(dict.fromkeys(v.domain for v in members if v.domain))
        primary = Counter(v.domain for v in members if v.domain).most_common(1)
        primary_domain = primary[0][0] if primary else ""
        rates = [v.engagement_rate for v in members if v.engagement_rate is not None]
        return ResearchSession(
            session_start=start,
            session_end=end,
            page_visit_ids=[v.id for v in members],
            primary_domain=primary_domain,
            domains=domains,
            topics=extract_topics([v.title for v in members], self.criteria.topic_count),
            session_name=session_name(primary_domain, start),
            total_duration_seconds=int((end - start).total_seconds()),
            avg_engagement_rate=round(sum(rates) / len(rates), 4) if rates else 0.0,
        )
