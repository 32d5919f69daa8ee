# src/tabwise/application/workflows/hoarder_detection.py
"""
Hoarder tab detection workflow.

Fetches a lookback window of visits, collapses them per canonical URL,
drops anything the user already closed or saved, scores the rest and
returns the hoarders with a summary.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

from tabwise.application.ports.event_store_port import EventStorePort
from tabwise.application.services.detection_config import DetectionConfig
from tabwise.application.services.domain_context_analyzer import DomainContextAnalyzer
from tabwise.application.services.hoarder_scorer import HoarderScorer
from tabwise.application.services.tab_age_calculator import calculate_tab_metadata
from tabwise.application.services.value_ranker import ValueRanker
from tabwise.domain.hoarder import ConfidenceLevel, DomainContext, HoarderScoreResult, TabMetadata
from tabwise.domain.url_identity import group_by_canonical_url

logger = logging.getLogger(__name__)

DETECTION_METHOD = "multi_signal_v2"
SORT_OPTIONS = ("value_rank", "hoarder_score", "age")
DEFAULT_LIMIT = 1000
DEFAULT_LOOKBACK_DAYS = 30

_SUGGESTED_ACTIONS = {
    ConfidenceLevel.HIGH: "save_to_reading_list_or_close",
    ConfidenceLevel.MEDIUM: "save_to_reading_list",
}


@dataclass
class HoarderFilters:
    min_score: Optional[int] = None
    age_min: Optional[float] = None
    domain: Optional[str] = None
    exclude_domains: Sequence[str] = field(default_factory=tuple)
    limit: int = DEFAULT_LIMIT
    sort_by: str = "value_rank"

    def __post_init__(self) -> None:
        if self.sort_by not in SORT_OPTIONS:
            raise ValueError(f"sort_by must be one of {', '.join(SORT_OPTIONS)}")
        if self.limit < 1:
            raise ValueError("limit must be positive")
        self.domain = (self.domain or "").strip().lower() or None
        self.exclude_domains = tuple(
            d.strip().lower() for d in (self.exclude_domains or ()) if d and d.strip()
        )

    def applied(self) -> Dict[str, Any]:
        applied: Dict[str, Any] = {"sort_by": self.sort_by}
        if self.min_score is not None:
            applied["min_score"] = self.min_score
        if self.age_min is not None:
            applied["age_min"] = self.age_min
        if self.domain:
            applied["domain"] = self.domain
        if self.exclude_domains:
            applied["exclude_domains"] = list(self.exclude_domains)
        if self.limit != DEFAULT_LIMIT:
            applied["limit"] = self.limit
        return applied


def build_hoarder_tab(
    tab: TabMetadata, context: DomainContext, result: HoarderScoreResult
) -> Dict[str, Any]:
    latest = tab.most_recent_visit
    return {
        "page_visit_id": latest.id if latest else None,
        "url": tab.url,
        "canonical_url": tab.canonical_url,
        "title": tab.title,
        "domain": tab.domain,
        "tab_age_days": tab.tab_age_days,
        "days_since_last_activity": tab.days_since_last_activity,
        "visit_count": tab.visit_count,
        "engagement_rate": round(tab.engagement_rate, 4),
        "first_visited_at": tab.first_visited_at.isoformat() if tab.first_visited_at else None,
        "last_visited_at": tab.last_visited_at.isoformat() if tab.last_visited_at else None,
        "is_likely_still_open": tab.is_likely_still_open,
        "hoarder_score": result.total_score,
        "confidence_level": result.confidence_level.value,
        "score_breakdown": dict(result.score_breakdown),
        "factor_reasons": dict(result.factor_reasons),
        "reason": result.reason,
        "domain_type": context.domain_type.value,
        "context_notes": context.context_notes,
        "suggested_action": _SUGGESTED_ACTIONS.get(result.confidence_level, "review"),
        "preview": latest.preview if latest else {},
    }


class HoarderDetectionWorkflow:
    def __init__(self, store: EventStorePort, *, config: Optional[DetectionConfig] = None):
        self.store = store
        self.config = config or DetectionConfig()
        self.analyzer = DomainContextAnalyzer(self.config.domains)
        self.scorer = HoarderScorer(self.config.scoring)
        self.ranker = ValueRanker()

    def detect(
        self,
        user_id: str,
        *,
        now: datetime,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        domain: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Every hoarder tab in the window, unfiltered and unsorted."""
        if lookback_days < 1:
            raise ValueError("lookback_days must be positive")

        visits = self.store.list_visits(
            user_id, start=now - timedelta(days=lookback_days), end=now, domain=domain
        )
        handled = self.store.closed_visit_ids(user_id) | self.store.reading_list_visit_ids(user_id)
        saved_urls = self.store.reading_list_urls(user_id)

        hoarders: List[Dict[str, Any]] = []
        for canonical_url, members in group_by_canonical_url(visits).items():
            # one closed or saved visit retires the whole URL
            if canonical_url in saved_urls or any(v.id in handled for v in members):
                continue
            tab = calculate_tab_metadata(members, now)
            if tab is None:
                continue
            context = self.analyzer.analyze(
                user_id=user_id, domain=tab.domain, url=tab.url, tab_metadata=tab
            )
            result = self.scorer.score(tab, context)
            if result.is_hoarder:
                hoarders.append(build_hoarder_tab(tab, context, result))

        logger.info(
            f"Hoarder detection user={user_id} visits={len(visits)} hoarders={len(hoarders)}"
        )
        return hoarders

    def run(
        self,
        user_id: str,
        *,
        now: datetime,
        filters: Optional[HoarderFilters] = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ) -> Dict[str, Any]:
        filters = filters or HoarderFilters()
        detected = self.detect(user_id, now=now, lookback_days=lookback_days, domain=filters.domain)

        tabs = detected
        if filters.min_score is not None:
            tabs = [t for t in tabs if t["hoarder_score"] >= filters.min_score]
        if filters.age_min is not None:
            tabs = [t for t in tabs if t["tab_age_days"] >= filters.age_min]
        if filters.exclude_domains:
            excluded = set(filters.exclude_domains)
            tabs = [t for t in tabs if (t["domain"] or "").lower() not in excluded]

        tabs = self._sort(tabs, filters.sort_by)[: filters.limit]

        top_domains = Counter(t["domain"] for t in detected).most_common(5)
        return {
            "summary": {
                "total_detected": len(detected),
                "showing": len(tabs),
                "detection_method": DETECTION_METHOD,
                "filters_applied": filters.applied(),
                "top_domains": [{"domain": d, "count": c} for d, c in top_domains],
            },
            "hoarder_tabs": tabs,
            "count": len(tabs),
        }

    def _sort(self, tabs: List[Dict[str, Any]], sort_by: str) -> List[Dict[str, Any]]:
        ranked = self.ranker.rank(tabs)
        if sort_by == "hoarder_score":
            return sorted(ranked, key=lambda t: (-t["hoarder_score"], t["url"]))
        if sort_by == "age":
            return sorted(ranked, key=lambda t: (-t["tab_age_days"], t["url"]))
        return ranked
