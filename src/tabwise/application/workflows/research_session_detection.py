from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from tabwise.application.ports.event_store_port import EventStorePort
from tabwise.application.services.research_session_clusterer import (
    ClusteringCriteria,
    ResearchSessionClusterer,
)
from tabwise.domain.research_session import ResearchSession

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 7


class ResearchSessionDetectionWorkflow:
    """Cluster recent visits into research sessions, skipping visits already in a session."""

    def __init__(self, store: EventStorePort):
        self.store = store

    def detect(
        self,
        user_id: str,
        *,
        now: datetime,
        criteria: Optional[ClusteringCriteria] = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ) -> List[ResearchSession]:
        if lookback_days < 1:
            raise ValueError("lookback_days must be positive")
        visits = self.store.list_visits(
            user_id,
            start=now - timedelta(days=lookback_days),
            end=now,
            exclude_ids=self.store.session_visit_ids(user_id),
        )
        sessions = ResearchSessionClusterer(criteria).cluster(visits)
        logger.info(
            f"Research session detection user={user_id} visits={len(visits)} sessions={len(sessions)}"
        )
        return sessions

    def run(
        self,
        user_id: str,
        *,
        now: datetime,
        criteria: Optional[ClusteringCriteria] = None,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    ) -> Dict[str, Any]:
        criteria = criteria or ClusteringCriteria()
        sessions = self.detect(user_id, now=now, criteria=criteria, lookback_days=lookback_days)
        return {
            "research_sessions": [s.to_dict() for s in sessions],
            "count": len(sessions),
            "criteria": {
                "min_tabs": criteria.min_tabs,
                "time_window_minutes": criteria.split_gap.total_seconds() / 60.0,
                "min_duration_minutes": criteria.min_duration.total_seconds() / 60.0,
                "lookback_days": lookback_days,
            },
        }
