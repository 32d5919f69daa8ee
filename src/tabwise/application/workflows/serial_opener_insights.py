# src/tabwise/application/workflows/serial_opener_insights.py
"""
Serial opener insights workflow.

Resolves the analysis period, detects serial openers with period-adapted
thresholds, enriches each one with insights from its member visits and,
on request, compares against the previous period of the same length.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from tabwise.application.ports.event_store_port import EventStorePort
from tabwise.application.services.adaptive_threshold_calculator import (
    AdaptiveThresholdCalculator,
)
from tabwise.application.services.comparison_calculator import ComparisonCalculator
from tabwise.application.services.date_range import (
    DateLike,
    DateRange,
    parse_date_range,
    previous_period_range,
)
from tabwise.application.services.detection_config import DetectionConfig
from tabwise.application.services.insight_generator import InsightGenerator
from tabwise.application.services.serial_opener_detector import SerialOpenerDetector
from tabwise.domain.browsing import PageVisit
from tabwise.domain.serial_opener import SerialOpenerCandidate

logger = logging.getLogger(__name__)

MEMBER_VISIT_LIMIT = 1000


class SerialOpenerInsightsWorkflow:
    def __init__(
        self,
        store: EventStorePort,
        *,
        config: Optional[DetectionConfig] = None,
        comparison: Optional[ComparisonCalculator] = None,
    ):
        self.store = store
        self.config = config or DetectionConfig()
        self.comparison = comparison or ComparisonCalculator()

    def run(
        self,
        user_id: str,
        *,
        now: datetime,
        period: Optional[str] = None,
        start_date: DateLike = None,
        end_date: DateLike = None,
        include_comparison: bool = False,
    ) -> Dict[str, Any]:
        date_range = parse_date_range(
            now=now, period=period, start_date=start_date, end_date=end_date
        )
        calculator = AdaptiveThresholdCalculator(
            date_range.days, thresholds=self.config.thresholds
        )
        openers = self._detect(user_id, date_range, calculator, with_members=True)
        serialized = [o.to_dict() for o in openers]

        data: Dict[str, Any] = {
            "period": date_range.period,
            "date_range": date_range.to_dict(),
            "serial_openers": serialized,
            "count": len(serialized),
            "criteria": {
                "min_visits_per_day": calculator.min_visits_per_day_threshold,
                "effective_min_visits": calculator.effective_min_visits,
                "min_visits": calculator.min_serial_opener_visits,
                "max_total_engagement_seconds": calculator.max_serial_opener_engagement_seconds,
            },
        }

        if include_comparison:
            comparison = self._compare(user_id, date_range, calculator, serialized)
            if comparison is not None:
                data["comparison"] = comparison
        return data

    def _detect(
        self,
        user_id: str,
        date_range: DateRange,
        calculator: AdaptiveThresholdCalculator,
        *,
        with_members: bool,
    ) -> List[SerialOpenerCandidate]:
        detector = SerialOpenerDetector(self.store, calculator)
        generator = InsightGenerator(calculator)
        candidates = detector.detect(user_id, start=date_range.start, end=date_range.end)

        enriched = []
        for candidate in candidates:
            members = self._member_visits(user_id, candidate) if with_members else None
            enriched.append(generator.generate(candidate, members))
        return enriched

    def _member_visits(
        self, user_id: str, candidate: SerialOpenerCandidate
    ) -> List[PageVisit]:
        # member ids are oldest first; keep the most recent ones
        member_ids = candidate.member_visit_ids[-MEMBER_VISIT_LIMIT:]
        return self.store.list_visits_by_ids(user_id, member_ids, limit=MEMBER_VISIT_LIMIT)

    def _compare(
        self,
        user_id: str,
        date_range: DateRange,
        calculator: AdaptiveThresholdCalculator,
        current: List[Dict[str, Any]],
    ) -> Optional[Dict[str, Any]]:
        previous_range = previous_period_range(date_range)
        try:
            previous = self._detect(user_id, previous_range, calculator, with_members=False)
            comparison = self.comparison.calculate(current, [o.to_dict() for o in previous])
        except Exception:
            logger.exception(f"Serial opener comparison failed for user={user_id}")
            return None

        comparison["previous_period"] = {
            "period": previous_range.period,
            "date_range": previous_range.to_dict(),
        }
        return comparison
