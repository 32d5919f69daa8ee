# src/tabwise/application/services/adaptive_threshold_calculator.py
"""
Period-adaptive thresholds for serial-opener detection.

Visit thresholds are expressed per day and scaled to the analysis period,
so a "today" window and a "month" window classify the same habit the same
way. Also owns the behavior and engagement classification bands.
"""

from __future__ import annotations

import math
from typing import Optional

from tabwise.application.services.detection_config import SerialOpenerThresholds

BASE_PERIOD_DAYS = 7.0

# Visits per week at which each behavior starts
COMPULSIVE_VISITS_PER_WEEK = 50
FREQUENT_VISITS_PER_WEEK = 20
REGULAR_VISITS_PER_WEEK = 10

# Average hours between visits
COMPULSIVE_HOURS_BETWEEN = 0.5
FREQUENT_HOURS_BETWEEN = 2.0
REGULAR_HOURS_BETWEEN = 8.0

# Average seconds per visit
QUICK_GLANCE_SECONDS = 5
BRIEF_CHECK_SECONDS = 15
SCAN_SECONDS = 60


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class AdaptiveThresholdCalculator:
    def __init__(
        self,
        days_in_period: float,
        *,
        thresholds: Optional[SerialOpenerThresholds] = None,
    ):
        self.thresholds = thresholds or SerialOpenerThresholds()
        self.days_in_period = float(days_in_period)
        if self.days_in_period <= 0:
            raise ValueError("days_in_period must be positive")
        if self.days_in_period < self.thresholds.min_period_days:
            raise ValueError(
                f"days_in_period must be at least {self.thresholds.min_period_days} days "
                f"(got {self.days_in_period})"
            )
        self._scale = self.days_in_period / BASE_PERIOD_DAYS

    @property
    def min_visits_per_day_threshold(self) -> float:
        return self.thresholds.min_visits_per_day

    @property
    def effective_min_visits(self) -> int:
        return round_half_up(self.thresholds.min_visits_per_day * self.days_in_period)

    @property
    def min_serial_opener_visits(self) -> int:
        """Minimum visits used for detection, never below the absolute floor."""
        return max(self.effective_min_visits, self.thresholds.absolute_min_visits)

    @property
    def max_serial_opener_engagement_seconds(self) -> int:
        return self.thresholds.max_total_engagement_seconds

    def qualifies_as_serial_opener(self, visit_count: int, days: Optional[float] = None) -> bool:
        if visit_count < 0:
            raise ValueError("visit_count must be non-negative")
        period = self.days_in_period if days is None else float(days)
        if period <= 0:
            raise ValueError("days must be positive")
        return visit_count / period >= self.thresholds.min_visits_per_day

    def min_visits_for_behavior(self, behavior: str) -> int:
        bases = {
            "compulsive": COMPULSIVE_VISITS_PER_WEEK,
            "frequent": FREQUENT_VISITS_PER_WEEK,
            "regular": REGULAR_VISITS_PER_WEEK,
        }
        if behavior not in bases:
            raise ValueError(f"Unknown behavior type: {behavior}")
        return round_half_up(bases[behavior] * self._scale)

    def classify_behavior_by_visits(self, visit_count: int) -> str:
        if visit_count >= self.min_visits_for_behavior("compulsive"):
            return "compulsive_checking"
        if visit_count >= self.min_visits_for_behavior("frequent"):
            return "frequent_monitoring"
        if visit_count >= self.min_visits_for_behavior("regular"):
            return "regular_reference"
        return "periodic_revisit"

    @staticmethod
    def classify_behavior_by_frequency(avg_hours_between: Optional[float]) -> str:
        if avg_hours_between is None:
            return "periodic_revisit"
        if avg_hours_between < 0:
            raise ValueError("avg_hours_between must be non-negative")
        if avg_hours_between < COMPULSIVE_HOURS_BETWEEN:
            return "compulsive_checking"
        if avg_hours_between < FREQUENT_HOURS_BETWEEN:
            return "frequent_monitoring"
        if avg_hours_between < REGULAR_HOURS_BETWEEN:
            return "regular_reference"
        return "periodic_revisit"

    @staticmethod
    def classify_engagement_type(avg_seconds_per_visit: Optional[float]) -> str:
        if avg_seconds_per_visit is None:
            return "quick_glance"
        if avg_seconds_per_visit < 0:
            raise ValueError("avg_seconds_per_visit must be non-negative")
        if avg_seconds_per_visit < QUICK_GLANCE_SECONDS:
            return "quick_glance"
        if avg_seconds_per_visit < BRIEF_CHECK_SECONDS:
            return "brief_check"
        if avg_seconds_per_visit < SCAN_SECONDS:
            return "scan"
        return "shallow_work"
