from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from tabwise.domain.browsing import iso


@dataclass(frozen=True)
class SerialOpenerInsights:
    time_span_hours: float
    avg_hours_between_visits: Optional[float]
    visits_per_day: float
    behavior_type: str
    engagement_type: str
    inferred_purpose: str
    efficiency_score: float
    behavioral_insight: str
    actionable_suggestion: str
    # Only present when member visits were available.
    peak_hours: Optional[List[int]] = None
    most_active_day: Optional[str] = None
    time_pattern: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "time_span_hours": self.time_span_hours,
            "avg_hours_between_visits": self.avg_hours_between_visits,
            "visits_per_day": self.visits_per_day,
            "behavior_type": self.behavior_type,
            "engagement_type": self.engagement_type,
            "inferred_purpose": self.inferred_purpose,
            "efficiency_score": self.efficiency_score,
            "behavioral_insight": self.behavioral_insight,
            "actionable_suggestion": self.actionable_suggestion,
        }
        if self.time_pattern is not None:
            data["peak_hours"] = list(self.peak_hours or [])
            data["most_active_day"] = self.most_active_day
            data["time_pattern"] = self.time_pattern
        return data


@dataclass(frozen=True)
class SerialOpenerCandidate:
    """A resource reopened many times with little total engagement."""

    normalized_url: str
    url: str
    title: str
    domain: str
    visit_count: int
    total_engagement_seconds: float
    avg_engagement_per_visit: float
    first_visit_at: datetime
    last_visit_at: datetime
    page_visit_id: Optional[str] = None
    category: Optional[str] = None
    engagement_rate: Optional[float] = None
    suggested_action: str = "save_to_reading_list"
    member_visit_ids: List[str] = field(default_factory=list)
    insights: Optional[SerialOpenerInsights] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "page_visit_id": self.page_visit_id,
            "normalized_url": self.normalized_url,
            "url": self.url,
            "title": self.title,
            "domain": self.domain,
            "category": self.category,
            "visit_count": self.visit_count,
            "total_engagement_seconds": self.total_engagement_seconds,
            "avg_engagement_per_visit": self.avg_engagement_per_visit,
            "engagement_rate": self.engagement_rate,
            "first_visit_at": iso(self.first_visit_at),
            "last_visit_at": iso(self.last_visit_at),
            "suggested_action": self.suggested_action,
        }
        if self.insights is not None:
            data.update(self.insights.to_dict())
        return data
