# src/tabwise/domain/hoarder.py
"""
Tab hoarding domain models.

- TabMetadata: per canonical URL aggregate of every visit
- DomainType / DomainContext: domain classification and rule flags
- HoarderScoreResult: explainable point score and verdict
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from tabwise.domain.browsing import PageVisit, iso


@dataclass(frozen=True)
class TabMetadata:
    domain: str
    url: str
    canonical_url: str
    title: str
    tab_age_days: float
    days_since_last_activity: float
    visit_count: int
    is_single_visit: bool
    engagement_rate: float
    first_visited_at: Optional[datetime] = None
    last_visited_at: Optional[datetime] = None
    total_duration_seconds: int = 0
    total_engagement_seconds: int = 0
    is_pinned: bool = False
    is_likely_still_open: bool = False
    most_recent_visit: Optional[PageVisit] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "url": self.url,
            "canonical_url": self.canonical_url,
            "title": self.title,
            "tab_age_days": self.tab_age_days,
            "days_since_last_activity": self.days_since_last_activity,
            "visit_count": self.visit_count,
            "is_single_visit": self.is_single_visit,
            "engagement_rate": self.engagement_rate,
            "first_visited_at": iso(self.first_visited_at),
            "last_visited_at": iso(self.last_visited_at),
            "total_duration_seconds": self.total_duration_seconds,
            "total_engagement_seconds": self.total_engagement_seconds,
            "is_pinned": self.is_pinned,
            "is_likely_still_open": self.is_likely_still_open,
        }


class DomainType(str, Enum):
    DEVELOPMENT = "development"
    EDUCATIONAL = "educational"
    PRODUCTIVITY_TOOL = "productivity_tool"
    CONTENT_SITE = "content_site"
    CODE_PLATFORM = "code_platform"
    DOCUMENTATION = "documentation"
    GENERAL = "general"


@dataclass(frozen=True)
class DomainContext:
    domain_type: DomainType
    is_whitelisted: bool = False
    whitelist_reason: Optional[str] = None
    should_apply_strict_rules: bool = False
    should_apply_lenient_rules: bool = False
    context_notes: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain_type": self.domain_type.value,
            "is_whitelisted": self.is_whitelisted,
            "whitelist_reason": self.whitelist_reason,
            "should_apply_strict_rules": self.should_apply_strict_rules,
            "should_apply_lenient_rules": self.should_apply_lenient_rules,
            "context_notes": self.context_notes,
        }


class ConfidenceLevel(str, Enum):
    EXCLUDED = "excluded"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NOT_HOARDER = "not_hoarder"


@dataclass
class HoarderScoreResult:
    total_score: int
    is_hoarder: bool
    confidence_level: ConfidenceLevel
    score_breakdown: Dict[str, int] = field(default_factory=dict)
    factor_reasons: Dict[str, str] = field(default_factory=dict)
    should_exclude: bool = False
    exclusion_reason: Optional[str] = None
    reason: str = ""

    @classmethod
    def excluded(cls, exclusion_reason: str) -> "HoarderScoreResult":
        return cls(
            total_score=0,
            is_hoarder=False,
            confidence_level=ConfidenceLevel.EXCLUDED,
            should_exclude=True,
            exclusion_reason=exclusion_reason,
            reason=f"Excluded: {exclusion_reason}",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_score": self.total_score,
            "is_hoarder": self.is_hoarder,
            "confidence_level": self.confidence_level.value,
            "score_breakdown": dict(self.score_breakdown),
            "factor_reasons": dict(self.factor_reasons),
            "should_exclude": self.should_exclude,
            "exclusion_reason": self.exclusion_reason,
            "reason": self.reason,
        }
