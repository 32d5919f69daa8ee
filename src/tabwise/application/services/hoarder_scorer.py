# src/tabwise/application/services/hoarder_scorer.py
"""
Hoarder tab scoring.

Additive point model over tab age, inactivity, visit pattern, engagement and
domain context. Tabs that are pinned, whitelisted or under lenient rules are
excluded before any points are counted, so lenient always beats strict.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from tabwise.application.services.detection_config import ScoringPolicy
from tabwise.domain.hoarder import (
    ConfidenceLevel,
    DomainContext,
    DomainType,
    HoarderScoreResult,
    TabMetadata,
)


class HoarderScorer:
    def __init__(self, policy: Optional[ScoringPolicy] = None):
        self.policy = policy or ScoringPolicy()

    @property
    def threshold(self) -> int:
        return self.policy.hoarder_threshold

    def score(self, tab_metadata: TabMetadata, domain_context: DomainContext) -> HoarderScoreResult:
        exclusion = self._exclusion_reason(tab_metadata, domain_context)
        if exclusion:
            return HoarderScoreResult.excluded(exclusion)

        factors: List[Tuple[str, int, str]] = [
            self._tab_age(tab_metadata),
            self._inactivity(tab_metadata),
            self._single_visit(tab_metadata),
            self._engagement(tab_metadata),
            self._domain_context(domain_context),
            self._recency(tab_metadata),
        ]
        breakdown: Dict[str, int] = {name: points for name, points, _ in factors}
        reasons: Dict[str, str] = {name: reason for name, _, reason in factors}

        total = max(0, sum(breakdown.values()))
        is_hoarder = total >= self.policy.hoarder_threshold
        return HoarderScoreResult(
            total_score=total,
            is_hoarder=is_hoarder,
            confidence_level=self.confidence_level(total),
            score_breakdown=breakdown,
            factor_reasons=reasons,
            reason=self._summary(factors) if is_hoarder else "Not a hoarder tab",
        )

    def confidence_level(self, score: int) -> ConfidenceLevel:
        if score >= self.policy.high_confidence_threshold:
            return ConfidenceLevel.HIGH
        if score >= self.policy.hoarder_threshold:
            return ConfidenceLevel.MEDIUM
        if score >= self.policy.low_confidence_threshold:
            return ConfidenceLevel.LOW
        return ConfidenceLevel.NOT_HOARDER

    @staticmethod
    def _exclusion_reason(tab: TabMetadata, context: DomainContext) -> Optional[str]:
        if tab.is_pinned:
            return "pinned_tab"
        if context.is_whitelisted:
            return context.whitelist_reason or "whitelisted"
        if context.should_apply_lenient_rules:
            return "lenient_rules"
        return None

    def _tab_age(self, tab: TabMetadata) -> Tuple[str, int, str]:
        for min_days, points in self.policy.age_bands:
            if tab.tab_age_days >= min_days:
                return "tab_age", points, f"Tab open for {tab.tab_age_days} days"
        return "tab_age", 0, "Tab recently opened (< 1 day)"

    def _inactivity(self, tab: TabMetadata) -> Tuple[str, int, str]:
        for min_days, points in self.policy.inactivity_bands:
            if tab.days_since_last_activity >= min_days:
                return "inactivity", points, f"No activity for {tab.days_since_last_activity} days"
        return "inactivity", 0, "Recent activity (< 1 day)"

    def _single_visit(self, tab: TabMetadata) -> Tuple[str, int, str]:
        if tab.is_single_visit:
            return "single_visit", self.policy.single_visit_points, "Opened once and forgotten"
        return "single_visit", 0, f"{tab.visit_count} visits"

    def _engagement(self, tab: TabMetadata) -> Tuple[str, int, str]:
        percent = round(tab.engagement_rate * 100, 1)
        for upper, points in self.policy.engagement_bands:
            if tab.engagement_rate < upper:
                return "engagement", points, f"Low engagement ({percent}%)"
        return "engagement", 0, f"Engagement: {percent}%"

    def _domain_context(self, context: DomainContext) -> Tuple[str, int, str]:
        if context.should_apply_strict_rules:
            return (
                "domain_context",
                self.policy.strict_bonus,
                f"Hoarder-prone pattern on {context.domain_type.value} domain",
            )
        if context.domain_type == DomainType.CONTENT_SITE:
            return "domain_context", self.policy.content_site_bonus, "Content site, typically read later"
        return "domain_context", 0, f"Domain type: {context.domain_type.value}"

    def _recency(self, tab: TabMetadata) -> Tuple[str, int, str]:
        if tab.days_since_last_activity < self.policy.recency_window_days:
            return "recency", self.policy.recency_penalty, "Visited within the last few hours"
        return "recency", 0, "No recent visit"

    @staticmethod
    def _summary(factors: List[Tuple[str, int, str]]) -> str:
        positive = [f for f in factors if f[1] > 0]
        # stable sort keeps factor order for ties
        top = sorted(positive, key=lambda f: -f[1])[:3]
        return " | ".join(reason for _, _, reason in top)
