# src/tabwise/application/services/insight_generator.py
"""
Rule-based insights for serial openers.

Derives frequency metrics, classifies behavior and engagement, infers the
purpose of the resource from a domain table, and renders the behavioral
insight and suggestion from templates keyed by (behavior, purpose).
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from tabwise.application.services.adaptive_threshold_calculator import (
    AdaptiveThresholdCalculator,
)
from tabwise.application.services.domain_context_analyzer import matches_domain
from tabwise.domain.browsing import PageVisit
from tabwise.domain.serial_opener import SerialOpenerCandidate, SerialOpenerInsights

logger = logging.getLogger(__name__)

OPEN_CLOSE_OVERHEAD_SECONDS = 5.0
GENERIC_INSIGHT = "You visit this resource {visit_count} times."
GENERIC_SUGGESTION = "Consider using notifications or bookmarks to reduce reopening overhead."


@dataclass(frozen=True)
class PurposeRule:
    domain: str
    purpose: str
    # (title regex, refined purpose), checked in order
    keywords: Tuple[Tuple[str, str], ...] = ()


DEFAULT_PURPOSE_RULES: Tuple[PurposeRule, ...] = (
    PurposeRule(
        "notion.so",
        "documentation",
        (
            ("issue|tracker|ticket", "task_tracking"),
            ("meeting|notes", "note_taking"),
            ("doc|documentation", "reference"),
        ),
    ),
    PurposeRule("notion.site", "documentation"),
    PurposeRule(
        "github.com",
        "code_development",
        (
            ("pull|pr", "code_review"),
            ("issues", "issue_tracking"),
            ("repositories|repos", "repo_browsing"),
        ),
    ),
    PurposeRule("mail.google.com", "email"),
    PurposeRule("gmail.com", "email"),
    PurposeRule("x.com", "social_media"),
    PurposeRule("twitter.com", "social_media"),
    PurposeRule("linkedin.com", "social_media"),
    PurposeRule("facebook.com", "social_media"),
    PurposeRule("youtube.com", "video_content"),
    PurposeRule("slack.com", "communication"),
    PurposeRule("discord.com", "communication"),
)

_CATEGORY_PREFIXES = (("work_", "work"), ("learning_", "learning"), ("entertainment_", "entertainment"))
_CATEGORY_EXACT = ("social_media", "news", "shopping", "reference")


DEFAULT_INSIGHT_TEMPLATES: Dict[str, Dict[str, str]] = {
    "compulsive_checking": {
        "task_tracking": (
            "You're checking this task tracker {visits_per_day} times per day, spending only "
            "{avg_seconds}s each time. This suggests anxious waiting for updates rather than active work."
        ),
        "email": (
            "You check your email {visits_per_day} times per day with {avg_seconds}s per visit. "
            "This constant inbox checking is disrupting your focus."
        ),
        "social_media": (
            "Checking {domain} {visits_per_day} times per day indicates compulsive behavior. "
            "This is fragmenting your attention."
        ),
        "code_review": (
            "You've checked this PR {visit_count} times ({visits_per_day}/day). "
            "You're likely waiting on reviews or CI results."
        ),
        "communication": (
            "You check {domain} {visits_per_day} times per day. "
            "Enable notifications instead of constant manual checking."
        ),
        "default": (
            "You check this {visits_per_day} times per day, spending only {avg_seconds}s each time. "
            "This frequent checking pattern is inefficient."
        ),
    },
    "frequent_monitoring": {
        "task_tracking": "You check this task tracker {visits_per_day} times per day for quick status updates.",
        "code_review": "You monitor this PR frequently ({visits_per_day}/day) for updates.",
        "default": "You check this {visits_per_day} times per day for monitoring purposes.",
    },
    "regular_reference": {
        "documentation": "You reference this {visits_per_day} times per day. Consider pinning or bookmarking.",
        "default": "You come back to this regularly ({visits_per_day} times per day).",
    },
    "periodic_revisit": {
        "default": "You revisit this occasionally ({visit_count} times total).",
    },
}

DEFAULT_SUGGESTION_TEMPLATES: Dict[str, str] = {
    "task_tracking": (
        "Enable notifications for task updates. "
        "Stop manually checking every {avg_hours_between} hours."
    ),
    "email": (
        "Turn on desktop notifications and schedule specific email check times "
        "instead of checking {visits_per_day} times per day."
    ),
    "social_media": (
        "Set specific times to check social media. Consider app blockers during focus hours."
    ),
    "code_review": (
        "Enable email or chat notifications for PR reviews, comments and CI status."
    ),
    "communication": "Enable desktop notifications for {domain}. Stop the constant manual checking.",
    "documentation": "Pin this tab or add it to the bookmarks bar. {visit_count} reopenings is inefficient.",
    "video_content": "Add this to a Watch Later playlist instead of reopening it {visit_count} times.",
    "default": "Consider bookmarking this instead of reopening it {visit_count} times.",
}


@dataclass(frozen=True)
class RenderedText:
    text: str
    template_id: str
    used_fallback: bool = False


def _lookup(table: Mapping[str, Any], path: Sequence[str]) -> Optional[str]:
    node: Any = table
    for key in path:
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    return node if isinstance(node, str) else None


def render_template(
    table: Mapping[str, Any],
    paths: Sequence[Sequence[str]],
    variables: Mapping[str, Any],
    fallback: str,
) -> RenderedText:
    """
    Render the first template found along ``paths``.

    A missing template or a missing/None variable moves on to the next path;
    when every path fails the ``fallback`` sentence is used. Never raises.
    """
    values = {k: v for k, v in variables.items() if v is not None}
    for path in paths:
        template = _lookup(table, path)
        if template is None:
            continue
        try:
            return RenderedText(
                text=template.format_map(values),
                template_id=".".join(path),
                used_fallback=False,
            )
        except (KeyError, IndexError, ValueError) as e:
            logger.warning(f"Template {'.'.join(path)} could not be rendered: {e!r}")

    try:
        text = fallback.format_map(values)
    except (KeyError, IndexError, ValueError):
        text = fallback
    return RenderedText(text=text, template_id="generic", used_fallback=True)


def classify_time_pattern(peak_hours: Sequence[int]) -> str:
    if not peak_hours:
        return "unknown"
    if all(9 <= h <= 17 for h in peak_hours):
        return "work_hours"
    if any(h >= 22 or h <= 6 for h in peak_hours):
        return "late_night"
    if any(6 <= h <= 9 for h in peak_hours):
        return "early_morning"
    if any(17 <= h <= 22 for h in peak_hours):
        return "evening"
    return "mixed"


def time_patterns(visits: Sequence[PageVisit]) -> Dict[str, Any]:
    ordered = sorted(visits, key=lambda v: (v.visited_at, v.id))
    by_hour = Counter(v.visited_at.hour for v in ordered)
    peak_hours = [hour for hour, _ in sorted(by_hour.items(), key=lambda kv: (-kv[1], kv[0]))[:3]]
    by_day = Counter(v.visited_at.strftime("%A") for v in ordered)
    most_active_day = by_day.most_common(1)[0][0] if by_day else None
    return {
        "peak_hours": peak_hours,
        "most_active_day": most_active_day,
        "time_pattern": classify_time_pattern(peak_hours),
    }


@dataclass(frozen=True)
class InsightTemplates:
    insights: Dict[str, Dict[str, str]] = field(default_factory=lambda: DEFAULT_INSIGHT_TEMPLATES)
    suggestions: Dict[str, str] = field(default_factory=lambda: DEFAULT_SUGGESTION_TEMPLATES)


class InsightGenerator:
    def __init__(
        self,
        calculator: AdaptiveThresholdCalculator,
        *,
        templates: Optional[InsightTemplates] = None,
        purpose_rules: Sequence[PurposeRule] = DEFAULT_PURPOSE_RULES,
    ):
        self.calculator = calculator
        self.templates = templates or InsightTemplates()
        self.purpose_rules = tuple(purpose_rules)

    def infer_purpose(self, domain: str, title: str, category: Optional[str]) -> str:
        domain = (domain or "").lower()
        rule = next((r for r in self.purpose_rules if r.domain == domain), None)
        if rule is None:
            rule = next((r for r in self.purpose_rules if matches_domain(domain, r.domain)), None)
        if rule is not None:
            for pattern, purpose in rule.keywords:
                if title and re.search(pattern, title, re.IGNORECASE):
                    return purpose
            return rule.purpose
        return self._category_purpose(category)

    @staticmethod
    def _category_purpose(category: Optional[str]) -> str:
        value = category or ""
        for prefix, purpose in _CATEGORY_PREFIXES:
            if value.startswith(prefix):
                return purpose
        if value in _CATEGORY_EXACT:
            return value
        return "unknown"

    def generate(
        self,
        candidate: SerialOpenerCandidate,
        visits: Optional[Sequence[PageVisit]] = None,
    ) -> SerialOpenerCandidate:
        visit_count = candidate.visit_count
        span_hours = max(
            0.0, (candidate.last_visit_at - candidate.first_visit_at).total_seconds() / 3600.0
        )
        avg_hours_between: Optional[float] = None
        if visit_count > 1 and span_hours > 0:
            avg_hours_between = span_hours / (visit_count - 1)
        visits_per_day = visit_count / self.calculator.days_in_period

        behavior_type = self.calculator.classify_behavior_by_frequency(avg_hours_between)
        engagement_type = self.calculator.classify_engagement_type(candidate.avg_engagement_per_visit)
        purpose = self.infer_purpose(candidate.domain, candidate.title, candidate.category)

        total = float(candidate.total_engagement_seconds)
        denominator = total + visit_count * OPEN_CLOSE_OVERHEAD_SECONDS
        efficiency = (total / denominator * 100.0) if denominator > 0 else 0.0

        variables = {
            "visits_per_day": round(visits_per_day, 1),
            "avg_seconds": round(candidate.avg_engagement_per_visit, 1),
            "visit_count": visit_count,
            "domain": candidate.domain,
            "avg_hours_between": round(avg_hours_between, 2) if avg_hours_between is not None else None,
        }
        insight = render_template(
            self.templates.insights,
            [(behavior_type, purpose), (behavior_type, "default")],
            variables,
            GENERIC_INSIGHT,
        )
        suggestion = render_template(
            self.templates.suggestions,
            [(purpose,), ("default",)],
            variables,
            GENERIC_SUGGESTION,
        )

        patterns: Dict[str, Any] = time_patterns(visits) if visits else {}
        insights = SerialOpenerInsights(
            time_span_hours=round(span_hours, 1),
            avg_hours_between_visits=round(avg_hours_between, 2) if avg_hours_between is not None else None,
            visits_per_day=round(visits_per_day, 1),
            behavior_type=behavior_type,
            engagement_type=engagement_type,
            inferred_purpose=purpose,
            efficiency_score=round(efficiency, 1),
            behavioral_insight=insight.text,
            actionable_suggestion=suggestion.text,
            peak_hours=patterns.get("peak_hours"),
            most_active_day=patterns.get("most_active_day"),
            time_pattern=patterns.get("time_pattern"),
        )
        return replace(candidate, insights=insights)
