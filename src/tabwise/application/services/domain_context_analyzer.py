# src/tabwise/application/services/domain_context_analyzer.py
"""
Domain context analysis for hoarder detection.

Classifies a domain against the DomainCatalog and decides whether the tab
is whitelisted, and whether strict (more likely a hoarder) or lenient
(likely intentional) rules apply.
"""

from __future__ import annotations

import re
from typing import Callable, List, Optional, Sequence, Tuple

from tabwise.application.services.detection_config import DomainCatalog
from tabwise.domain.hoarder import DomainContext, DomainType, TabMetadata
from tabwise.domain.url_identity import url_path

_ACTIVE_WORK_PATTERNS = (
    re.compile(r"/(pull|issues|commits|compare)/"),
    re.compile(r"/projects/\d+/(merge_requests|issues)"),
    re.compile(r"/-/(merge_requests|issues)/"),
)


def matches_domain(domain: str, pattern: str) -> bool:
    if pattern.startswith("."):
        return domain.endswith(pattern)
    if pattern.endswith("."):
        return domain.startswith(pattern)
    return domain == pattern or domain.endswith("." + pattern)


def matches_any(domain: str, patterns: Sequence[str]) -> bool:
    return any(matches_domain(domain, p) for p in patterns)


def looks_like_active_work(url: str) -> bool:
    # trailing slash so ".../pull/12" and ".../issues" still match
    path = url_path(url).rstrip("/") + "/"
    return any(p.search(path) for p in _ACTIVE_WORK_PATTERNS)


class DomainContextAnalyzer:
    def __init__(self, catalog: Optional[DomainCatalog] = None):
        self.catalog = catalog or DomainCatalog()
        # Evaluated top to bottom; first match wins.
        self._classifiers: List[Tuple[DomainType, Callable[[str], bool]]] = [
            (DomainType.DEVELOPMENT, lambda d: matches_any(d, self.catalog.development)),
            (DomainType.EDUCATIONAL, lambda d: matches_any(d, self.catalog.educational)),
            (DomainType.PRODUCTIVITY_TOOL, lambda d: matches_any(d, self.catalog.productivity)),
            (DomainType.CONTENT_SITE, lambda d: matches_any(d, self.catalog.content_sites)),
            (DomainType.CODE_PLATFORM, lambda d: matches_any(d, self.catalog.code_platforms)),
            (DomainType.DOCUMENTATION, lambda d: matches_any(d, self.catalog.documentation)),
        ]

    def classify(self, domain: str) -> DomainType:
        domain = (domain or "").lower()
        for domain_type, predicate in self._classifiers:
            if predicate(domain):
                return domain_type
        return DomainType.GENERAL

    def analyze(
        self,
        *,
        user_id: str,
        domain: str,
        url: str,
        tab_metadata: TabMetadata,
    ) -> DomainContext:
        # user_id is accepted for per-user whitelists; none exist yet.
        domain = (domain or "").lower()
        cat = self.catalog

        is_dev = matches_any(domain, cat.development)
        is_edu = matches_any(domain, cat.educational)
        is_productivity = matches_any(domain, cat.productivity)
        is_content = matches_any(domain, cat.content_sites)
        is_code = matches_any(domain, cat.code_platforms)
        is_docs = matches_any(domain, cat.documentation)

        single = tab_metadata.is_single_visit
        recent = tab_metadata.days_since_last_activity < 1.0
        frequent = tab_metadata.visit_count >= 3
        active_work = is_code and looks_like_active_work(url)
        random_repo = is_code and not active_work and single

        if is_dev:
            is_whitelisted, reason = True, "development_domain"
        elif matches_any(domain, cat.universal_whitelist):
            is_whitelisted, reason = True, "universal_whitelist"
        else:
            is_whitelisted, reason = False, None

        strict = (is_content and single) or (is_docs and single) or random_repo
        lenient = (
            is_dev
            or is_edu
            or (is_productivity and recent)
            or active_work
            or (is_docs and frequent)
        )

        notes: List[str] = []
        if is_dev:
            notes.append("Development/testing environment, never flagged as hoarder")
        if is_edu:
            notes.append("Educational platform, likely active learning material")
        if is_productivity:
            notes.append(
                "Productivity tool with recent activity"
                if recent
                else "Productivity tool with no recent activity, possibly forgotten"
            )
        if is_content and single:
            notes.append("Content site visited once, classic read-later pattern")
        if is_docs:
            notes.append(
                "Frequently revisited documentation, likely a reference"
                if frequent
                else "Rarely revisited documentation, possibly unread"
            )
        if active_work:
            notes.append("Active work (PR/issue), should not be flagged")
        elif random_repo:
            notes.append("Random repository visit, potential hoarder")

        return DomainContext(
            domain_type=self.classify(domain),
            is_whitelisted=is_whitelisted,
            whitelist_reason=reason,
            should_apply_strict_rules=strict,
            should_apply_lenient_rules=lenient,
            context_notes="; ".join(notes),
        )
