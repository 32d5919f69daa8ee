from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence

# Older tabs are more likely forgotten
AGE_WEIGHTS = ((7.0, 1.5), (5.0, 1.3), (3.0, 1.0), (1.0, 0.7))
UNDER_A_DAY_WEIGHT = 0.5

CONTENT_TYPE_WEIGHTS: Dict[str, float] = {
    "article": 1.5,
    "documentation": 1.5,
    "code_review": 1.2,
    "issue_tracker": 1.1,
    "search_results": 0.7,
    "social_media": 0.6,
    "news_feed": 0.6,
    "unknown": 1.0,
}

_DOCS_RE = re.compile(r"docs\.|developer\.|api\.")
_ARTICLE_DOMAIN_RE = re.compile(r"medium\.com|dev\.to|substack\.com|blog\.|article")
_ARTICLE_PATH_RE = re.compile(r"/blog/|/article/|/post/|/tutorial/")
_CODE_REVIEW_RE = re.compile(r"/(pull|merge_requests)/")
_SOCIAL = ("twitter.com", "x.com", "facebook.com", "instagram.com", "linkedin.com", "tiktok.com", "reddit.com")
_SEARCH = ("google.com", "bing.com", "duckduckgo.com")
_NEWS = ("news", "hackernews", "nytimes.com", "cnn.com", "bbc.com")


def age_weight(age_days: Optional[float]) -> float:
    if age_days is None:
        return 1.0
    for min_days, weight in AGE_WEIGHTS:
        if age_days >= min_days:
            return weight
    return UNDER_A_DAY_WEIGHT


def classify_content_type(domain: str, url: str) -> str:
    domain = (domain or "").lower()
    url = url or ""
    on_code_host = "github.com" in domain or "gitlab.com" in domain

    if _DOCS_RE.search(domain) or "stackoverflow.com" in domain or "readthedocs.io" in domain:
        return "documentation"
    if _ARTICLE_DOMAIN_RE.search(domain) or _ARTICLE_PATH_RE.search(url):
        return "article"
    if on_code_host and _CODE_REVIEW_RE.search(url):
        return "code_review"
    if on_code_host and "/issues/" in url:
        return "issue_tracker"
    if any(s in domain for s in _SOCIAL):
        return "social_media"
    if any(s in domain for s in _SEARCH) and "mail." not in domain:
        return "search_results"
    if any(s in domain for s in _NEWS):
        return "news_feed"
    return "unknown"


class ValueRanker:
    """Rank hoarder tabs by how valuable they are to get back to, not just by score."""

    def rank(self, tabs: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ranked = []
        for tab in tabs:
            base = tab.get("hoarder_score") or 0
            a_weight = age_weight(tab.get("tab_age_days"))
            c_weight = CONTENT_TYPE_WEIGHTS[classify_content_type(tab.get("domain", ""), tab.get("url", ""))]
            value = round(base * a_weight * c_weight, 2)
            ranked.append(
                {
                    **tab,
                    "value_rank": value,
                    "value_breakdown": {
                        "base_score": base,
                        "age_weight": a_weight,
                        "content_weight": c_weight,
                        "final_value": value,
                    },
                }
            )
        return sorted(ranked, key=lambda t: (-t["value_rank"], t.get("url", "")))
