from __future__ import annotations

from tabwise.application.services.value_ranker import ValueRanker, age_weight, classify_content_type


def test_content_type_classification():
    assert classify_content_type("docs.python.org", "https://docs.python.org/3/") == "documentation"
    assert classify_content_type("example.com", "https://example.com/blog/post-1") == "article"
    assert classify_content_type("github.com", "https://github.com/o/r/pull/1") == "code_review"
    assert classify_content_type("github.com", "https://github.com/o/r/issues/1") == "issue_tracker"
    assert classify_content_type("x.com", "https://x.com/someone") == "social_media"
    assert classify_content_type("www.google.com", "https://www.google.com/search?q=a") == "search_results"
    assert classify_content_type("example.com", "https://example.com/") == "unknown"


def test_age_weight_bands():
    assert [age_weight(d) for d in (0.5, 1, 3, 5, 7)] == [0.5, 0.7, 1.0, 1.3, 1.5]
    assert age_weight(None) == 1.0


def test_rank_orders_by_value_not_raw_score():
    tabs = [
        {"url": "https://x.com/a", "domain": "x.com", "hoarder_score": 90, "tab_age_days": 8},
        {"url": "https://docs.python.org/3/", "domain": "docs.python.org", "hoarder_score": 70, "tab_age_days": 8},
    ]
    ranked = ValueRanker().rank(tabs)

    assert [t["url"] for t in ranked] == ["https://docs.python.org/3/", "https://x.com/a"]
    assert ranked[0]["value_rank"] == 157.5
    assert ranked[1]["value_breakdown"] == {
        "base_score": 90,
        "age_weight": 1.5,
        "content_weight": 0.6,
        "final_value": 81.0,
    }
