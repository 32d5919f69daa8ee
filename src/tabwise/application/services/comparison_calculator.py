# src/tabwise/application/services/comparison_calculator.py
"""
Period-over-period comparison of serial opener results.

Works on the serialized candidate dicts so the previous period can come from
a fresh detection run or a stored report.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

SIGNIFICANT_CHANGE_PERCENT = 20.0

BEHAVIOR_SEVERITY = {
    "compulsive_checking": 4,
    "frequent_monitoring": 3,
    "regular_reference": 2,
    "periodic_revisit": 1,
}


def percent_change(current: float, previous: float) -> float:
    if current == 0 and previous == 0:
        return 0.0
    if previous == 0:
        return 100.0
    if current == 0:
        return -100.0
    return round((current - previous) / previous * 100.0, 1)


def trend(current: float, previous: float) -> str:
    percent = percent_change(current, previous)
    if percent > SIGNIFICANT_CHANGE_PERCENT:
        return "increasing"
    if percent < -SIGNIFICANT_CHANGE_PERCENT:
        return "decreasing"
    return "stable"


def _severity(behavior_type: Any) -> int:
    return BEHAVIOR_SEVERITY.get(str(behavior_type or ""), 0)


def _direction(before: Any, after: Any) -> str:
    a, b = _severity(before), _severity(after)
    if b > a:
        return "worsened"
    if b < a:
        return "improved"
    return "unchanged"


def _metric(current: float, previous: float) -> Dict[str, Any]:
    return {
        "current": current,
        "previous": previous,
        "change": current - previous,
        "percent_change": percent_change(current, previous),
        "trend": trend(current, previous),
    }


def _key(opener: Dict[str, Any]) -> str:
    return opener.get("normalized_url") or opener.get("url") or ""


class ComparisonCalculator:
    def calculate(
        self,
        current: Sequence[Dict[str, Any]],
        previous: Sequence[Dict[str, Any]],
    ) -> Dict[str, Any]:
        current_map = {_key(o): o for o in current}
        previous_map = {_key(o): o for o in previous}

        overall = {
            "total_serial_openers": _metric(len(current), len(previous)),
            "total_visits": _metric(
                sum(o.get("visit_count", 0) for o in current),
                sum(o.get("visit_count", 0) for o in previous),
            ),
            "total_engagement_seconds": _metric(
                sum(o.get("total_engagement_seconds", 0) for o in current),
                sum(o.get("total_engagement_seconds", 0) for o in previous),
            ),
        }
        changes = self._behavioral_changes(current_map, previous_map)
        return {
            "overall": overall,
            "by_resource": self._resource_comparisons(current_map, previous_map),
            "behavioral_changes": changes,
            "summary": self._summary(overall, changes),
        }

    @staticmethod
    def _resource_comparisons(
        current_map: Dict[str, Dict[str, Any]], previous_map: Dict[str, Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        rows: List[Dict[str, Any]] = []
        for url in list(dict.fromkeys(list(current_map) + list(previous_map))):
            cur, prev = current_map.get(url), previous_map.get(url)
            if cur and prev:
                rows.append(
                    {
                        "url": url,
                        "title": cur.get("title"),
                        "domain": cur.get("domain"),
                        "status": "continued",
                        "visit_count_change": cur["visit_count"] - prev["visit_count"],
                        "visit_count_percent_change": percent_change(
                            cur["visit_count"], prev["visit_count"]
                        ),
                        "engagement_change": cur.get("total_engagement_seconds", 0)
                        - prev.get("total_engagement_seconds", 0),
                        "behavior_type_current": cur.get("behavior_type"),
                        "behavior_type_previous": prev.get("behavior_type"),
                        "behavior_changed": cur.get("behavior_type") != prev.get("behavior_type"),
                    }
                )
            elif cur:
                rows.append(
                    {
                        "url": url,
                        "title": cur.get("title"),
                        "domain": cur.get("domain"),
                        "status": "new",
                        "visit_count": cur["visit_count"],
                        "visit_count_change": cur["visit_count"],
                        "behavior_type": cur.get("behavior_type"),
                        "insight": "New pattern emerged this period",
                    }
                )
            else:
                rows.append(
                    {
                        "url": url,
                        "title": prev.get("title"),
                        "domain": prev.get("domain"),
                        "status": "resolved",
                        "previous_visit_count": prev["visit_count"],
                        "visit_count_change": -prev["visit_count"],
                        "insight": "No longer a serial opener, pattern improved",
                    }
                )
        return sorted(rows, key=lambda r: -abs(r["visit_count_change"]))

    @staticmethod
    def _behavioral_changes(
        current_map: Dict[str, Dict[str, Any]], previous_map: Dict[str, Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        changes = []
        for url, cur in current_map.items():
            prev = previous_map.get(url)
            if not prev or cur.get("behavior_type") == prev.get("behavior_type"):
                continue
            changes.append(
                {
                    "url": url,
                    "title": cur.get("title"),
                    "domain": cur.get("domain"),
                    "from": prev.get("behavior_type"),
                    "to": cur.get("behavior_type"),
                    "direction": _direction(prev.get("behavior_type"), cur.get("behavior_type")),
                    "visit_count_change": cur["visit_count"] - prev["visit_count"],
                }
            )
        return sorted(changes, key=lambda c: -_severity(c["to"]))

    @staticmethod
    def _summary(overall: Dict[str, Any], changes: List[Dict[str, Any]]) -> str:
        visits = overall["total_visits"]
        pct = round(abs(visits["percent_change"]))
        if visits["trend"] == "increasing":
            messages = [f"Serial opener activity increased by {pct}%"]
        elif visits["trend"] == "decreasing":
            messages = [f"Serial opener activity decreased by {pct}%"]
        else:
            messages = ["Serial opener activity remained stable"]

        worsened = sum(1 for c in changes if c["direction"] == "worsened")
        improved = sum(1 for c in changes if c["direction"] == "improved")
        if worsened:
            messages.append(f"{worsened} resources worsened")
        if improved:
            messages.append(f"{improved} resources improved")
        return ". ".join(messages)
