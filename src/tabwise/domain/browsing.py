# src/tabwise/domain/browsing.py
"""
Browsing telemetry records.

These are written by ingestion and only read by the detectors:
- PageVisit: one tab visit to one URL
- TabClosure: closing aggregate for a visit (0..1 per visit)
- ReadingListItem: a visit the user saved for later
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class PageVisit:
    id: str
    user_id: str
    url: str
    visited_at: datetime
    domain: str = ""
    title: str = ""
    duration_seconds: int = 0
    active_duration_seconds: int = 0
    engagement_rate: Optional[float] = None
    category: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_pinned(self) -> bool:
        return bool(self.metadata.get("pinned"))

    @property
    def preview(self) -> Dict[str, Any]:
        preview = self.metadata.get("preview")
        return preview if isinstance(preview, dict) else {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "domain": self.domain,
            "title": self.title,
            "visited_at": iso(self.visited_at),
            "duration_seconds": self.duration_seconds,
            "active_duration_seconds": self.active_duration_seconds,
            "engagement_rate": self.engagement_rate,
            "category": self.category,
        }


@dataclass(frozen=True)
class TabClosure:
    page_visit_id: str
    closed_at: Optional[datetime] = None
    total_time_seconds: int = 0
    active_time_seconds: int = 0
    scroll_depth_percent: Optional[float] = None

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None


@dataclass(frozen=True)
class ReadingListItem:
    id: int
    user_id: str
    url: str
    page_visit_id: Optional[str] = None
    title: str = ""
    status: str = "unread"
    added_from: str = "manual_save"
    added_at: Optional[datetime] = None
