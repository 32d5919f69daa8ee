# src/tabwise/domain/research_session.py
"""
Research session domain model.

A research session is a burst of related tabs opened close together in time.
Sessions start as ``detected``; the user may save, restore (repeatedly) or
dismiss them. Dismissal is final.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from tabwise.domain.browsing import iso


class SessionStatus(str, Enum):
    DETECTED = "detected"
    SAVED = "saved"
    RESTORED = "restored"
    DISMISSED = "dismissed"


class InvalidSessionTransition(ValueError):
    """Raised when a status change is not allowed from the current status."""


_ALLOWED_TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
    SessionStatus.DETECTED: frozenset(
        {SessionStatus.SAVED, SessionStatus.RESTORED, SessionStatus.DISMISSED}
    ),
    SessionStatus.SAVED: frozenset({SessionStatus.RESTORED, SessionStatus.DISMISSED}),
    SessionStatus.RESTORED: frozenset(
        {SessionStatus.SAVED, SessionStatus.RESTORED, SessionStatus.DISMISSED}
    ),
    SessionStatus.DISMISSED: frozenset(),
}


def check_transition(current: SessionStatus, target: SessionStatus) -> None:
    if target not in _ALLOWED_TRANSITIONS[current]:
        raise InvalidSessionTransition(
            f"Cannot move research session from '{current.value}' to '{target.value}'"
        )


@dataclass
class ResearchSession:
    session_start: datetime
    session_end: datetime
    page_visit_ids: List[str]
    primary_domain: str
    domains: List[str] = field(default_factory=list)
    topics: List[str] = field(default_factory=list)
    session_name: str = ""
    total_duration_seconds: int = 0
    avg_engagement_rate: float = 0.0
    status: SessionStatus = SessionStatus.DETECTED
    id: Optional[int] = None
    saved_at: Optional[datetime] = None
    last_restored_at: Optional[datetime] = None
    restore_count: int = 0

    @property
    def tab_count(self) -> int:
        return len(self.page_visit_ids)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_name": self.session_name,
            "session_start": iso(self.session_start),
            "session_end": iso(self.session_end),
            "tab_count": self.tab_count,
            "page_visit_ids": list(self.page_visit_ids),
            "primary_domain": self.primary_domain,
            "domains": list(self.domains),
            "topics": list(self.topics),
            "total_duration_seconds": self.total_duration_seconds,
            "avg_engagement_rate": self.avg_engagement_rate,
            "status": self.status.value,
            "saved_at": iso(self.saved_at),
            "last_restored_at": iso(self.last_restored_at),
            "restore_count": self.restore_count,
        }
