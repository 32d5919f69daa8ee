# src/tabwise/application/ports/event_store_port.py
"""
Event store port interface.

Read-only access to a user's browsing telemetry. Detectors depend on this
protocol only; the SQLAlchemy store is one implementation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Protocol, Set, runtime_checkable

from tabwise.domain.browsing import PageVisit


@runtime_checkable
class EventStorePort(Protocol):
    def list_visits(
        self,
        user_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        domain: Optional[str] = None,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[PageVisit]:
        """
        Return visits ordered by ``visited_at`` ascending.

        Args:
            user_id: Owner of the visits
            start: Inclusive lower bound on ``visited_at``
            end: Inclusive upper bound on ``visited_at``
            domain: Restrict to one domain
            exclude_ids: Visit ids to leave out
        """
        ...

    def list_visits_by_ids(
        self,
        user_id: str,
        visit_ids: Iterable[str],
        *,
        limit: int = 1000,
    ) -> List[PageVisit]:
        """Return at most ``limit`` of the given visits, most recent kept, oldest first."""
        ...

    def closed_visit_ids(self, user_id: str) -> Set[str]:
        """Ids of visits with a non-null tab closure time."""
        ...

    def reading_list_visit_ids(self, user_id: str) -> Set[str]:
        ...

    def reading_list_urls(self, user_id: str) -> Set[str]:
        """Canonical URLs of reading-list items."""
        ...

    def session_visit_ids(self, user_id: str) -> Set[str]:
        """Ids of visits already attached to a persisted research session."""
        ...
