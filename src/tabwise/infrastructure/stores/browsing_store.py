from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from sqlalchemy import select

from tabwise.domain.browsing import PageVisit, ReadingListItem, TabClosure
from tabwise.domain.url_identity import canonicalize_url
from tabwise.infrastructure.stores.models import (
    Base,
    PageVisitModel,
    ReadingListItemModel,
    ResearchSessionTabModel,
    TabClosureModel,
)
from tabwise.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url

MAX_ID_LOOKUP = 1000


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SqlAlchemyBrowsingStore:
    """Browsing telemetry store: the read side used by detectors plus ingestion helpers."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    # ------------------------------------------------------------------
    # Ingestion side
    # ------------------------------------------------------------------

    def add_visits(self, visits: Iterable[PageVisit]) -> int:
        rows = []
        for visit in visits:
            row = PageVisitModel(
                id=visit.id,
                user_id=visit.user_id,
                url=visit.url,
                domain=(visit.domain or "").lower(),
                title=visit.title or "",
                visited_at=as_utc(visit.visited_at),
                duration_seconds=max(0, int(visit.duration_seconds or 0)),
                active_duration_seconds=max(0, int(visit.active_duration_seconds or 0)),
                engagement_rate=visit.engagement_rate,
                category=visit.category,
            )
            row.set_metadata(visit.metadata)
            rows.append(row)

        with self._provider.session() as session:
            session.add_all(rows)
            session.commit()
        return len(rows)

    def add_closure(self, closure: TabClosure) -> None:
        with self._provider.session() as session:
            row = session.execute(
                select(TabClosureModel).where(TabClosureModel.page_visit_id == closure.page_visit_id)
            ).scalar_one_or_none()
            if row is None:
                row = TabClosureModel(page_visit_id=closure.page_visit_id)
                session.add(row)
            row.closed_at = as_utc(closure.closed_at)
            row.total_time_seconds = int(closure.total_time_seconds or 0)
            row.active_time_seconds = int(closure.active_time_seconds or 0)
            row.scroll_depth_percent = closure.scroll_depth_percent
            session.commit()

    def add_reading_list_item(
        self,
        *,
        user_id: str,
        url: str,
        page_visit_id: Optional[str] = None,
        title: str = "",
        added_from: str = "manual_save",
    ) -> ReadingListItem:
        with self._provider.session() as session:
            row = session.execute(
                select(ReadingListItemModel).where(
                    ReadingListItemModel.user_id == user_id,
                    ReadingListItemModel.url == url,
                )
            ).scalar_one_or_none()
            if row is None:
                row = ReadingListItemModel(
                    user_id=user_id,
                    url=url,
                    page_visit_id=page_visit_id,
                    title=title or "",
                    added_from=added_from,
                    added_at=_utcnow(),
                )
                session.add(row)
                session.commit()
                session.refresh(row)
            return ReadingListItem(
                id=int(row.id),
                user_id=row.user_id,
                url=row.url,
                page_visit_id=row.page_visit_id,
                title=row.title or "",
                status=row.status,
                added_from=row.added_from,
                added_at=as_utc(row.added_at),
            )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def list_visits(
        self,
        user_id: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        domain: Optional[str] = None,
        exclude_ids: Optional[Iterable[str]] = None,
    ) -> List[PageVisit]:
        stmt = select(PageVisitModel).where(PageVisitModel.user_id == user_id)
        if start is not None:
            stmt = stmt.where(PageVisitModel.visited_at >= as_utc(start))
        if end is not None:
            stmt = stmt.where(PageVisitModel.visited_at <= as_utc(end))
        if domain:
            stmt = stmt.where(PageVisitModel.domain == domain.lower())
        stmt = stmt.order_by(PageVisitModel.visited_at.asc(), PageVisitModel.id.asc())

        excluded = set(exclude_ids or ())
        with self._provider.session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_visit(row) for row in rows if row.id not in excluded]

    def list_visits_by_ids(
        self,
        user_id: str,
        visit_ids: Iterable[str],
        *,
        limit: int = MAX_ID_LOOKUP,
    ) -> List[PageVisit]:
        ids = list(dict.fromkeys(visit_ids))
        if not ids:
            return []
        limit = max(1, min(int(limit), MAX_ID_LOOKUP))

        stmt = (
            select(PageVisitModel)
            .where(PageVisitModel.user_id == user_id, PageVisitModel.id.in_(ids))
            .order_by(PageVisitModel.visited_at.desc(), PageVisitModel.id.desc())
            .limit(limit)
        )
        with self._provider.session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_visit(row) for row in reversed(rows)]

    def closed_visit_ids(self, user_id: str) -> Set[str]:
        stmt = (
            select(TabClosureModel.page_visit_id)
            .join(PageVisitModel, PageVisitModel.id == TabClosureModel.page_visit_id)
            .where(PageVisitModel.user_id == user_id, TabClosureModel.closed_at.is_not(None))
        )
        with self._provider.session() as session:
            return set(session.execute(stmt).scalars().all())

    def reading_list_visit_ids(self, user_id: str) -> Set[str]:
        stmt = select(ReadingListItemModel.page_visit_id).where(
            ReadingListItemModel.user_id == user_id,
            ReadingListItemModel.page_visit_id.is_not(None),
        )
        with self._provider.session() as session:
            return set(session.execute(stmt).scalars().all())

    def reading_list_urls(self, user_id: str) -> Set[str]:
        stmt = select(ReadingListItemModel.url).where(ReadingListItemModel.user_id == user_id)
        with self._provider.session() as session:
            return {canonicalize_url(url) for url in session.execute(stmt).scalars().all()}

    def session_visit_ids(self, user_id: str) -> Set[str]:
        stmt = (
            select(ResearchSessionTabModel.page_visit_id)
            .join(PageVisitModel, PageVisitModel.id == ResearchSessionTabModel.page_visit_id)
            .where(PageVisitModel.user_id == user_id)
        )
        with self._provider.session() as session:
            return set(session.execute(stmt).scalars().all())

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

    @staticmethod
    def _to_visit(row: PageVisitModel) -> PageVisit:
        return PageVisit(
            id=row.id,
            user_id=row.user_id,
            url=row.url,
            domain=row.domain or "",
            title=row.title or "",
            visited_at=as_utc(row.visited_at),
            duration_seconds=int(row.duration_seconds or 0),
            active_duration_seconds=int(row.active_duration_seconds or 0),
            engagement_rate=row.engagement_rate,
            category=row.category,
            metadata=row.get_metadata(),
        )
