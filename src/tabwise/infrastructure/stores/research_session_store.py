from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from tabwise.domain.research_session import (
    ResearchSession,
    SessionStatus,
    check_transition,
)
from tabwise.infrastructure.stores.browsing_store import as_utc
from tabwise.infrastructure.stores.models import (
    Base,
    ResearchSessionModel,
    ResearchSessionTabModel,
)
from tabwise.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResearchSessionStore:
    """Persist detected research sessions and their save/restore/dismiss lifecycle."""

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            Base.metadata.create_all(self._provider.engine)

    def create_session(
        self, *, user_id: str, research_session: ResearchSession, now: Optional[datetime] = None
    ) -> ResearchSession:
        if not research_session.page_visit_ids:
            raise ValueError("research session has no tabs")

        row = ResearchSessionModel(
            user_id=user_id,
            session_name=(research_session.session_name or "")[:255],
            session_start=as_utc(research_session.session_start),
            session_end=as_utc(research_session.session_end),
            tab_count=research_session.tab_count,
            primary_domain=research_session.primary_domain or "",
            total_duration_seconds=int(research_session.total_duration_seconds or 0),
            avg_engagement_rate=float(research_session.avg_engagement_rate or 0.0),
            status=research_session.status.value,
            created_at=as_utc(now) or _utcnow(),
        )
        row.set_domains(research_session.domains)
        row.set_topics(research_session.topics)
        # dict.fromkeys keeps first occurrence order
        for order, visit_id in enumerate(dict.fromkeys(research_session.page_visit_ids)):
            row.tabs.append(ResearchSessionTabModel(page_visit_id=visit_id, tab_order=order))

        with self._provider.session() as session:
            session.add(row)
            session.commit()
            return self._load(session, row.id)

    def get_session(self, *, user_id: str, session_id: int) -> Optional[ResearchSession]:
        with self._provider.session() as session:
            row = self._load_row(session, session_id)
            if row is None or row.user_id != user_id:
                return None
            return self._to_domain(row)

    def list_sessions(
        self, *, user_id: str, status: Optional[SessionStatus] = None, limit: int = 100
    ) -> List[ResearchSession]:
        stmt = (
            select(ResearchSessionModel)
            .options(selectinload(ResearchSessionModel.tabs))
            .where(ResearchSessionModel.user_id == user_id)
        )
        if status is not None:
            stmt = stmt.where(ResearchSessionModel.status == status.value)
        stmt = stmt.order_by(ResearchSessionModel.session_start.desc()).limit(max(1, int(limit)))
        with self._provider.session() as session:
            return [self._to_domain(row) for row in session.execute(stmt).scalars().all()]

    def transition(
        self,
        *,
        user_id: str,
        session_id: int,
        target: SessionStatus,
        now: Optional[datetime] = None,
    ) -> Optional[ResearchSession]:
        """
        Move a session to ``target``.

        Returns None when the session does not exist for this user. Raises
        InvalidSessionTransition when the move is not allowed.
        """
        now = as_utc(now) or _utcnow()
        with self._provider.session() as session:
            row = self._load_row(session, session_id)
            if row is None or row.user_id != user_id:
                return None

            check_transition(SessionStatus(row.status), target)
            row.status = target.value
            if target == SessionStatus.SAVED:
                row.saved_at = now
            elif target == SessionStatus.RESTORED:
                row.last_restored_at = now
                row.restore_count = int(row.restore_count or 0) + 1
            session.commit()
            return self._load(session, session_id)

    def close(self) -> None:
        try:
            self._provider.engine.dispose()
        except Exception:
            pass

    def _load(self, session, session_id: int) -> ResearchSession:
        return self._to_domain(self._load_row(session, session_id))

    @staticmethod
    def _load_row(session, session_id: int) -> Optional[ResearchSessionModel]:
        stmt = (
            select(ResearchSessionModel)
            .options(selectinload(ResearchSessionModel.tabs))
            .where(ResearchSessionModel.id == int(session_id))
        )
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _to_domain(row: ResearchSessionModel) -> ResearchSession:
        return ResearchSession(
            id=int(row.id),
            session_name=row.session_name or "",
            session_start=as_utc(row.session_start),
            session_end=as_utc(row.session_end),
            page_visit_ids=[tab.page_visit_id for tab in row.tabs],
            primary_domain=row.primary_domain or "",
            domains=row.get_domains(),
            topics=row.get_topics(),
            total_duration_seconds=int(row.total_duration_seconds or 0),
            avg_engagement_rate=float(row.avg_engagement_rate or 0.0),
            status=SessionStatus(row.status),
            saved_at=as_utc(row.saved_at),
            last_restored_at=as_utc(row.last_restored_at),
            restore_count=int(row.restore_count or 0),
        )
