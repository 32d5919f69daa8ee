from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class PageVisitModel(Base):
    __tablename__ = "page_visits"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    url: Mapped[str] = mapped_column(Text)
    domain: Mapped[str] = mapped_column(String(255), default="", index=True)
    title: Mapped[str] = mapped_column(Text, default="")
    visited_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, default=0)
    active_duration_seconds: Mapped[int] = mapped_column(Integer, default=0)
    engagement_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    metadata_json: Mapped[str] = mapped_column(Text, default="{}")

    closure = relationship(
        "TabClosureModel", back_populates="page_visit", uselist=False, cascade="all, delete-orphan"
    )

    def set_metadata(self, data: Dict[str, Any]) -> None:
        self.metadata_json = json.dumps(data or {}, ensure_ascii=False)

    def get_metadata(self) -> Dict[str, Any]:
        try:
            return json.loads(self.metadata_json or "{}")
        except Exception:
            return {}


class TabClosureModel(Base):
    __tablename__ = "tab_closures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    page_visit_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("page_visits.id"), unique=True, index=True
    )
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_time_seconds: Mapped[int] = mapped_column(Integer, default=0)
    active_time_seconds: Mapped[int] = mapped_column(Integer, default=0)
    scroll_depth_percent: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    page_visit = relationship("PageVisitModel", back_populates="closure")


class ReadingListItemModel(Base):
    __tablename__ = "reading_list_items"
    __table_args__ = (UniqueConstraint("user_id", "url", name="uq_reading_list_user_url"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    page_visit_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("page_visits.id"), nullable=True, index=True
    )
    url: Mapped[str] = mapped_column(Text)
    title: Mapped[str] = mapped_column(Text, default="")
    status: Mapped[str] = mapped_column(String(32), default="unread")
    added_from: Mapped[str] = mapped_column(String(32), default="manual_save")
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class ResearchSessionModel(Base):
    __tablename__ = "research_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    session_name: Mapped[str] = mapped_column(String(255), default="")
    session_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    session_end: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    tab_count: Mapped[int] = mapped_column(Integer, default=0)
    primary_domain: Mapped[str] = mapped_column(String(255), default="")
    domains_json: Mapped[str] = mapped_column(Text, default="[]")
    topics_json: Mapped[str] = mapped_column(Text, default="[]")
    total_duration_seconds: Mapped[int] = mapped_column(Integer, default=0)
    avg_engagement_rate: Mapped[float] = mapped_column(Float, default=0.0)
    status: Mapped[str] = mapped_column(String(32), default="detected", index=True)
    saved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_restored_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    restore_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    tabs = relationship(
        "ResearchSessionTabModel",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="ResearchSessionTabModel.tab_order",
    )

    def set_domains(self, values: List[str]) -> None:
        self.domains_json = json.dumps(list(values or []), ensure_ascii=False)

    def get_domains(self) -> List[str]:
        try:
            return list(json.loads(self.domains_json or "[]"))
        except Exception:
            return []

    def set_topics(self, values: List[str]) -> None:
        self.topics_json = json.dumps(list(values or []), ensure_ascii=False)

    def get_topics(self) -> List[str]:
        try:
            return list(json.loads(self.topics_json or "[]"))
        except Exception:
            return []


class ResearchSessionTabModel(Base):
    __tablename__ = "research_session_tabs"
    __table_args__ = (
        UniqueConstraint("research_session_id", "page_visit_id", name="uq_session_tab_visit"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    research_session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("research_sessions.id"), index=True
    )
    page_visit_id: Mapped[str] = mapped_column(String(64), index=True)
    tab_order: Mapped[int] = mapped_column(Integer, default=0)

    session = relationship("ResearchSessionModel", back_populates="tabs")
