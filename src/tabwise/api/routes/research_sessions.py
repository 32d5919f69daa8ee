from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from tabwise.domain.research_session import (
    InvalidSessionTransition,
    ResearchSession,
    SessionStatus,
)
from tabwise.infrastructure.stores.research_session_store import ResearchSessionStore
from tabwise.utils.logging_config import LogFiles, Logger, clear_trace_id, set_trace_id

router = APIRouter()

_research_session_store: Optional[ResearchSessionStore] = None


def _get_research_session_store() -> ResearchSessionStore:
    global _research_session_store
    if _research_session_store is None:
        _research_session_store = ResearchSessionStore()
    return _research_session_store


class CreateResearchSessionRequest(BaseModel):
    page_visit_ids: List[str] = Field(..., min_length=1)
    session_start: datetime
    session_end: datetime
    primary_domain: str = ""
    domains: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    session_name: str = Field("", max_length=255)
    total_duration_seconds: int = Field(0, ge=0)
    avg_engagement_rate: float = Field(0.0, ge=0.0, le=1.0)


class ResearchSessionResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class ResearchSessionListResponse(BaseModel):
    success: bool = True
    data: List[Dict[str, Any]]


@router.post("/research_sessions", response_model=ResearchSessionResponse)
def create_research_session(
    req: CreateResearchSessionRequest,
    user_id: str = Query("default", min_length=1, max_length=64),
):
    if req.session_end < req.session_start:
        raise HTTPException(status_code=400, detail="session_end must not be before session_start")

    created = _get_research_session_store().create_session(
        user_id=user_id,
        research_session=ResearchSession(
            session_start=req.session_start,
            session_end=req.session_end,
            page_visit_ids=list(req.page_visit_ids),
            primary_domain=req.primary_domain,
            domains=list(req.domains),
            topics=list(req.topics),
            session_name=req.session_name,
            total_duration_seconds=req.total_duration_seconds,
            avg_engagement_rate=req.avg_engagement_rate,
        ),
    )
    return ResearchSessionResponse(data=created.to_dict())


@router.get("/research_sessions", response_model=ResearchSessionListResponse)
def list_research_sessions(
    user_id: str = Query("default", min_length=1, max_length=64),
    status: Optional[SessionStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
):
    sessions = _get_research_session_store().list_sessions(user_id=user_id, status=status, limit=limit)
    return ResearchSessionListResponse(data=[s.to_dict() for s in sessions])


def _transition(user_id: str, session_id: int, target: SessionStatus) -> ResearchSessionResponse:
    set_trace_id()
    try:
        updated = _get_research_session_store().transition(
            user_id=user_id, session_id=session_id, target=target
        )
    except InvalidSessionTransition as e:
        Logger.warning(f"Rejected transition session={session_id}: {e}", file=LogFiles.RESEARCH_SESSIONS)
        raise HTTPException(status_code=409, detail=str(e))
    finally:
        clear_trace_id()

    if updated is None:
        raise HTTPException(status_code=404, detail="Research session not found")
    return ResearchSessionResponse(data=updated.to_dict())


@router.post("/research_sessions/{session_id}/save", response_model=ResearchSessionResponse)
def save_research_session(session_id: int, user_id: str = Query("default", min_length=1, max_length=64)):
    return _transition(user_id, session_id, SessionStatus.SAVED)


@router.post("/research_sessions/{session_id}/restore", response_model=ResearchSessionResponse)
def restore_research_session(
    session_id: int, user_id: str = Query("default", min_length=1, max_length=64)
):
    return _transition(user_id, session_id, SessionStatus.RESTORED)


@router.post("/research_sessions/{session_id}/dismiss", response_model=ResearchSessionResponse)
def dismiss_research_session(
    session_id: int, user_id: str = Query("default", min_length=1, max_length=64)
):
    return _transition(user_id, session_id, SessionStatus.DISMISSED)
