# src/tabwise/api/routes/pattern_detections.py
"""
Pattern detection API routes.

Provides endpoints for:
- Hoarder tabs (opened to read later, never engaged)
- Serial openers (reopened repeatedly without finishing), with insights
- Research sessions (bursts of related tabs)
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from tabwise.application.services.detection_config import (
    DetectionConfig,
    load_detection_config,
)
from tabwise.application.services.research_session_clusterer import ClusteringCriteria
from tabwise.application.workflows.hoarder_detection import (
    HoarderDetectionWorkflow,
    HoarderFilters,
)
from tabwise.application.workflows.research_session_detection import (
    ResearchSessionDetectionWorkflow,
)
from tabwise.application.workflows.serial_opener_insights import SerialOpenerInsightsWorkflow
from tabwise.infrastructure.stores.browsing_store import SqlAlchemyBrowsingStore
from tabwise.utils.logging_config import LogFiles, Logger, clear_trace_id, set_trace_id

router = APIRouter()

_browsing_store: Optional[SqlAlchemyBrowsingStore] = None
_detection_config: Optional[DetectionConfig] = None


def _get_browsing_store() -> SqlAlchemyBrowsingStore:
    """Lazy initialization of browsing store."""
    global _browsing_store
    if _browsing_store is None:
        _browsing_store = SqlAlchemyBrowsingStore()
    return _browsing_store


def _get_detection_config() -> DetectionConfig:
    global _detection_config
    if _detection_config is None:
        _detection_config = load_detection_config()
    return _detection_config


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DetectionResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]


def _fail(action: str, exc: Exception) -> HTTPException:
    Logger.error(f"{action} failed: {exc!r}", file=LogFiles.ERROR)
    return HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("/pattern_detections/hoarder_tabs", response_model=DetectionResponse)
def hoarder_tabs(
    user_id: str = Query("default", min_length=1, max_length=64),
    lookback_days: int = Query(30, ge=1, le=365),
    min_score: Optional[int] = Query(None, ge=0),
    age_min: Optional[float] = Query(None, ge=0),
    domain: Optional[str] = Query(None, max_length=255),
    exclude_domains: Optional[str] = Query(None, description="Comma-separated domains"),
    limit: int = Query(1000, ge=1, le=1000),
    sort_by: str = Query("value_rank"),
):
    set_trace_id()
    Logger.info(
        f"Hoarder detection request: user={user_id} sort_by={sort_by} lookback={lookback_days}",
        file=LogFiles.DETECTIONS,
    )
    try:
        filters = HoarderFilters(
            min_score=min_score,
            age_min=age_min,
            domain=domain,
            exclude_domains=(exclude_domains or "").split(","),
            limit=limit,
            sort_by=sort_by,
        )
        workflow = HoarderDetectionWorkflow(_get_browsing_store(), config=_get_detection_config())
        data = workflow.run(user_id, now=_utcnow(), filters=filters, lookback_days=lookback_days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise _fail("detect hoarder tabs", e)
    finally:
        clear_trace_id()

    return DetectionResponse(data=data)


@router.get("/pattern_detections/serial_openers", response_model=DetectionResponse)
def serial_openers(
    user_id: str = Query("default", min_length=1, max_length=64),
    period: Optional[str] = Query(None, description="today, week or month"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    include_comparison: bool = Query(False),
):
    set_trace_id()
    Logger.info(
        f"Serial opener request: user={user_id} period={period} "
        f"start={start_date} end={end_date} comparison={include_comparison}",
        file=LogFiles.DETECTIONS,
    )
    try:
        workflow = SerialOpenerInsightsWorkflow(
            _get_browsing_store(), config=_get_detection_config()
        )
        data = workflow.run(
            user_id,
            now=_utcnow(),
            period=period,
            start_date=start_date,
            end_date=end_date,
            include_comparison=include_comparison,
        )
    except ValueError as e:
        Logger.warning(f"Rejected serial opener request: {e}", file=LogFiles.DETECTIONS)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise _fail("detect serial openers", e)
    finally:
        clear_trace_id()

    return DetectionResponse(data=data)


@router.get("/pattern_detections/research_sessions", response_model=DetectionResponse)
def research_sessions(
    user_id: str = Query("default", min_length=1, max_length=64),
    min_tabs: int = Query(5, ge=1, le=100),
    time_window: float = Query(10, gt=0, le=24 * 60, description="Split gap in minutes"),
    min_duration: float = Query(1, ge=0, le=24 * 60, description="Minutes"),
    lookback_days: int = Query(7, ge=1, le=90),
):
    set_trace_id()
    Logger.info(
        f"Research session request: user={user_id} min_tabs={min_tabs} window={time_window}",
        file=LogFiles.RESEARCH_SESSIONS,
    )
    try:
        criteria = ClusteringCriteria(
            min_tabs=min_tabs,
            split_gap=timedelta(minutes=time_window),
            min_duration=timedelta(minutes=min_duration),
        )
        workflow = ResearchSessionDetectionWorkflow(_get_browsing_store())
        data = workflow.run(user_id, now=_utcnow(), criteria=criteria, lookback_days=lookback_days)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise _fail("detect research sessions", e)
    finally:
        clear_trace_id()

    return DetectionResponse(data=data)
