from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tabwise.api import main as api_main
from tabwise.api.routes import research_sessions as sessions_route
from tabwise.infrastructure.stores.research_session_store import ResearchSessionStore
from tabwise.utils.logging_config import Logger


@pytest.fixture
def client(tmp_path: Path, monkeypatch, db_url):
    Logger.close()
    monkeypatch.setenv("TABWISE_LOG_DIR", str(tmp_path / "logs"))
    store = ResearchSessionStore(db_url=db_url)
    monkeypatch.setattr(sessions_route, "_research_session_store", store)
    yield TestClient(api_main.app)
    store.close()
    Logger.close()


def _payload(**overrides):
    body = {
        "page_visit_ids": ["v1", "v2", "v3"],
        "session_start": "2025-10-21T10:00:00Z",
        "session_end": "2025-10-21T10:25:00Z",
        "primary_domain": "docs.python.org",
        "domains": ["docs.python.org"],
        "topics": ["python"],
        "session_name": "Docs - Oct 21, 10:00AM",
        "total_duration_seconds": 1500,
        "avg_engagement_rate": 0.3,
    }
    body.update(overrides)
    return body


def _create(client, **overrides) -> int:
    resp = client.post("/api/research_sessions", params={"user_id": "u1"}, json=_payload(**overrides))
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["id"]


def test_create_and_list(client):
    session_id = _create(client)
    resp = client.get("/api/research_sessions", params={"user_id": "u1"})
    assert resp.status_code == 200
    sessions = resp.json()["data"]
    assert [s["id"] for s in sessions] == [session_id]
    assert sessions[0]["tab_count"] == 3
    assert sessions[0]["status"] == "detected"

    assert client.get("/api/research_sessions", params={"user_id": "u2"}).json()["data"] == []


def test_create_validation(client):
    resp = client.post("/api/research_sessions", params={"user_id": "u1"}, json=_payload(page_visit_ids=[]))
    assert resp.status_code == 422

    resp = client.post(
        "/api/research_sessions",
        params={"user_id": "u1"},
        json=_payload(session_end="2025-10-21T09:00:00Z"),
    )
    assert resp.status_code == 400


def test_lifecycle(client):
    session_id = _create(client)

    saved = client.post(f"/api/research_sessions/{session_id}/save", params={"user_id": "u1"})
    assert saved.status_code == 200
    assert saved.json()["data"]["status"] == "saved"
    assert saved.json()["data"]["saved_at"] is not None

    for expected in (1, 2):
        restored = client.post(f"/api/research_sessions/{session_id}/restore", params={"user_id": "u1"})
        assert restored.status_code == 200
        assert restored.json()["data"]["restore_count"] == expected

    listed = client.get("/api/research_sessions", params={"user_id": "u1", "status": "restored"})
    assert [s["id"] for s in listed.json()["data"]] == [session_id]

    dismissed = client.post(f"/api/research_sessions/{session_id}/dismiss", params={"user_id": "u1"})
    assert dismissed.json()["data"]["status"] == "dismissed"


def test_dismissed_session_conflicts(client):
    session_id = _create(client)
    client.post(f"/api/research_sessions/{session_id}/dismiss", params={"user_id": "u1"})

    resp = client.post(f"/api/research_sessions/{session_id}/restore", params={"user_id": "u1"})
    assert resp.status_code == 409
    assert "dismissed" in resp.json()["detail"]


def test_unknown_or_foreign_session_is_404(client):
    session_id = _create(client)
    assert client.post("/api/research_sessions/999/save", params={"user_id": "u1"}).status_code == 404
    assert client.post(f"/api/research_sessions/{session_id}/save", params={"user_id": "u2"}).status_code == 404


def test_invalid_status_filter(client):
    resp = client.get("/api/research_sessions", params={"user_id": "u1", "status": "archived"})
    assert resp.status_code == 422
