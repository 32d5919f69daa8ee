from __future__ import annotations

from datetime import timedelta

import pytest

from tabwise.domain.research_session import InvalidSessionTransition, ResearchSession, SessionStatus
from tabwise.infrastructure.stores.research_session_store import ResearchSessionStore


def _session(now, *, visit_ids=("v1", "v2", "v3"), hours_ago=0):
    start = now - timedelta(hours=hours_ago, minutes=30)
    return ResearchSession(
        session_start=start,
        session_end=start + timedelta(minutes=20),
        page_visit_ids=list(visit_ids),
        primary_domain="docs.python.org",
        domains=["docs.python.org", "stackoverflow.com"],
        topics=["python", "asyncio"],
        session_name="Docs - Oct 21, 11:30AM",
        total_duration_seconds=1200,
        avg_engagement_rate=0.42,
    )


@pytest.fixture
def store(db_url):
    s = ResearchSessionStore(db_url=db_url)
    yield s
    s.close()


def test_create_and_get(store, now):
    created = store.create_session(user_id="u1", research_session=_session(now, visit_ids=("v2", "v1", "v2")), now=now)

    assert created.id is not None
    assert created.page_visit_ids == ["v2", "v1"]
    assert created.status is SessionStatus.DETECTED
    assert created.topics == ["python", "asyncio"]

    fetched = store.get_session(user_id="u1", session_id=created.id)
    assert fetched.to_dict() == created.to_dict()
    assert store.get_session(user_id="other", session_id=created.id) is None


def test_create_rejects_empty_session(store, now):
    with pytest.raises(ValueError, match="no tabs"):
        store.create_session(user_id="u1", research_session=_session(now, visit_ids=()))


def test_list_sessions_newest_first_with_status_filter(store, now):
    older = store.create_session(user_id="u1", research_session=_session(now, hours_ago=5))
    newer = store.create_session(user_id="u1", research_session=_session(now, hours_ago=1))
    store.transition(user_id="u1", session_id=older.id, target=SessionStatus.SAVED, now=now)

    assert [s.id for s in store.list_sessions(user_id="u1")] == [newer.id, older.id]
    assert [s.id for s in store.list_sessions(user_id="u1", status=SessionStatus.SAVED)] == [older.id]
    assert store.list_sessions(user_id="other") == []


def test_save_and_restore_bookkeeping(store, now):
    created = store.create_session(user_id="u1", research_session=_session(now))

    saved = store.transition(user_id="u1", session_id=created.id, target=SessionStatus.SAVED, now=now)
    assert saved.status is SessionStatus.SAVED
    assert saved.saved_at == now

    later = now + timedelta(hours=1)
    store.transition(user_id="u1", session_id=created.id, target=SessionStatus.RESTORED, now=now)
    restored = store.transition(user_id="u1", session_id=created.id, target=SessionStatus.RESTORED, now=later)
    assert restored.restore_count == 2
    assert restored.last_restored_at == later


def test_dismissed_is_terminal(store, now):
    created = store.create_session(user_id="u1", research_session=_session(now))
    store.transition(user_id="u1", session_id=created.id, target=SessionStatus.DISMISSED)

    with pytest.raises(InvalidSessionTransition):
        store.transition(user_id="u1", session_id=created.id, target=SessionStatus.RESTORED)
    assert store.get_session(user_id="u1", session_id=created.id).status is SessionStatus.DISMISSED


def test_saved_cannot_be_saved_again(store, now):
    created = store.create_session(user_id="u1", research_session=_session(now))
    store.transition(user_id="u1", session_id=created.id, target=SessionStatus.SAVED)
    with pytest.raises(InvalidSessionTransition, match="'saved' to 'saved'"):
        store.transition(user_id="u1", session_id=created.id, target=SessionStatus.SAVED)


def test_transition_unknown_session(store):
    assert store.transition(user_id="u1", session_id=999, target=SessionStatus.SAVED) is None
