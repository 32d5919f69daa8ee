# tests/conftest.py
"""
Pytest configuration and fixtures.
Adds src/ to sys.path so `import tabwise` works without installing.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_root = project_root / "src"
if str(src_root) not in sys.path:
    sys.path.insert(0, str(src_root))

from tabwise.domain.browsing import PageVisit  # noqa: E402

NOW = datetime(2025, 10, 21, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_visit():
    """Build PageVisits with sensible defaults; ``days_ago``/``minutes_ago`` are relative to NOW."""
    counter = {"n": 0}

    def _make(url: str = "https://example.com/a", *, days_ago: float = 0.0, minutes_ago: float = 0.0, **kwargs):
        counter["n"] += 1
        kwargs.setdefault("id", f"v{counter['n']}")
        kwargs.setdefault("user_id", "u1")
        kwargs.setdefault("domain", url.split("/")[2].lower() if "://" in url else "")
        kwargs.setdefault("title", "Example page")
        visited_at = kwargs.pop("visited_at", None) or NOW - timedelta(days=days_ago, minutes=minutes_ago)
        return PageVisit(url=url, visited_at=visited_at, **kwargs)

    return _make


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'tabwise.db'}"
