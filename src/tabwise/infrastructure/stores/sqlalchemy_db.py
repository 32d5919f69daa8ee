from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DB_URL = "sqlite:///data/tabwise.db"


def get_db_url() -> str:
    return os.getenv("TABWISE_DB_URL", DEFAULT_DB_URL)


def _ensure_sqlite_dir(db_url: str) -> None:
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return
    database = url.database or ""
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


class SessionProvider:
    """Owns one engine and hands out ORM sessions bound to it."""

    def __init__(self, db_url: Optional[str] = None):
        self.db_url = db_url or get_db_url()
        _ensure_sqlite_dir(self.db_url)

        kwargs = {"future": True}
        url = make_url(self.db_url)
        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if not url.database or url.database == ":memory:":
                # in-memory databases live per connection
                kwargs["poolclass"] = StaticPool

        self.engine: Engine = create_engine(self.db_url, **kwargs)
        self._factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
