from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import event
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import settings


def _sqlite_connect_args(url: str) -> dict:
    if url.startswith("sqlite:"):
        # timeout is in seconds for sqlite3.connect(); helps transient lock contention.
        return {"check_same_thread": False, "timeout": 30}
    return {}


def build_engine(url: str) -> Engine:
    eng = create_engine(url, connect_args=_sqlite_connect_args(url), pool_pre_ping=True)

    # WAL lets dashboard reads proceed while report intake writes.
    if url.startswith("sqlite:") and ":memory:" not in url:
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
            cur = dbapi_connection.cursor()
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA busy_timeout=30000;")  # ms
            cur.close()

    return eng


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@contextmanager
def session_scope() -> Session:
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
