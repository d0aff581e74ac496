# storage/engine.py
"""
SQLAlchemy engine and session handling.

SQLite is the default backend (DATABASE_URL). Foreign keys are switched on
for SQLite so timeline entries are removed together with their request.
"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import DATABASE_URL

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_memory(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_database_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    url = url or DATABASE_URL
    kwargs = {}
    if _is_sqlite(url):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory(url):
            # one shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, echo=echo, **kwargs)

    if _is_sqlite(url):
        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()

    logger.info("database engine created for %s", url.split("@")[-1])
    return engine


def init_engine(url: Optional[str] = None, echo: bool = False) -> Engine:
    """(Re)bind the module-level engine and session factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = create_database_engine(url, echo=echo)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        init_engine()
    return _engine


def get_session() -> Session:
    if _SessionFactory is None:
        init_engine()
    return _SessionFactory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on any error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
