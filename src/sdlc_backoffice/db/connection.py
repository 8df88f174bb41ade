"""
Database engine and session scopes for SDLC Backoffice.

The engine is built once from settings.database_url. PostgreSQL gets a
sized connection pool; SQLite is accepted for local runs and tests.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from sdlc_backoffice.config import settings

logger = logging.getLogger(__name__)


def enable_sqlite_savepoints(sqlite_engine: Engine) -> Engine:
    """
    Let pysqlite run SAVEPOINTs and enforce foreign keys.

    pysqlite defers BEGIN until the first DML statement, which breaks
    Session.begin_nested(). Emitting BEGIN ourselves restores it.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sqlite_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return sqlite_engine


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return enable_sqlite_savepoints(
            create_engine(url, connect_args={"check_same_thread": False})
        )
    # One pool per uvicorn worker
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,
    )


engine = _build_engine(settings.database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False)


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """
    Session scope that commits on success and rolls back on any exception.

    Example:
        >>> with db_session() as db:
        >>>     seed_sample_data(db)
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one session per request.

    Example:
        >>> @router.get("/projects")
        >>> def list_projects(db: Session = Depends(get_db)):
        >>>     return ProjectService(db).list_projects()
    """
    with db_session() as session:
        yield session


def check_connection() -> bool:
    """Return True when the database answers `SELECT 1`."""
    try:
        with db_session() as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database connection failed: {e}")
        return False
