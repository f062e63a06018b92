"""Engine and session management for the template database.

Templates, versions, customizations and usage events share one SQLAlchemy
2.x engine. It is built lazily from ``DB_URL`` (default:
``sqlite:///<project_root>/database.db``), and SQLite connections enforce
foreign keys so the ``ON DELETE`` rules of the schema apply.

Every service operation runs inside one ``get_session()`` block, which is
its transaction.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.engine import URL, Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    """Declarative base of the template schema."""


_engine: Engine | None = None
_SessionLocal: sessionmaker[Session] | None = None


def get_database_url() -> str:
    """``DB_URL`` if set, else a SQLite file at the project root."""
    env_url = os.getenv("DB_URL")
    if env_url:
        return env_url

    db_path = Path(__file__).resolve().parents[3] / "database.db"
    return URL.create("sqlite", database=str(db_path)).render_as_string(hide_password=False)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(get_database_url(), echo=False, future=True)
        if _engine.dialect.name == "sqlite":
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        _create_tables(_engine)
    return _engine


def _create_tables(engine: Engine) -> None:
    # Model modules must be imported so their tables are on Base.metadata.
    from template_studio.data.models import (  # noqa: F401
        collection,
        customization,
        tag,
        template,
        template_version,
        usage_event,
        user,
    )

    Base.metadata.create_all(bind=engine)


def _get_session_factory() -> sessionmaker[Session]:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=_get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )
    return _SessionLocal


def init_db() -> None:
    """Build the engine and create missing tables.

    The first ``get_session()`` does the same; the API lifespan and the
    tests call this to fail fast on a bad ``DB_URL``.
    """
    _get_engine()


def reset_engine() -> None:
    """Dispose the current engine so the next access re-reads DB_URL."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def get_session() -> Iterator[Session]:
    """Transactional scope: commit on exit, roll back and re-raise on error."""
    session = _get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
