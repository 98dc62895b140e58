"""SQLite engine, schema bootstrap and transactional sessions."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from mealcal.config import get_settings
from mealcal.db.models import Base
from mealcal.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

# Seconds SQLite waits on a locked database before the call fails.
SQLITE_BUSY_TIMEOUT = 15

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _build_engine(db_path: Path) -> Engine:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": SQLITE_BUSY_TIMEOUT},
    )
    Base.metadata.create_all(engine, checkfirst=True)
    logger.debug("Opened calendar database at %s", db_path)
    return engine


def get_engine(database_path: Path | None = None) -> Engine:
    """Return the process-wide engine, creating the schema on first use."""
    global _engine, _session_factory

    if _engine is None:
        _engine = _build_engine(database_path or get_settings().database_path)
        _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    return _engine


def get_session() -> Session:
    if _session_factory is None:
        get_engine()
    assert _session_factory is not None  # for mypy
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Yield a session that commits on success and rolls back on any error.

    Driver and SQL failures surface as :class:`StoreUnavailableError`; any other
    exception raised inside the block propagates unchanged.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Database operation failed: %s", exc)
        raise StoreUnavailableError(str(exc)) from exc
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def reset_repository_state() -> None:
    """Dispose the cached engine so the next call reopens ``database_path``."""

    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "SQLITE_BUSY_TIMEOUT",
    "get_engine",
    "get_session",
    "session_scope",
    "reset_repository_state",
]
