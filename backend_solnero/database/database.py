"""
Engine and session management.

Uses DATABASE_URL (PostgreSQL or any SQLAlchemy URL) and falls back to a local
SQLite file. One Database per application; tests build their own against a
temporary file.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from backend_solnero.core.exceptions import PersistenceError
from backend_solnero.database.models import Base
from backend_solnero.solnero_logging import get_logger

logger = get_logger(__name__)


def _redact_url(url: str) -> str:
    """Drop credentials and query string for logging."""
    return url.split("?")[0].split("@")[-1].split("//")[-1]


class Database:
    """SQLAlchemy engine + session factory with commit/rollback scoping."""

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            path = url.replace("sqlite:///", "", 1).split("?")[0]
            if path and path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
        self.engine: Engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True, echo=echo)
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )
        logger.info("database_engine_created", url=_redact_url(url))

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        Base.metadata.create_all(self.engine)
        logger.info("database_tables_ready", tables=sorted(Base.metadata.tables))

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Single unit of work. Commits on success; rolls back and raises PersistenceError on DB errors."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("database_operation_failed", error=str(e), error_type=type(e).__name__)
            raise PersistenceError(f"Database operation failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()
