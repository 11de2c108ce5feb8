"""Database connection and session management for Beekeeper."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from beekeeper.config import get_db_path

from .models import Base

if TYPE_CHECKING:
    from collections.abc import Generator

    from sqlalchemy.engine import Engine


class Database:
    """SQLite run history store.

    Runs finish on the event loop while the API may read from worker
    threads, so connections are not pinned to their creating thread.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        """Initialize the database connection.

        Args:
            db_path: SQLite file, ":memory:" for a throwaway store, or None
                for <hive>/beekeeper.db.
        """
        path = Path(db_path) if db_path is not None else get_db_path()
        connect_args = {"check_same_thread": False}

        if str(path) == ":memory:":
            # One shared connection, otherwise each session sees an empty db
            self._engine: Engine = create_engine(
                "sqlite:///:memory:", connect_args=connect_args, poolclass=StaticPool
            )
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(f"sqlite:///{path}", connect_args=connect_args)

        self._db_path = path
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    @property
    def db_path(self) -> Path:
        """Get the database file path."""
        return self._db_path

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        Base.metadata.create_all(self._engine)

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope.

        Usage:
            with db.session_scope() as session:
                RunRepository(session).create(run)

        Yields:
            A session committed on success, rolled back on exception.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        """Close pooled connections."""
        self._engine.dispose()


def init_database(db_path: Path | str | None = None) -> Database:
    """Open the run history database, creating tables as needed."""
    db = Database(db_path)
    db.create_tables()
    return db
