"""Repository for Beekeeper run history."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select

from .models import Run

if TYPE_CHECKING:
    from sqlalchemy.orm import Session


class RunRepository:
    """Repository for Run records."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self._session = session

    def create(self, run: Run) -> Run:
        """Insert a run record."""
        self._session.add(run)
        self._session.flush()
        return run

    def get_by_id(self, run_id: str) -> Run | None:
        """Get a run by its id."""
        return self._session.get(Run, run_id)

    def get_by_bee(self, bee_id: str, limit: int = 50, failed_only: bool = False) -> list[Run]:
        """Get a bee's runs, newest first.

        Args:
            bee_id: The bee's id.
            limit: Maximum number of runs to return.
            failed_only: Only return unsuccessful runs.
        """
        stmt = select(Run).where(Run.bee_id == bee_id)
        if failed_only:
            stmt = stmt.where(Run.success.is_(False))
        stmt = stmt.order_by(Run.started_at.desc()).limit(limit)
        return list(self._session.scalars(stmt))

    def get_recent(self, limit: int = 50) -> list[Run]:
        """Get the most recent runs across all bees."""
        stmt = select(Run).order_by(Run.started_at.desc()).limit(limit)
        return list(self._session.scalars(stmt))

    def get_last(self, bee_id: str) -> Run | None:
        """Get a bee's most recent run."""
        runs = self.get_by_bee(bee_id, limit=1)
        return runs[0] if runs else None

    def count_by_bee(self, bee_id: str) -> int:
        """Number of recorded runs for a bee."""
        stmt = select(func.count()).select_from(Run).where(Run.bee_id == bee_id)
        return int(self._session.scalar(stmt) or 0)

    def cleanup_old(self, days: int = 30) -> int:
        """Delete runs that started more than ``days`` ago.

        Returns:
            Number of runs deleted.
        """
        cutoff = datetime.now() - timedelta(days=days)
        result = self._session.execute(delete(Run).where(Run.started_at < cutoff))
        self._session.flush()
        return int(result.rowcount or 0)
