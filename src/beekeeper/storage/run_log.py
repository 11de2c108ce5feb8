"""Run log sink: Markdown log files plus the run history database."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING

from beekeeper.config import get_logs_dir

from .models import Run
from .repositories import RunRepository

if TYPE_CHECKING:
    from beekeeper.engine.context import RunResult
    from beekeeper.models import Bee

    from .database import Database

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"


def format_log(bee: Bee, result: RunResult) -> str:
    """Render a run as the Markdown log file body."""
    timestamp = result.started_at.strftime(TIMESTAMP_FORMAT)
    content = (
        f"# Bee Run: {bee.display_name}\n"
        f"# Timestamp: {timestamp}\n"
        f"# Duration: {result.duration:.2f}s\n"
        f"# Status: {'success' if result.success else 'failed'}\n"
        "\n"
        "## Output\n"
        "\n"
        f"{result.output}\n"
    )
    if result.error:
        content += f"\n## Errors\n\n{result.error}\n"
    return content


class RunLog:
    """Records every finished run, addressable by bee id and start time.

    Each run gets a file ``<logs>/<bee_id>/<timestamp>.log`` and, when a
    database is configured, a row in the ``runs`` table. Write failures are
    logged and never interrupt the caller.
    """

    def __init__(self, logs_dir: Path | None = None, db: Database | None = None) -> None:
        """Initialize the run log.

        Args:
            logs_dir: Root directory for log files, defaults to <hive>/logs.
            db: Optional run history database.
        """
        self._logs_dir = logs_dir or get_logs_dir()
        self._db = db

    @property
    def logs_dir(self) -> Path:
        """Root directory of the log files."""
        return self._logs_dir

    def record(self, bee: Bee, result: RunResult) -> None:
        """Persist one run."""
        self._write_file(bee, result)
        self._write_db(bee, result)

    def _write_file(self, bee: Bee, result: RunResult) -> Path | None:
        bee_dir = self._logs_dir / bee.id
        stamp = result.started_at.strftime(TIMESTAMP_FORMAT)
        path = bee_dir / f"{stamp}.log"

        try:
            bee_dir.mkdir(parents=True, exist_ok=True)
            # Parallel runs can start within the same second
            suffix = 1
            while path.exists():
                path = bee_dir / f"{stamp}-{suffix}.log"
                suffix += 1
            path.write_text(format_log(bee, result), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to write run log for {bee.id}: {e}")
            return None
        return path

    def _write_db(self, bee: Bee, result: RunResult) -> None:
        if self._db is None:
            return
        try:
            with self._db.session_scope() as session:
                RunRepository(session).create(
                    Run(
                        id=str(uuid.uuid4()),
                        bee_id=bee.id,
                        started_at=result.started_at,
                        finished_at=result.finished_at,
                        duration=result.duration,
                        success=result.success,
                        output=result.output,
                        error=result.error,
                    )
                )
        except Exception as e:
            logger.warning(f"Failed to store run for {bee.id}: {e}")

    def log_files(self, bee_id: str) -> list[Path]:
        """A bee's log files, newest first."""
        bee_dir = self._logs_dir / bee_id
        if not bee_dir.is_dir():
            return []
        return sorted(bee_dir.glob("*.log"), key=lambda p: p.name, reverse=True)

    def prune(self, days: int) -> int:
        """Delete log files of runs that started more than ``days`` ago.

        Returns:
            Number of files deleted.
        """
        cutoff = datetime.now() - timedelta(days=days)
        if not self._logs_dir.is_dir():
            return 0

        removed = 0
        for path in self._logs_dir.glob("*/*.log"):
            try:
                started_at = datetime.strptime(path.name[:19], TIMESTAMP_FORMAT)
            except ValueError:
                continue  # Not a run log
            if started_at < cutoff:
                path.unlink(missing_ok=True)
                removed += 1
        return removed
