"""Run context gathering and run results for Beekeeper."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .process import run_process

if TYPE_CHECKING:
    from pathlib import Path

    from beekeeper.models import Bee

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """Outcome of one bee run, including any confirmation round-trip."""

    success: bool
    output: str = ""
    error: str | None = None
    duration: float = 0.0  # Seconds
    started_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def completed(cls, output: str, started_at: datetime) -> RunResult:
        """Create a successful result."""
        return cls(
            success=True,
            output=output,
            duration=_elapsed(started_at),
            started_at=started_at,
        )

    @classmethod
    def failed(cls, error: str, started_at: datetime, output: str = "") -> RunResult:
        """Create a failed result."""
        return cls(
            success=False,
            output=output,
            error=error,
            duration=_elapsed(started_at),
            started_at=started_at,
        )

    @property
    def finished_at(self) -> datetime:
        """Wall-clock end of the run."""
        return self.started_at + timedelta(seconds=self.duration)


def _elapsed(started_at: datetime) -> float:
    return max((datetime.now() - started_at).total_seconds(), 0.0)


def _list_scripts(scripts_dir: Path) -> list[Path]:
    try:
        entries = sorted(scripts_dir.iterdir(), key=lambda p: p.name)
    except OSError:
        return []
    return [
        p
        for p in entries
        if not p.name.startswith(".") and p.is_file() and os.access(p, os.X_OK)
    ]


async def gather_context(bee: Bee) -> str:
    """Collect context for a run from the bee's helper scripts.

    Every executable in ``<bee>/scripts`` runs with no arguments from the
    bee's directory, in name order. A script that cannot be run contributes
    an error section instead; gathering never fails.

    Args:
        bee: The bee being run.

    Returns:
        Context sections joined by blank lines, empty if there are none.
    """
    scripts_dir = bee.scripts_path
    if not scripts_dir.is_dir():
        return ""

    sections: list[str] = []
    for script in _list_scripts(scripts_dir):
        try:
            result = await run_process(script, working_dir=bee.path)
        except Exception as e:
            logger.warning(f"Context script {script.name} for {bee.id} failed: {e}")
            sections.append(f"# Error running {script.name}: {e}")
            continue

        if result.stdout:
            sections.append(f"# Context from {script.name}\n{result.stdout}")

    return "\n\n".join(sections)
