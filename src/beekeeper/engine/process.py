"""Subprocess execution for Beekeeper."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


@dataclass(frozen=True)
class ProcessResult:
    """Captured outcome of a finished subprocess."""

    stdout: str
    stderr: str
    exit_code: int

    @property
    def ok(self) -> bool:
        """True if the process exited with code 0."""
        return self.exit_code == 0


async def run_process(
    path: str | Path,
    arguments: Sequence[str] = (),
    working_dir: Path | None = None,
    env: dict[str, str] | None = None,
) -> ProcessResult:
    """Run an executable to completion and capture its output.

    Both pipes are drained concurrently by ``communicate()``, so large
    outputs cannot deadlock the child.

    Args:
        path: Executable to run.
        arguments: Arguments passed verbatim (no shell).
        working_dir: Working directory for the child.
        env: Extra environment variables layered over the current one.

    Returns:
        ProcessResult with decoded stdout/stderr and the exit code.

    Raises:
        OSError: If the process cannot be spawned.
    """
    proc = await asyncio.create_subprocess_exec(
        str(path),
        *arguments,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=working_dir,
        env={**os.environ, **env} if env else None,
    )
    stdout_bytes, stderr_bytes = await proc.communicate()

    return ProcessResult(
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        exit_code=proc.returncode or 0,
    )
