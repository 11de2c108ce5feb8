"""Bee run orchestration for Beekeeper."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from beekeeper.models import resolve_timeout

from .cli_tool import (
    RESUME_PROMPT,
    CliAdapter,
    CliAdapterRegistry,
    StructuredStatus,
    build_prompt,
    build_system_prompt,
)
from .context import RunResult, gather_context
from .errors import (
    BeeError,
    ConfirmationRejectedError,
    SkillReadError,
    StructuredOutputError,
    SubprocessError,
    TaskFailedError,
    classify_error,
)
from .process import ProcessResult, run_process

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from pathlib import Path

    from beekeeper.models import Bee

    from .confirm import ConfirmationBroker

    ProcessRunner = Callable[[str, Sequence[str], Path | None], Awaitable[ProcessResult]]

logger = logging.getLogger(__name__)

AFTER_CONFIRMATION_SEPARATOR = "\n\n--- After Confirmation ---\n\n"
COMPLETED_FALLBACK = "Task completed"
ERROR_FALLBACK = "Unknown error"
PARSE_ERROR = "Failed to parse structured output"
REJECTED_ERROR = "User rejected confirmation"


class RunSink(Protocol):
    """Somewhere to persist finished runs."""

    def record(self, bee: Bee, result: RunResult) -> None:
        """Persist one run result."""


class BeeRunner:
    """Runs a bee to completion, including one confirmation round-trip.

    The protocol is:

    1. Gather context from the bee's helper scripts.
    2. Read SKILL.md and append the structured output contract.
    3. Start a new CLI session and parse its structured status.
    4. On ``needs_confirmation``, wait for the broker's decision and, if
       confirmed, resume the same session with the same system prompt.
    """

    def __init__(
        self,
        broker: ConfirmationBroker,
        run_log: RunSink | None = None,
        process_runner: ProcessRunner | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            broker: Confirmation broker used for approval requests.
            run_log: Optional sink that records every finished run.
            process_runner: Subprocess runner, replaceable for testing.
        """
        self._broker = broker
        self._run_log = run_log
        self._run_process = process_runner or run_process

    async def run(
        self,
        bee: Bee,
        cli: str,
        model: str | None = None,
        on_complete: Callable[[RunResult], None] | None = None,
    ) -> RunResult:
        """Execute a bee, record the result and notify the caller.

        Never raises; every failure becomes an unsuccessful RunResult.

        Args:
            bee: The bee to run.
            cli: CLI executable name.
            model: Optional model selector.
            on_complete: Called with the result once it is recorded.

        Returns:
            The run result.
        """
        result = await self.execute(bee, cli, model)

        if self._run_log is not None:
            try:
                self._run_log.record(bee, result)
            except Exception:
                logger.exception(f"Failed to record run for {bee.id}")

        if on_complete is not None:
            try:
                on_complete(result)
            except Exception:
                logger.exception(f"Completion callback failed for {bee.id}")

        return result

    async def execute(self, bee: Bee, cli: str, model: str | None = None) -> RunResult:
        """Execute a bee and return its result without recording it."""
        started_at = datetime.now()
        session_id = str(uuid.uuid4())

        logger.info(
            f"Running {bee.display_name} with {cli}"
            + (f", model: {model}" if model else "")
            + f" (session {session_id[:8]})"
        )

        try:
            output = await self._execute(bee, cli, model, session_id)
        except BeeError as e:
            logger.warning(f"{bee.display_name} failed [{e.category.value}]: {e.details}")
            return RunResult.failed(e.message, started_at, output=e.output)
        except Exception as e:
            logger.exception(
                f"{bee.display_name} failed unexpectedly [{classify_error(e).value}]"
            )
            return RunResult.failed(str(e) or type(e).__name__, started_at)

        result = RunResult.completed(output, started_at)
        logger.info(f"{bee.display_name} completed in {result.duration:.1f}s")
        return result

    async def _execute(self, bee: Bee, cli: str, model: str | None, session_id: str) -> str:
        context = await gather_context(bee)
        skill = self._read_skill(bee)

        adapter = CliAdapterRegistry.get(cli)
        cli_path = adapter.find_binary()
        system_prompt = build_system_prompt(skill)

        args = adapter.new_session_args(
            session_id,
            system_prompt,
            build_prompt(context),
            model=model,
            allowed_tools=bee.allowed_tools,
        )
        status = await self._invoke(adapter, cli_path, args, bee)

        if status.status != "needs_confirmation":
            return self._final_output(status, "")

        message = status.confirm_message or ""
        decision = await self._broker.request_decision(
            bee.id,
            bee.display_name,
            message,
            timeout=resolve_timeout(bee.config),
        )
        if not decision.confirmed:
            raise ConfirmationRejectedError(
                REJECTED_ERROR,
                bee_id=bee.id,
                output=message,
                reason=decision.description,
            )

        logger.info(f"{bee.display_name} confirmed, resuming session {session_id[:8]}")
        args = adapter.resume_args(
            session_id,
            system_prompt,
            RESUME_PROMPT,
            model=model,
            allowed_tools=bee.allowed_tools,
        )
        resumed = await self._invoke(adapter, cli_path, args, bee)

        if resumed.status == "needs_confirmation":
            raise StructuredOutputError(
                "Repeated confirmation request is not supported",
                bee_id=bee.id,
                output=_combine(message, resumed.confirm_message or ""),
            )

        return self._final_output(resumed, message)

    @staticmethod
    def _read_skill(bee: Bee) -> str:
        try:
            return bee.skill_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise SkillReadError(f"Cannot read {bee.skill_path}: {e}", bee_id=bee.id) from e

    async def _invoke(
        self,
        adapter: CliAdapter,
        cli_path: str,
        args: list[str],
        bee: Bee,
    ) -> StructuredStatus:
        try:
            result = await self._run_process(cli_path, args, bee.path)
        except OSError as e:
            raise SubprocessError(f"Failed to start {adapter.cli}: {e}", bee_id=bee.id) from e

        if not result.ok:
            raise SubprocessError(
                result.stderr.strip() or f"{adapter.cli} exited with code {result.exit_code}",
                bee_id=bee.id,
                output=result.stdout,
                context={"exit_code": result.exit_code},
            )

        try:
            status = adapter.parse_output(result.stdout)
        except StructuredOutputError as e:
            logger.debug(f"Unparseable output from {bee.id}: {e.message}")
            raise StructuredOutputError(PARSE_ERROR, bee_id=bee.id, output=result.stdout) from e

        # Keep the raw stdout around for error statuses
        if status.status == "error":
            raise TaskFailedError(
                status.error or ERROR_FALLBACK,
                bee_id=bee.id,
                output=result.stdout,
            )
        return status

    @staticmethod
    def _final_output(status: StructuredStatus, before: str) -> str:
        output = status.result or COMPLETED_FALLBACK
        if before:
            return _combine(before, output)
        return output


def _combine(before: str, after: str) -> str:
    return before + AFTER_CONFIRMATION_SEPARATOR + after
