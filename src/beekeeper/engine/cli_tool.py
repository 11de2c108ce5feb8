"""Agent CLI adapters for Beekeeper.

An adapter knows where to find an agent CLI and how to spell its flags for
a new session or for resuming one. It also parses the CLI's JSON envelope
into the structured status object every bee must emit.
"""

from __future__ import annotations

import json
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Literal

from .errors import CliNotFoundError, StructuredOutputError

NEW_SESSION_PROMPT = "Run your scheduled task now."
CONTEXT_PROMPT = "Run your scheduled task with this context:\n\n{context}"
RESUME_PROMPT = "The user has CONFIRMED. Proceed with the action now."

STATUS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "status": {
            "type": "string",
            "enum": ["needs_confirmation", "completed", "error"],
        },
        "confirmMessage": {
            "type": "string",
            "description": "What you want to do and why, shown to the user",
        },
        "result": {"type": "string", "description": "Summary of what was done"},
        "error": {"type": "string", "description": "What went wrong"},
    },
    "required": ["status"],
    "additionalProperties": False,
}

OUTPUT_FORMAT_CONTRACT = """

## Output Format

When you finish, respond with a single JSON object matching the provided schema:

- `{"status": "needs_confirmation", "confirmMessage": "..."}` if you need the user's
  approval before a sensitive or irreversible action. Explain what you want to do.
  Then STOP. Do not perform the action until you receive a follow-up message saying
  the user has confirmed.
- `{"status": "completed", "result": "..."}` when the task is done. Summarize what you did.
- `{"status": "error", "error": "..."}` if the task could not be completed.
"""

Status = Literal["needs_confirmation", "completed", "error"]


def build_prompt(context: str) -> str:
    """User prompt for a new session."""
    if not context:
        return NEW_SESSION_PROMPT
    return CONTEXT_PROMPT.format(context=context)


def build_system_prompt(skill: str) -> str:
    """Skill text plus the structured output contract."""
    return skill + OUTPUT_FORMAT_CONTRACT


@dataclass(frozen=True)
class StructuredStatus:
    """The status object a bee emits at the end of each turn."""

    status: Status
    confirm_message: str | None = None
    result: str | None = None
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StructuredStatus:
        """Validate and build a status from a decoded JSON object.

        Raises:
            StructuredOutputError: If the status is missing or unknown, or
                a needs_confirmation status has no message.
        """
        status = data.get("status")
        if status not in ("needs_confirmation", "completed", "error"):
            raise StructuredOutputError(f"Unknown structured status: {status!r}")

        confirm_message = _optional_str(data.get("confirmMessage"))
        if status == "needs_confirmation" and not confirm_message:
            raise StructuredOutputError("needs_confirmation status without confirmMessage")

        return cls(
            status=status,
            confirm_message=confirm_message,
            result=_optional_str(data.get("result")),
            error=_optional_str(data.get("error")),
        )


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else json.dumps(value)


class CliAdapter:
    """Flag syntax and output parsing for one agent CLI."""

    # Preferred install locations, user-local first; PATH is searched last
    SEARCH_DIRS: ClassVar[tuple[str, ...]] = (
        "~/.local/bin",
        "/usr/local/bin",
        "/opt/homebrew/bin",
        "/usr/bin",
    )

    def __init__(self, cli: str) -> None:
        """Initialize the adapter.

        Args:
            cli: Executable name, e.g. "claude".
        """
        self.cli = cli
        self._path: str | None = None

    def find_binary(self) -> str:
        """Locate the CLI executable.

        Returns:
            Absolute path to the executable.

        Raises:
            CliNotFoundError: If the CLI is not installed anywhere known.
        """
        if self._path:
            return self._path

        candidates = [
            os.path.join(os.path.expanduser(directory), self.cli) for directory in self.SEARCH_DIRS
        ]
        candidates.append(shutil.which(self.cli) or "")

        for candidate in candidates:
            if candidate and Path(candidate).exists():
                self._path = candidate
                return candidate

        raise CliNotFoundError(f"CLI '{self.cli}' not found")

    def new_session_args(
        self,
        session_id: str,
        system_prompt: str,
        prompt: str,
        model: str | None = None,
        allowed_tools: tuple[str, ...] | list[str] = (),
    ) -> list[str]:
        """Arguments for starting a new non-interactive session."""
        raise NotImplementedError

    def resume_args(
        self,
        session_id: str,
        system_prompt: str,
        prompt: str = RESUME_PROMPT,
        model: str | None = None,
        allowed_tools: tuple[str, ...] | list[str] = (),
    ) -> list[str]:
        """Arguments for resuming an existing session."""
        raise NotImplementedError

    def parse_output(self, stdout: str) -> StructuredStatus:
        """Extract the structured status from the CLI's stdout."""
        raise NotImplementedError


class CliAdapterRegistry:
    """Registry of adapters keyed by CLI name."""

    _adapters: ClassVar[dict[str, type[CliAdapter]]] = {}
    _default: ClassVar[type[CliAdapter] | None] = None

    @classmethod
    def register(cls, cli: str, *, default: bool = False) -> Any:
        """Register an adapter class for a CLI name.

        Args:
            cli: Executable name handled by the adapter.
            default: Use this adapter for CLIs with no registration.

        Returns:
            Decorator function.
        """

        def decorator(adapter_cls: type[CliAdapter]) -> type[CliAdapter]:
            cls._adapters[cli] = adapter_cls
            if default:
                cls._default = adapter_cls
            return adapter_cls

        return decorator

    @classmethod
    def get(cls, cli: str) -> CliAdapter:
        """Create an adapter for a CLI name.

        Raises:
            ValueError: If nothing handles the CLI and no default exists.
        """
        adapter_cls = cls._adapters.get(cli, cls._default)
        if adapter_cls is None:
            raise ValueError(f"No adapter registered for CLI: {cli}")
        return adapter_cls(cli)


@CliAdapterRegistry.register("claude", default=True)
class ClaudeCliAdapter(CliAdapter):
    """Claude Code CLI in print mode with JSON schema output."""

    def _common_args(
        self,
        system_prompt: str,
        prompt: str,
        model: str | None,
        allowed_tools: tuple[str, ...] | list[str],
    ) -> list[str]:
        args = ["--print"]
        if model:
            args.extend(["--model", model])
        if allowed_tools:
            args.extend(["--allowedTools", ",".join(allowed_tools)])
        args.extend(["--system-prompt", system_prompt])
        args.extend(["--output-format", "json"])
        args.extend(["--json-schema", json.dumps(STATUS_SCHEMA)])
        # Separator keeps a prompt starting with "-" from parsing as a flag
        args.extend(["--", prompt])
        return args

    def new_session_args(
        self,
        session_id: str,
        system_prompt: str,
        prompt: str,
        model: str | None = None,
        allowed_tools: tuple[str, ...] | list[str] = (),
    ) -> list[str]:
        """Arguments for starting a new non-interactive session."""
        return ["--session-id", session_id] + self._common_args(
            system_prompt, prompt, model, allowed_tools
        )

    def resume_args(
        self,
        session_id: str,
        system_prompt: str,
        prompt: str = RESUME_PROMPT,
        model: str | None = None,
        allowed_tools: tuple[str, ...] | list[str] = (),
    ) -> list[str]:
        """Arguments for resuming a session.

        The system prompt is not retained across resume, so it is passed again.
        """
        return ["-r", session_id] + self._common_args(
            system_prompt, prompt, model, allowed_tools
        )

    def parse_output(self, stdout: str) -> StructuredStatus:
        """Parse the ``--output-format json`` envelope.

        Raises:
            StructuredOutputError: If stdout is not a JSON object carrying a
                valid ``structured_output`` status.
        """
        try:
            envelope = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise StructuredOutputError(f"Invalid JSON output: {e}", output=stdout) from e

        if not isinstance(envelope, dict):
            raise StructuredOutputError("Output is not a JSON object", output=stdout)

        structured = envelope.get("structured_output")
        if not isinstance(structured, dict):
            raise StructuredOutputError("Output has no structured_output", output=stdout)

        try:
            return StructuredStatus.from_dict(structured)
        except StructuredOutputError as e:
            e.output = stdout
            raise
