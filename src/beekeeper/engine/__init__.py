"""Beekeeper run engine."""

from .cli_tool import (
    OUTPUT_FORMAT_CONTRACT,
    RESUME_PROMPT,
    STATUS_SCHEMA,
    CliAdapter,
    CliAdapterRegistry,
    ClaudeCliAdapter,
    StructuredStatus,
    build_prompt,
    build_system_prompt,
)
from .confirm import (
    ConfirmationBroker,
    ConfirmationPresenter,
    ConfirmDecision,
    ConfirmRequest,
)
from .context import RunResult, gather_context
from .cron import format_next_run, is_valid, matches, next_run, to_english
from .errors import (
    BeeError,
    CliNotFoundError,
    ConfirmationRejectedError,
    ErrorCategory,
    SkillReadError,
    StructuredOutputError,
    SubprocessError,
    TaskFailedError,
    classify_error,
)
from .process import ProcessResult, run_process
from .runner import BeeRunner, RunSink

__all__ = [
    "OUTPUT_FORMAT_CONTRACT",
    "RESUME_PROMPT",
    "STATUS_SCHEMA",
    "BeeError",
    "BeeRunner",
    "ClaudeCliAdapter",
    "CliAdapter",
    "CliAdapterRegistry",
    "CliNotFoundError",
    "ConfirmDecision",
    "ConfirmRequest",
    "ConfirmationBroker",
    "ConfirmationPresenter",
    "ConfirmationRejectedError",
    "ErrorCategory",
    "ProcessResult",
    "RunResult",
    "RunSink",
    "SkillReadError",
    "StructuredOutputError",
    "StructuredStatus",
    "SubprocessError",
    "TaskFailedError",
    "build_prompt",
    "build_system_prompt",
    "classify_error",
    "format_next_run",
    "gather_context",
    "is_valid",
    "matches",
    "next_run",
    "run_process",
    "to_english",
]
