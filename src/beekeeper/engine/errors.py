"""Error classification for Beekeeper runs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Classification of run failures."""

    CONFIGURATION = "configuration"  # CLI missing, skill unreadable; nothing spawned
    SUBPROCESS = "subprocess"  # Spawn failure or non-zero exit
    PROTOCOL = "protocol"  # Output not in the expected JSON envelope
    USER_DECISION = "user_decision"  # Confirmation rejected or timed out
    TASK = "task"  # The bee itself reported an error


@dataclass
class BeeError(Exception):
    """Base error with classification and context."""

    message: str
    category: ErrorCategory
    bee_id: str | None = None
    output: str = ""  # Output to preserve on the failed result
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def details(self) -> str:
        """Message for logs, with any extra detail the category carries."""
        return self.message


@dataclass
class CliNotFoundError(BeeError):
    """The configured CLI executable could not be located."""

    category: ErrorCategory = ErrorCategory.CONFIGURATION


@dataclass
class SkillReadError(BeeError):
    """The bee's SKILL.md could not be read."""

    category: ErrorCategory = ErrorCategory.CONFIGURATION


@dataclass
class SubprocessError(BeeError):
    """The CLI could not be spawned or exited non-zero."""

    category: ErrorCategory = ErrorCategory.SUBPROCESS


@dataclass
class StructuredOutputError(BeeError):
    """The CLI output did not contain a valid structured status."""

    category: ErrorCategory = ErrorCategory.PROTOCOL


@dataclass
class TaskFailedError(BeeError):
    """The bee finished with an error status."""

    category: ErrorCategory = ErrorCategory.TASK


@dataclass
class ConfirmationRejectedError(BeeError):
    """The human rejected a confirmation or it timed out."""

    category: ErrorCategory = ErrorCategory.USER_DECISION
    reason: str | None = None

    @property
    def details(self) -> str:
        """Message plus why it was rejected, e.g. "timeout"."""
        if self.reason:
            return f"{self.message} ({self.reason})"
        return self.message


def classify_error(error: BaseException) -> ErrorCategory:
    """Map an arbitrary exception onto an error category.

    Args:
        error: The exception raised during a run.

    Returns:
        The best-matching category.
    """
    if isinstance(error, BeeError):
        return error.category
    if isinstance(error, json.JSONDecodeError | UnicodeDecodeError):
        return ErrorCategory.PROTOCOL
    if isinstance(error, FileNotFoundError | PermissionError | IsADirectoryError):
        return ErrorCategory.CONFIGURATION
    return ErrorCategory.SUBPROCESS
