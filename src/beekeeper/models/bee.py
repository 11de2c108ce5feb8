"""Bee and hive configuration models for Beekeeper."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SCHEDULE = "*/5 * * * *"
DEFAULT_CLI = "claude"
DEFAULT_CONFIRM_TIMEOUT = 300


class OverlapPolicy(str, Enum):
    """What to do when a bee is triggered while a previous run is active."""

    SKIP = "skip"
    QUEUE = "queue"
    PARALLEL = "parallel"


class BeeConfig(BaseModel):
    """Per-bee settings persisted in hive.yaml."""

    enabled: bool = Field(default=True, description="Whether the schedule is active")
    schedule: str = Field(default=DEFAULT_SCHEDULE, description="5-field cron expression")
    cli: str | None = Field(default=None, description="CLI override, None inherits default")
    model: str | None = Field(default=None, description="Model override")
    overlap: OverlapPolicy | None = Field(default=None, description="Overlap override")
    timeout: int | None = Field(
        default=None, ge=1, description="Confirmation timeout in seconds"
    )

    @field_validator("schedule")
    @classmethod
    def strip_schedule(cls, v: str) -> str:
        """Strip surrounding whitespace and quotes."""
        return v.strip().strip('"')


class HiveConfig(BaseModel):
    """Global hive settings plus every known bee's config."""

    version: int = Field(default=1, ge=1)
    default_cli: str = Field(default=DEFAULT_CLI)
    default_model: str | None = Field(default=None)
    default_overlap: OverlapPolicy = Field(default=OverlapPolicy.SKIP)
    bees: dict[str, BeeConfig] = Field(default_factory=dict)


class Bee(BaseModel):
    """Immutable snapshot of a discovered bee."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    icon: str = "ant"
    description: str = ""
    path: Path
    allowed_tools: tuple[str, ...] = ()
    config: BeeConfig = Field(default_factory=BeeConfig)

    @property
    def skill_path(self) -> Path:
        """Path to the bee's instruction document."""
        return self.path / "SKILL.md"

    @property
    def scripts_path(self) -> Path:
        """Directory of context-gathering helper scripts."""
        return self.path / "scripts"

    def with_config(self, config: BeeConfig) -> Bee:
        """Return a copy of this bee with a different config."""
        return self.model_copy(update={"config": config})


def resolve_overlap(
    bee_override: OverlapPolicy | str | None,
    global_default: OverlapPolicy | str | None,
) -> OverlapPolicy:
    """Resolve the effective overlap policy: bee, then global, then skip."""
    for value in (bee_override, global_default):
        if value is None:
            continue
        try:
            return OverlapPolicy(value)
        except ValueError:
            continue
    return OverlapPolicy.SKIP


def resolve_cli(bee_override: str | None, global_default: str | None) -> str:
    """Resolve which CLI executable a bee runs with."""
    return bee_override or global_default or DEFAULT_CLI


def resolve_model(bee_override: str | None, global_default: str | None) -> str | None:
    """Resolve the model selector, None meaning the CLI's own default."""
    return bee_override or global_default or None


def resolve_timeout(config: BeeConfig) -> int:
    """Confirmation timeout in seconds for a bee."""
    return config.timeout if config.timeout is not None else DEFAULT_CONFIRM_TIMEOUT
