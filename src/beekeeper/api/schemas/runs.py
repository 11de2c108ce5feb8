"""Run history API schemas for Beekeeper."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RunItem(BaseModel):
    """A recorded run."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Run id")
    bee_id: str = Field(..., description="Bee that ran")
    started_at: datetime = Field(..., description="Start time")
    finished_at: datetime = Field(..., description="End time")
    duration: float = Field(..., description="Duration in seconds")
    success: bool = Field(..., description="Whether the run succeeded")
    output: str = Field(default="", description="Agent output")
    error: str | None = Field(default=None, description="Error message")


class HiveStatus(BaseModel):
    """Overall scheduler state."""

    paused: bool = Field(..., description="Whether scheduled runs are suspended")
    scheduler_running: bool = Field(..., description="Whether the minute tick is active")
    bees: int = Field(..., description="Number of discovered bees")
    running: list[str] = Field(default_factory=list, description="Bees with runs in flight")
    queued: list[str] = Field(default_factory=list, description="Bees with a queued rerun")
    pending_confirmations: int = Field(default=0, description="Requests awaiting a human")
