"""Bee API schemas for Beekeeper."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from beekeeper.models import OverlapPolicy


class BeeListItem(BaseModel):
    """A bee with its effective schedule state."""

    id: str = Field(..., description="Bee id (directory name)")
    display_name: str = Field(..., description="Human readable name")
    icon: str = Field(default="ant", description="Icon name")
    description: str = Field(default="", description="What the bee does")
    enabled: bool = Field(..., description="Whether the schedule is active")
    schedule: str = Field(..., description="5-field cron expression")
    schedule_description: str = Field(..., description="Schedule in plain English")
    next_run: datetime | None = Field(default=None, description="Next scheduled run")
    cli: str = Field(..., description="Effective CLI")
    model: str | None = Field(default=None, description="Effective model")
    overlap: OverlapPolicy = Field(..., description="Effective overlap policy")
    running: bool = Field(default=False, description="Whether a run is in flight")
    queued: bool = Field(default=False, description="Whether a rerun is queued")


class BeeConfigUpdate(BaseModel):
    """Partial update of a bee's settings. Omitted fields stay unchanged."""

    enabled: bool | None = Field(default=None, description="Enable or disable the schedule")
    schedule: str | None = Field(default=None, description="5-field cron expression")
    cli: str | None = Field(default=None, description="CLI override")
    model: str | None = Field(default=None, description="Model override")
    overlap: OverlapPolicy | None = Field(default=None, description="Overlap override")
    timeout: int | None = Field(default=None, ge=1, description="Confirmation timeout")


class BeeRunResponse(BaseModel):
    """Response to a manual trigger."""

    bee_id: str = Field(..., description="Triggered bee")
    running: bool = Field(..., description="Whether the bee is now running")
    queued: bool = Field(..., description="Whether a rerun was queued instead")
    message: str = Field(..., description="Human readable outcome")
