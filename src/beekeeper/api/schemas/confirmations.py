"""Confirmation API schemas for Beekeeper."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ConfirmationItem(BaseModel):
    """An outstanding confirmation request."""

    id: str = Field(..., description="Request id")
    bee_id: str = Field(..., description="Bee awaiting approval")
    bee_name: str = Field(..., description="Bee display name")
    message: str = Field(..., description="What the agent wants to do")
    created_at: datetime = Field(..., description="When the request was made")


class ConfirmationAnswer(BaseModel):
    """A human's answer to a confirmation request."""

    confirmed: bool = Field(..., description="Approve (true) or reject (false)")
    reason: str | None = Field(default=None, description="Optional reason for logs")
