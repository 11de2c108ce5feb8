"""Common API schemas for Beekeeper."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(..., description="Error message")


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str = Field(..., description="Response message")
