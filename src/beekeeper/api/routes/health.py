"""Health check endpoint for Beekeeper API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from beekeeper import __version__

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Check API health status.

    Returns:
        Health status with timestamp.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "beekeeper",
        "version": __version__,
    }
