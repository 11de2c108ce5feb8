"""Pause, resume and status endpoints for Beekeeper API."""

from __future__ import annotations

from fastapi import APIRouter

from beekeeper.api.dependencies import App
from beekeeper.api.schemas.runs import HiveStatus
from beekeeper.app import Beekeeper

router = APIRouter()


def _status(beekeeper: Beekeeper) -> HiveStatus:
    scheduler = beekeeper.scheduler
    return HiveStatus(
        paused=beekeeper.paused,
        scheduler_running=scheduler.is_started,
        bees=len(beekeeper.hive.bees),
        running=sorted(scheduler.running),
        queued=scheduler.queued,
        pending_confirmations=len(beekeeper.broker.pending_requests()),
    )


@router.get("/status", response_model=HiveStatus)
async def get_status(beekeeper: App) -> HiveStatus:
    """Get the scheduler state."""
    return _status(beekeeper)


@router.post("/pause", response_model=HiveStatus)
async def pause(beekeeper: App) -> HiveStatus:
    """Suspend scheduled runs. Manual triggers still work."""
    beekeeper.pause()
    return _status(beekeeper)


@router.post("/resume", response_model=HiveStatus)
async def resume(beekeeper: App) -> HiveStatus:
    """Resume scheduled runs."""
    beekeeper.resume()
    return _status(beekeeper)
