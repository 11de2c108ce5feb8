"""Bee endpoints for Beekeeper API."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query

from beekeeper.api.dependencies import App
from beekeeper.api.schemas.bees import BeeConfigUpdate, BeeListItem, BeeRunResponse
from beekeeper.api.schemas.common import ErrorResponse
from beekeeper.app import Beekeeper
from beekeeper.config import ConfigError
from beekeeper.engine.cron import is_valid, next_run, to_english
from beekeeper.models import (
    Bee,
    OverlapPolicy,
    resolve_cli,
    resolve_model,
    resolve_overlap,
)
from beekeeper.scheduler import HiveError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bees")
NOT_FOUND: dict[int | str, dict[str, Any]] = {404: {"model": ErrorResponse}}

# Fields that cannot be cleared, only changed
_REQUIRED_FIELDS = ("enabled", "schedule")


def _to_item(beekeeper: Beekeeper, bee: Bee) -> BeeListItem:
    """Build the API view of a bee with its effective settings."""
    defaults = beekeeper.hive.config
    config = bee.config
    return BeeListItem(
        id=bee.id,
        display_name=bee.display_name,
        icon=bee.icon,
        description=bee.description,
        enabled=config.enabled,
        schedule=config.schedule,
        schedule_description=to_english(config.schedule),
        next_run=next_run(config.schedule) if config.enabled else None,
        cli=resolve_cli(config.cli, defaults.default_cli),
        model=resolve_model(config.model, defaults.default_model),
        overlap=resolve_overlap(config.overlap, defaults.default_overlap),
        running=beekeeper.scheduler.is_running(bee.id),
        queued=bee.id in beekeeper.scheduler.queued,
    )


def _get_bee_or_404(beekeeper: Beekeeper, bee_id: str) -> Bee:
    bee = beekeeper.hive.get_bee(bee_id)
    if bee is None:
        raise HTTPException(status_code=404, detail=f"Bee '{bee_id}' not found")
    return bee


@router.get("", response_model=list[BeeListItem])
async def list_bees(
    beekeeper: App,
    refresh: bool = Query(False, description="Rescan the hive directory first"),
) -> list[BeeListItem]:
    """List all bees with their schedule state."""
    if refresh:
        beekeeper.hive.refresh()
    return [_to_item(beekeeper, bee) for bee in beekeeper.hive.bees]


@router.get("/{bee_id}", response_model=BeeListItem, responses=NOT_FOUND)
async def get_bee(bee_id: str, beekeeper: App) -> BeeListItem:
    """Get one bee."""
    return _to_item(beekeeper, _get_bee_or_404(beekeeper, bee_id))


@router.post(
    "/{bee_id}/run", response_model=BeeRunResponse, status_code=202, responses=NOT_FOUND
)
async def run_bee(bee_id: str, beekeeper: App) -> BeeRunResponse:
    """Trigger a bee now, subject to its overlap policy.

    Args:
        bee_id: Bee to trigger.
        beekeeper: Application object.

    Returns:
        Whether the bee started, was queued, or was skipped.

    Raises:
        HTTPException: 404 if the bee does not exist.
    """
    scheduler = beekeeper.scheduler
    was_running = scheduler.is_running(bee_id)
    try:
        bee = beekeeper.trigger(bee_id)
    except HiveError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    queued = bee_id in scheduler.queued
    if not was_running:
        message = "Run started"
    elif queued:
        message = "Already running, rerun queued"
    elif resolve_overlap(bee.config.overlap, beekeeper.hive.config.default_overlap) == (
        OverlapPolicy.PARALLEL
    ):
        message = "Run started alongside the current one"
    else:
        message = "Already running, trigger skipped"

    return BeeRunResponse(
        bee_id=bee_id,
        running=scheduler.is_running(bee_id),
        queued=queued,
        message=message,
    )


@router.patch(
    "/{bee_id}/config",
    response_model=BeeListItem,
    responses={**NOT_FOUND, 422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def update_bee_config(
    bee_id: str,
    update: BeeConfigUpdate,
    beekeeper: App,
) -> BeeListItem:
    """Change a bee's settings and persist them to hive.yaml.

    Sending ``null`` for cli, model, overlap or timeout clears the
    override so the global default applies again.

    Raises:
        HTTPException: 404 for unknown bees, 422 for an invalid schedule,
            500 if the config file cannot be written.
    """
    changes = update.model_dump(exclude_unset=True)
    for key in _REQUIRED_FIELDS:
        if key in changes and changes[key] is None:
            del changes[key]

    if "schedule" in changes and not is_valid(changes["schedule"]):
        raise HTTPException(
            status_code=422,
            detail=f"Invalid cron expression: {changes['schedule']!r} (expected 5 fields)",
        )

    try:
        bee = beekeeper.hive.update_bee_config(
            bee_id, lambda config: config.model_copy(update=changes)
        )
    except HiveError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ConfigError as e:
        logger.error(f"Failed to save config for {bee_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return _to_item(beekeeper, bee)
