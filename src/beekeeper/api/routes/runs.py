"""Run history endpoints for Beekeeper API."""

from __future__ import annotations

from fastapi import APIRouter, Query

from beekeeper.api.dependencies import RequiredDatabase
from beekeeper.api.schemas.runs import RunItem
from beekeeper.storage import RunRepository

router = APIRouter(prefix="/runs")


@router.get("", response_model=list[RunItem])
async def list_runs(
    db: RequiredDatabase,
    limit: int = Query(50, ge=1, le=500, description="Maximum runs to return"),
) -> list[RunItem]:
    """List the most recent runs across all bees."""
    with db.session_scope() as session:
        runs = RunRepository(session).get_recent(limit=limit)
        return [RunItem.model_validate(run) for run in runs]


@router.get("/{bee_id}", response_model=list[RunItem])
async def list_bee_runs(
    bee_id: str,
    db: RequiredDatabase,
    limit: int = Query(50, ge=1, le=500, description="Maximum runs to return"),
    failed_only: bool = Query(False, description="Only failed runs"),
) -> list[RunItem]:
    """List one bee's runs, newest first."""
    with db.session_scope() as session:
        runs = RunRepository(session).get_by_bee(bee_id, limit=limit, failed_only=failed_only)
        return [RunItem.model_validate(run) for run in runs]
