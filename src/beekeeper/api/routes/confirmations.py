"""Confirmation endpoints for Beekeeper API.

Runs that report needs_confirmation wait here until a human answers or
the bee's timeout elapses.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from beekeeper.api.dependencies import App
from beekeeper.api.schemas.common import ErrorResponse, MessageResponse
from beekeeper.api.schemas.confirmations import ConfirmationAnswer, ConfirmationItem
from beekeeper.engine.confirm import REASON_REJECTED, ConfirmRequest

router = APIRouter(prefix="/confirmations")
NOT_FOUND: dict[int | str, dict[str, Any]] = {404: {"model": ErrorResponse}}


def _to_item(request: ConfirmRequest) -> ConfirmationItem:
    return ConfirmationItem(
        id=request.id,
        bee_id=request.bee_id,
        bee_name=request.bee_name,
        message=request.message,
        created_at=request.created_at,
    )


@router.get("", response_model=list[ConfirmationItem])
async def list_confirmations(beekeeper: App) -> list[ConfirmationItem]:
    """List outstanding confirmation requests, oldest first."""
    return [_to_item(r) for r in beekeeper.broker.pending_requests()]


@router.get("/{request_id}", response_model=ConfirmationItem, responses=NOT_FOUND)
async def get_confirmation(request_id: str, beekeeper: App) -> ConfirmationItem:
    """Get one outstanding request."""
    request = beekeeper.broker.get_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail=f"Confirmation '{request_id}' not found")
    return _to_item(request)


@router.post("/{request_id}", response_model=MessageResponse, responses=NOT_FOUND)
async def answer_confirmation(
    request_id: str,
    answer: ConfirmationAnswer,
    beekeeper: App,
) -> MessageResponse:
    """Approve or reject an outstanding request.

    Raises:
        HTTPException: 404 if the request is unknown or already resolved.
    """
    broker = beekeeper.broker
    request = broker.get_request(request_id)
    if request is None:
        raise HTTPException(status_code=404, detail=f"Confirmation '{request_id}' not found")

    reason = answer.reason
    if reason is None and not answer.confirmed:
        reason = REASON_REJECTED
    broker.handle_response(request_id, answer.confirmed, reason)

    verb = "confirmed" if answer.confirmed else "rejected"
    return MessageResponse(message=f"{request.bee_name}: {verb}")
