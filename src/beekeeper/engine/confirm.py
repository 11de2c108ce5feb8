"""Human confirmation broker for Beekeeper runs.

A run that needs approval registers a request here and awaits it. Whatever
shows the request to a human (terminal prompt, HTTP API, notification)
later calls :meth:`ConfirmationBroker.handle_response` from any thread. Each
request resolves exactly once: by confirmation, rejection or timeout.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0

REASON_TIMEOUT = "timeout"
REASON_REJECTED = "rejected"
REASON_PRESENTATION_FAILED = "presentation failed"
REASON_SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class ConfirmRequest:
    """An outstanding approval request."""

    id: str
    bee_id: str
    bee_name: str
    message: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class ConfirmDecision:
    """How a confirmation request was resolved."""

    confirmed: bool
    reason: str | None = None

    @property
    def description(self) -> str:
        """Reason string suitable for logs."""
        if self.reason:
            return self.reason
        return "confirmed" if self.confirmed else REASON_REJECTED


class ConfirmationPresenter(Protocol):
    """Shows a request to a human and reports back through the broker."""

    def present(self, request: ConfirmRequest, broker: ConfirmationBroker) -> None:
        """Surface the request; must not block."""


@dataclass
class _Pending:
    request: ConfirmRequest
    loop: asyncio.AbstractEventLoop
    future: asyncio.Future[ConfirmDecision]
    timer: asyncio.TimerHandle | None = None


class ConfirmationBroker:
    """Registry of outstanding confirmation requests keyed by request id."""

    def __init__(self, presenter: ConfirmationPresenter | None = None) -> None:
        """Initialize the broker.

        Args:
            presenter: Collaborator that shows requests to a human. Without
                one, requests can only be resolved through handle_response
                by whoever polls pending_requests (e.g. the HTTP API).
        """
        self._presenter = presenter
        self._pending: dict[str, _Pending] = {}
        self._lock = threading.Lock()

    async def request_confirmation(
        self,
        bee_id: str,
        bee_name: str,
        message: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> bool:
        """Ask a human to approve an action and wait for the answer.

        Returns:
            True if confirmed, False if rejected, dismissed or timed out.
        """
        decision = await self.request_decision(bee_id, bee_name, message, timeout)
        return decision.confirmed

    async def request_decision(
        self,
        bee_id: str,
        bee_name: str,
        message: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> ConfirmDecision:
        """Like request_confirmation, but also reports why it resolved.

        Args:
            bee_id: Bee asking for approval.
            bee_name: Display name shown to the human.
            message: What the bee wants to do.
            timeout: Seconds before the request counts as rejected.

        Returns:
            The decision, with reason "timeout" if nobody answered.
        """
        loop = asyncio.get_running_loop()
        request = ConfirmRequest(
            id=str(uuid.uuid4()),
            bee_id=bee_id,
            bee_name=bee_name,
            message=message,
        )
        pending = _Pending(request=request, loop=loop, future=loop.create_future())

        with self._lock:
            self._pending[request.id] = pending

        pending.timer = loop.call_later(
            timeout, self.handle_response, request.id, False, REASON_TIMEOUT
        )
        logger.info(f"Confirmation requested by {bee_name} ({request.id[:8]}): {message}")

        self._present(request)

        try:
            return await pending.future
        finally:
            # Caller cancelled while waiting: drop the request and its timer
            with self._lock:
                leftover = self._pending.pop(request.id, None)
            if leftover is not None and leftover.timer is not None:
                leftover.timer.cancel()

    def _present(self, request: ConfirmRequest) -> None:
        if self._presenter is None:
            return
        try:
            self._presenter.present(request, self)
        except Exception as e:
            logger.warning(f"Failed to present confirmation {request.id[:8]}: {e}")
            self.handle_response(request.id, False, REASON_PRESENTATION_FAILED)

    def handle_response(
        self,
        request_id: str,
        confirmed: bool,
        reason: str | None = None,
    ) -> None:
        """Resolve a pending request.

        Safe to call from any thread. Unknown or already-resolved ids are
        ignored.

        Args:
            request_id: Id of the request being answered.
            confirmed: Whether the action was approved.
            reason: Optional reason for logs ("rejected", "timeout", ...).
        """
        with self._lock:
            pending = self._pending.pop(request_id, None)

        if pending is None:
            logger.debug(f"Ignoring response for unknown confirmation {request_id[:8]}")
            return

        decision = ConfirmDecision(confirmed=confirmed, reason=reason)
        logger.info(
            f"Confirmation for {pending.request.bee_name} ({request_id[:8]}): "
            f"{decision.description}"
        )

        try:
            pending.loop.call_soon_threadsafe(self._resolve, pending, decision)
        except RuntimeError:
            logger.warning(f"Event loop closed before confirmation {request_id[:8]} resolved")

    @staticmethod
    def _resolve(pending: _Pending, decision: ConfirmDecision) -> None:
        if pending.timer is not None:
            pending.timer.cancel()
        if not pending.future.done():
            pending.future.set_result(decision)

    def pending_requests(self) -> list[ConfirmRequest]:
        """Outstanding requests, oldest first."""
        with self._lock:
            requests = [p.request for p in self._pending.values()]
        return sorted(requests, key=lambda r: r.created_at)

    def get_request(self, request_id: str) -> ConfirmRequest | None:
        """Look up an outstanding request by id."""
        with self._lock:
            pending = self._pending.get(request_id)
        return pending.request if pending else None

    def has_pending(self) -> bool:
        """Check whether any request is awaiting a human."""
        with self._lock:
            return bool(self._pending)

    def close(self) -> None:
        """Reject every outstanding request."""
        with self._lock:
            ids = list(self._pending)
        for request_id in ids:
            self.handle_response(request_id, False, REASON_SHUTDOWN)
