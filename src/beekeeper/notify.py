"""User-facing notifications and confirmation presenters."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from beekeeper.engine.confirm import REASON_REJECTED

if TYPE_CHECKING:
    from beekeeper.engine.confirm import ConfirmationBroker, ConfirmRequest
    from beekeeper.engine.context import RunResult
    from beekeeper.models import Bee

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Tells the user how runs went."""

    def run_succeeded(self, bee: Bee, result: RunResult) -> None:
        """Report a successful run."""

    def run_failed(self, bee: Bee, result: RunResult) -> None:
        """Report a failed run."""


class LogNotifier:
    """Reports run outcomes and confirmation requests through logging.

    Used by the server, where humans answer confirmations through the HTTP
    API rather than a terminal prompt.
    """

    def __init__(self, api_base: str | None = None) -> None:
        """Initialize the notifier.

        Args:
            api_base: Base URL shown in confirmation hints, e.g.
                "http://127.0.0.1:8080".
        """
        self._api_base = api_base or ""

    def run_succeeded(self, bee: Bee, result: RunResult) -> None:
        """Report a successful run."""
        logger.info(f"{bee.display_name} completed in {result.duration:.1f}s")

    def run_failed(self, bee: Bee, result: RunResult) -> None:
        """Report a failed run."""
        logger.error(f"{bee.display_name} failed: {result.error or 'Unknown error'}")

    def present(self, request: ConfirmRequest, broker: ConfirmationBroker) -> None:
        """Log the request; the answer arrives via the confirmations API."""
        logger.warning(
            f"{request.bee_name} needs confirmation: {request.message} "
            f"(POST {self._api_base}/api/confirmations/{request.id})"
        )


class ConsolePresenter:
    """Asks for confirmation on the terminal.

    The prompt runs on a daemon thread so the event loop keeps running and
    the broker's timeout can still fire while the user is thinking.
    """

    def __init__(self, console: Console | None = None) -> None:
        """Initialize the presenter.

        Args:
            console: Rich console to prompt on.
        """
        self._console = console or Console()

    def present(self, request: ConfirmRequest, broker: ConfirmationBroker) -> None:
        """Start a terminal prompt for the request."""
        thread = threading.Thread(
            target=self._ask,
            args=(request, broker),
            name=f"confirm-{request.id[:8]}",
            daemon=True,
        )
        thread.start()

    def _ask(self, request: ConfirmRequest, broker: ConfirmationBroker) -> None:
        self._console.print()
        self._console.print(
            Panel(request.message, title=f"{request.bee_name} needs confirmation", style="yellow")
        )
        try:
            confirmed = Confirm.ask("Proceed?", console=self._console, default=False)
        except (EOFError, KeyboardInterrupt):
            broker.handle_response(request.id, False, "dismissed")
            return
        broker.handle_response(request.id, confirmed, None if confirmed else REASON_REJECTED)

    def run_succeeded(self, bee: Bee, result: RunResult) -> None:
        """Report a successful run."""
        self._console.print(f"[green]✓[/] {bee.display_name} completed in {result.duration:.1f}s")

    def run_failed(self, bee: Bee, result: RunResult) -> None:
        """Report a failed run."""
        self._console.print(f"[red]✗[/] {bee.display_name} failed: {result.error}")
