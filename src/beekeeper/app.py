"""Application wiring: hive, scheduler, broker and runner together."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from beekeeper.engine.confirm import ConfirmationBroker
from beekeeper.engine.runner import BeeRunner
from beekeeper.models import resolve_cli, resolve_model
from beekeeper.notify import LogNotifier
from beekeeper.scheduler import HiveError, Scheduler

if TYPE_CHECKING:
    from beekeeper.engine.confirm import ConfirmationPresenter
    from beekeeper.engine.context import RunResult
    from beekeeper.engine.runner import RunSink
    from beekeeper.models import Bee
    from beekeeper.notify import Notifier
    from beekeeper.scheduler import HiveManager

logger = logging.getLogger(__name__)


class Beekeeper:
    """Owns the long-lived components of a running Beekeeper instance.

    Created at startup, torn down with :meth:`stop`. Scheduled and manual
    triggers become asyncio tasks on the loop :meth:`start` was called on;
    every task releases the scheduler's running mark when it ends.
    """

    def __init__(
        self,
        hive: HiveManager,
        *,
        run_log: RunSink | None = None,
        notifier: Notifier | None = None,
        presenter: ConfirmationPresenter | None = None,
        runner: BeeRunner | None = None,
    ) -> None:
        """Initialize the application.

        Args:
            hive: Bee catalog and config store.
            run_log: Sink for finished runs.
            notifier: Reports run outcomes, defaults to logging.
            presenter: Shows confirmation requests, defaults to the notifier
                when it can present.
            runner: Run orchestrator, built from the broker if omitted.
        """
        self.hive = hive
        self.notifier: Notifier = notifier or LogNotifier()
        if presenter is None and hasattr(self.notifier, "present"):
            presenter = self.notifier  # type: ignore[assignment]
        self.broker = ConfirmationBroker(presenter)
        self.runner = runner or BeeRunner(self.broker, run_log=run_log)
        self.scheduler = Scheduler(
            default_overlap=lambda: self.hive.config.default_overlap,
            on_trigger=self._on_trigger,
        )

        self._paused = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._tasks: set[asyncio.Task[RunResult | None]] = set()

    @property
    def paused(self) -> bool:
        """True while scheduled runs are suspended."""
        return self._paused

    def pause(self) -> None:
        """Suspend scheduled runs. Manual triggers still fire."""
        self._paused = True
        logger.info("Scheduled runs paused")

    def resume(self) -> None:
        """Resume scheduled runs."""
        self._paused = False
        logger.info("Scheduled runs resumed")

    @property
    def active_runs(self) -> int:
        """Number of run tasks still in flight."""
        return len(self._tasks)

    def start(self) -> None:
        """Load the hive and start the minute tick.

        Must be called from within the running event loop.
        """
        self._loop = asyncio.get_running_loop()
        self.hive.refresh()
        self.scheduler.start(
            catalog=lambda: self.hive.bees,
            is_paused=lambda: self._paused,
            on_trigger=self._on_trigger,
        )

    async def stop(self) -> None:
        """Stop ticking, drop queued reruns, reject open confirmations and wait
        for the runs already in flight."""
        self.scheduler.stop()
        self.broker.close()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until every run task, including queued reruns, finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def trigger(self, bee_id: str) -> Bee:
        """Manually trigger a bee by id.

        Raises:
            HiveError: If no bee has this id.
        """
        bee = self.hive.get_bee(bee_id)
        if bee is None:
            raise HiveError(f"Bee not found: {bee_id}")
        self.scheduler.trigger_manually(bee)
        return bee

    def _on_trigger(self, bee: Bee) -> None:
        loop = self._loop
        if loop is None:
            loop = self._loop = asyncio.get_running_loop()

        try:
            current = asyncio.get_running_loop()
        except RuntimeError:
            current = None

        if current is loop:
            self._spawn(bee)
        else:
            loop.call_soon_threadsafe(self._spawn, bee)

    def _spawn(self, bee: Bee) -> None:
        assert self._loop is not None
        task = self._loop.create_task(self._run(bee), name=f"bee:{bee.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, bee: Bee) -> RunResult | None:
        try:
            cli = resolve_cli(bee.config.cli, self.hive.config.default_cli)
            model = resolve_model(bee.config.model, self.hive.config.default_model)
            return await self.runner.run(
                bee, cli, model, on_complete=lambda result: self._report(bee, result)
            )
        except Exception:
            logger.exception(f"Run task for {bee.id} crashed")
            return None
        finally:
            self.scheduler.mark_complete(bee.id)

    def _report(self, bee: Bee, result: RunResult) -> None:
        if result.success:
            self.notifier.run_succeeded(bee, result)
        else:
            self.notifier.run_failed(bee, result)
