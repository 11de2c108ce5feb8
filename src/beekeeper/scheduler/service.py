"""Minute-tick scheduler for Beekeeper bees."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from beekeeper.engine.cron import matches
from beekeeper.models import OverlapPolicy, resolve_overlap

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from beekeeper.models import Bee

    CatalogProvider = Callable[[], Sequence[Bee]]
    PausedPredicate = Callable[[], bool]
    TriggerCallback = Callable[[Bee], None]

logger = logging.getLogger(__name__)

TICK_JOB_ID = "beekeeper:tick"


def next_minute_boundary(now: datetime) -> datetime:
    """Start of the minute following ``now``."""
    return now.replace(second=0, microsecond=0) + timedelta(minutes=1)


class Scheduler:
    """Decides when bees fire and tracks which ones are running.

    Every minute the enabled bees whose schedule matches are triggered. If
    a bee is still running when it fires again, its overlap policy decides
    whether the trigger is skipped, queued until the current run finishes,
    or started in parallel.

    The callback passed to :meth:`start` must return quickly and must
    arrange for :meth:`mark_complete` to be called once the run ends,
    whatever its outcome.
    """

    def __init__(
        self,
        default_overlap: Callable[[], OverlapPolicy | None] | None = None,
        on_trigger: TriggerCallback | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            default_overlap: Returns the global overlap default, consulted on
                every trigger so config changes apply immediately.
            on_trigger: Starts a run for a bee; may also be given to start().
        """
        self._default_overlap = default_overlap or (lambda: None)
        self._running: set[str] = set()
        self._queued: list[str] = []
        self._queued_bees: dict[str, Bee] = {}
        self._lock = threading.RLock()
        self._stopped = False

        self._catalog: CatalogProvider | None = None
        self._on_trigger: TriggerCallback | None = on_trigger
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def running(self) -> frozenset[str]:
        """Ids of bees with a run in progress."""
        with self._lock:
            return frozenset(self._running)

    @property
    def queued(self) -> list[str]:
        """Ids of bees waiting for their current run to finish, FIFO."""
        with self._lock:
            return list(self._queued)

    @property
    def is_started(self) -> bool:
        """Check if the minute tick is active."""
        return self._scheduler is not None

    def is_running(self, bee_id: str) -> bool:
        """Check whether a bee has a run in progress."""
        with self._lock:
            return bee_id in self._running

    def start(
        self,
        catalog: CatalogProvider,
        is_paused: PausedPredicate,
        on_trigger: TriggerCallback,
    ) -> None:
        """Start evaluating schedules at the top of every minute.

        Must be called from within a running asyncio event loop.

        Args:
            catalog: Returns the current bee snapshot.
            is_paused: Returns True while scheduled runs are suspended.
            on_trigger: Starts a run for a bee without blocking.
        """
        self._catalog = catalog
        self._on_trigger = on_trigger
        with self._lock:
            self._stopped = False

        if self._scheduler is not None:
            return

        first_tick = next_minute_boundary(datetime.now())
        scheduler = AsyncIOScheduler(
            job_defaults={
                "coalesce": True,  # One tick after a stall, not a burst
                "max_instances": 1,
                "misfire_grace_time": 30,
            }
        )
        scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=60, start_date=first_tick),
            id=TICK_JOB_ID,
            name="bee schedule tick",
            kwargs={"is_paused": is_paused},
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"Scheduler started, first tick at {first_tick:%H:%M:%S}")

    def stop(self) -> None:
        """Stop the minute tick and drop queued reruns.

        Runs in progress are not affected, but their completion no longer
        starts anything: triggers are refused until the next start().
        """
        with self._lock:
            self._stopped = True
            dropped = list(self._queued)
            self._queued.clear()
            self._queued_bees.clear()
        if dropped:
            logger.info(f"Dropped queued runs: {', '.join(dropped)}")

        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")

    async def _tick(self, is_paused: PausedPredicate) -> None:
        # Coroutine jobs run on the event loop itself, not in a worker thread
        if self._catalog is None:
            return
        self.evaluate(self._catalog(), is_paused, datetime.now())

    def evaluate(
        self,
        bees: Sequence[Bee],
        is_paused: PausedPredicate,
        now: datetime,
        on_trigger: TriggerCallback | None = None,
    ) -> None:
        """Trigger every enabled bee whose schedule matches ``now``.

        Args:
            bees: Bee snapshot to evaluate.
            is_paused: Nothing fires while this returns True.
            now: The instant to evaluate.
            on_trigger: Callback override; defaults to the one given to start.
        """
        if on_trigger is not None:
            self._on_trigger = on_trigger

        if is_paused():
            return

        for bee in bees:
            if not bee.config.enabled:
                continue
            if matches(bee.config.schedule, now):
                logger.debug(f"Schedule matched for {bee.id} at {now:%H:%M}")
                self._handle_trigger(bee)

    def trigger_manually(self, bee: Bee) -> None:
        """Trigger a bee now, ignoring its schedule and the pause flag."""
        logger.info(f"Manual trigger: {bee.id}")
        self._handle_trigger(bee)

    def mark_complete(self, bee_id: str) -> None:
        """Record that a run finished and start a queued rerun if any.

        Unknown ids are ignored.
        """
        with self._lock:
            self._running.discard(bee_id)

            if bee_id not in self._queued:
                return
            self._queued.remove(bee_id)
            queued_bee = self._queued_bees.pop(bee_id, None)

        bee = self._find_bee(bee_id) or queued_bee
        if bee is None:
            logger.warning(f"Queued bee {bee_id} no longer exists, dropping")
            return

        logger.info(f"Starting queued run for {bee_id}")
        self._handle_trigger(bee)

    def _find_bee(self, bee_id: str) -> Bee | None:
        if self._catalog is None:
            return None
        for bee in self._catalog():
            if bee.id == bee_id:
                return bee
        return None

    def _handle_trigger(self, bee: Bee) -> None:
        overlap = resolve_overlap(bee.config.overlap, self._default_overlap())

        with self._lock:
            if self._stopped:
                logger.info(f"Scheduler stopped, dropping trigger of {bee.id}")
                return
            if bee.id in self._running:
                if overlap is OverlapPolicy.SKIP:
                    logger.info(f"Skipping {bee.id}: already running")
                    return
                if overlap is OverlapPolicy.QUEUE:
                    if bee.id not in self._queued:
                        self._queued.append(bee.id)
                        logger.info(f"Queued {bee.id}: already running")
                    self._queued_bees[bee.id] = bee
                    return
                owns_running_mark = False
            else:
                self._running.add(bee.id)
                owns_running_mark = True

        self._fire(bee, owns_running_mark)

    def _fire(self, bee: Bee, owns_running_mark: bool) -> None:
        if self._on_trigger is None:
            logger.warning(f"No trigger callback set, dropping run of {bee.id}")
            if owns_running_mark:
                with self._lock:
                    self._running.discard(bee.id)
            return
        try:
            self._on_trigger(bee)
        except Exception:
            logger.exception(f"Trigger callback failed for {bee.id}")
            if owns_running_mark:
                with self._lock:
                    self._running.discard(bee.id)
