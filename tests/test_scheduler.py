"""Tests for the minute-tick Scheduler and its overlap policies."""

from collections.abc import Callable
from datetime import datetime

import pytest

from beekeeper.models import Bee, OverlapPolicy
from beekeeper.scheduler import Scheduler, next_minute_boundary

NINE_AM = datetime(2026, 1, 2, 9, 0)


def not_paused() -> bool:
    return False


@pytest.fixture
def fired() -> list[str]:
    """Ids passed to the trigger callback, in order."""
    return []


@pytest.fixture
def scheduler(fired: list[str]) -> Scheduler:
    """Scheduler whose callback records bee ids."""
    return Scheduler(on_trigger=lambda bee: fired.append(bee.id))


class TestEvaluate:
    """Tests for schedule evaluation."""

    def test_matching_bee_fires(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test an enabled bee whose schedule matches is triggered."""
        bee = make_bee("morning", schedule="0 9 * * *")
        scheduler.evaluate([bee], not_paused, NINE_AM)

        assert fired == ["morning"]
        assert scheduler.is_running("morning")

    def test_non_matching_bee_does_not_fire(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test a bee is not triggered outside its schedule."""
        bee = make_bee("evening", schedule="0 18 * * *")
        scheduler.evaluate([bee], not_paused, NINE_AM)
        assert fired == []

    def test_disabled_bee_does_not_fire(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test disabled bees are ignored."""
        bee = make_bee("off", schedule="* * * * *", enabled=False)
        scheduler.evaluate([bee], not_paused, NINE_AM)
        assert fired == []

    def test_paused_fires_nothing(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test nothing fires while paused."""
        bee = make_bee("any", schedule="* * * * *")
        scheduler.evaluate([bee], lambda: True, NINE_AM)
        assert fired == []
        assert scheduler.running == frozenset()

    def test_callback_override(self, make_bee: Callable[..., Bee]) -> None:
        """Test evaluate can supply the callback."""
        calls: list[str] = []
        scheduler = Scheduler()
        scheduler.evaluate(
            [make_bee("x")], not_paused, NINE_AM, on_trigger=lambda b: calls.append(b.id)
        )
        assert calls == ["x"]

    def test_no_callback_releases_mark(self, make_bee: Callable[..., Bee]) -> None:
        """Test a trigger with nowhere to go does not leave the bee running."""
        scheduler = Scheduler()
        scheduler.trigger_manually(make_bee("x"))
        assert not scheduler.is_running("x")


class TestOverlap:
    """Tests for skip, queue and parallel policies."""

    def test_skip_is_default(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test a running bee is skipped without an explicit policy."""
        bee = make_bee("busy")
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)

        assert fired == ["busy"]
        assert scheduler.queued == []

    def test_queue_holds_one_rerun(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test repeated triggers queue a single rerun."""
        bee = make_bee("q", overlap=OverlapPolicy.QUEUE)
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)

        assert fired == ["q"]
        assert scheduler.queued == ["q"]

    def test_queue_reruns_on_complete(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test completing a run starts the queued one."""
        bee = make_bee("q", overlap=OverlapPolicy.QUEUE)
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)

        scheduler.mark_complete("q")

        assert fired == ["q", "q"]
        assert scheduler.is_running("q")
        assert scheduler.queued == []

        scheduler.mark_complete("q")
        assert not scheduler.is_running("q")
        assert fired == ["q", "q"]

    def test_parallel_fires_every_time(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test parallel bees start regardless of running state."""
        bee = make_bee("p", overlap=OverlapPolicy.PARALLEL)
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)

        assert fired == ["p", "p"]
        assert scheduler.is_running("p")

    def test_global_default_applies(self, make_bee: Callable[..., Bee]) -> None:
        """Test the default policy is used when the bee has none."""
        calls: list[str] = []
        scheduler = Scheduler(
            default_overlap=lambda: OverlapPolicy.PARALLEL,
            on_trigger=lambda b: calls.append(b.id),
        )
        bee = make_bee("g")
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)
        assert calls == ["g", "g"]

    def test_bee_policy_beats_default(self, make_bee: Callable[..., Bee]) -> None:
        """Test a bee override wins over the global default."""
        calls: list[str] = []
        scheduler = Scheduler(
            default_overlap=lambda: OverlapPolicy.PARALLEL,
            on_trigger=lambda b: calls.append(b.id),
        )
        bee = make_bee("s", overlap=OverlapPolicy.SKIP)
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)
        assert calls == ["s"]

    def test_mark_complete_unknown_id(self, scheduler: Scheduler) -> None:
        """Test completing an unknown bee is a no-op."""
        scheduler.mark_complete("ghost")
        assert scheduler.running == frozenset()

    def test_callback_error_releases_mark(self, make_bee: Callable[..., Bee]) -> None:
        """Test a failing callback does not leave the bee stuck running."""

        def boom(bee: Bee) -> None:
            raise RuntimeError("cannot start")

        scheduler = Scheduler(on_trigger=boom)
        scheduler.trigger_manually(make_bee("b"))
        assert not scheduler.is_running("b")

    def test_manual_trigger_ignores_schedule(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test manual triggers work for disabled bees."""
        scheduler.trigger_manually(make_bee("m", enabled=False, schedule="0 0 1 1 *"))
        assert fired == ["m"]


class TestLifecycle:
    """Tests for starting and stopping the minute tick."""

    def test_next_minute_boundary(self) -> None:
        """Test the boundary is the start of the next minute."""
        assert next_minute_boundary(datetime(2026, 1, 2, 9, 0, 42, 5)) == datetime(2026, 1, 2, 9, 1)

    @pytest.mark.asyncio
    async def test_start_stop(self, scheduler: Scheduler) -> None:
        """Test the tick can be started and stopped."""
        scheduler.start(catalog=lambda: [], is_paused=not_paused, on_trigger=lambda b: None)
        assert scheduler.is_started is True

        scheduler.start(catalog=lambda: [], is_paused=not_paused, on_trigger=lambda b: None)
        assert scheduler.is_started is True

        scheduler.stop()
        assert scheduler.is_started is False

    def test_stop_idempotent(self, scheduler: Scheduler) -> None:
        """Test stopping a stopped scheduler is fine."""
        scheduler.stop()
        assert scheduler.is_started is False

    def test_stop_drops_queue_and_refuses_triggers(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test completions after stop start nothing until the next start."""
        bee = make_bee("q", overlap=OverlapPolicy.QUEUE)
        scheduler.trigger_manually(bee)
        scheduler.trigger_manually(bee)

        scheduler.stop()
        assert scheduler.queued == []

        scheduler.mark_complete("q")
        scheduler.trigger_manually(bee)

        assert fired == ["q"]
        assert not scheduler.is_running("q")

    @pytest.mark.asyncio
    async def test_start_accepts_triggers_again(
        self, scheduler: Scheduler, fired: list[str], make_bee: Callable[..., Bee]
    ) -> None:
        """Test a restarted scheduler fires again."""
        scheduler.stop()
        scheduler.start(
            catalog=lambda: [], is_paused=not_paused, on_trigger=lambda b: fired.append(b.id)
        )
        try:
            scheduler.trigger_manually(make_bee("again"))
        finally:
            scheduler.stop()

        assert fired == ["again"]
