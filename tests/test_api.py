"""Tests for the Beekeeper REST API."""

import asyncio
import threading
import time
from collections.abc import Callable, Generator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from beekeeper import __version__
from beekeeper.api import create_app
from beekeeper.app import Beekeeper
from beekeeper.engine import RunResult
from beekeeper.models import Bee
from beekeeper.scheduler import HiveManager
from beekeeper.storage import Database, Run, RunRepository


class GatedRunner:
    """Runner whose runs stay open until the gate is set from the test thread."""

    def __init__(self) -> None:
        self.gate = threading.Event()
        self.gate.set()
        self.calls: list[str] = []

    async def run(
        self,
        bee: Bee,
        cli: str,
        model: str | None = None,
        on_complete: Callable[[RunResult], None] | None = None,
    ) -> RunResult:
        self.calls.append(bee.id)
        while not self.gate.is_set():
            await asyncio.sleep(0.01)
        return RunResult(success=True, output="ok")


@pytest.fixture
def runner() -> GatedRunner:
    """Provide a gated runner."""
    return GatedRunner()


@pytest.fixture
def beekeeper(hive_dir: Path, add_bee: Callable[..., Path], runner: GatedRunner) -> Beekeeper:
    """A Beekeeper over a hive with two bees."""
    add_bee("inbox", name="Inbox Triage", description="Sorts mail")
    add_bee("news", name="News Digest")
    hive = HiveManager(hive_dir)
    hive.refresh()
    return Beekeeper(hive, runner=runner)


@pytest.fixture
def db() -> Generator[Database, None, None]:
    """Provide an in-memory run history."""
    database = Database(":memory:")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def client(
    beekeeper: Beekeeper, db: Database, runner: GatedRunner
) -> Generator[TestClient, None, None]:
    """Create a test client whose event loop outlives single requests."""
    app = create_app(beekeeper=beekeeper, db=db)
    with TestClient(app) as test_client:
        try:
            yield test_client
        finally:
            runner.gate.set()
            test_client.portal.call(beekeeper.wait_idle)


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    """Poll until predicate holds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached")
        time.sleep(0.01)


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client: TestClient) -> None:
        """Test health reports service and version."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "beekeeper"
        assert data["version"] == __version__

    def test_openapi_documents_errors(self, client: TestClient) -> None:
        """Test the schema is served under /api with the error model."""
        response = client.get("/api/openapi.json")

        assert response.status_code == 200
        assert "ErrorResponse" in response.json()["components"]["schemas"]


class TestBees:
    """Tests for the bee endpoints."""

    def test_list(self, client: TestClient) -> None:
        """Test bees are listed with effective settings."""
        response = client.get("/api/bees")

        assert response.status_code == 200
        bees = response.json()
        assert [b["id"] for b in bees] == ["inbox", "news"]
        inbox = bees[0]
        assert inbox["display_name"] == "Inbox Triage"
        assert inbox["schedule"] == "*/5 * * * *"
        assert inbox["schedule_description"] == "Every 5 minutes"
        assert inbox["cli"] == "claude"
        assert inbox["overlap"] == "skip"
        assert inbox["running"] is False
        assert inbox["next_run"] is not None

    def test_refresh_picks_up_new_bees(
        self, client: TestClient, add_bee: Callable[..., Path]
    ) -> None:
        """Test refresh=true rescans the hive."""
        add_bee("weather")

        assert len(client.get("/api/bees").json()) == 2
        assert len(client.get("/api/bees?refresh=true").json()) == 3

    def test_get(self, client: TestClient) -> None:
        """Test getting one bee."""
        response = client.get("/api/bees/news")

        assert response.status_code == 200
        assert response.json()["display_name"] == "News Digest"

    def test_get_unknown(self, client: TestClient) -> None:
        """Test unknown bees are 404."""
        response = client.get("/api/bees/ghost")

        assert response.status_code == 404
        assert "not found" in response.json()["detail"]


class TestRunBee:
    """Tests for manual triggers over HTTP."""

    def test_run(self, client: TestClient, beekeeper: Beekeeper, runner: GatedRunner) -> None:
        """Test a trigger starts a run."""
        response = client.post("/api/bees/inbox/run")

        assert response.status_code == 202
        data = response.json()
        assert data["bee_id"] == "inbox"
        assert data["message"] == "Run started"

        client.portal.call(beekeeper.wait_idle)
        assert runner.calls == ["inbox"]

    def test_run_unknown(self, client: TestClient) -> None:
        """Test triggering an unknown bee is 404."""
        assert client.post("/api/bees/ghost/run").status_code == 404

    def test_skip_while_running(self, client: TestClient, runner: GatedRunner) -> None:
        """Test the default policy skips a second trigger."""
        runner.gate.clear()
        client.post("/api/bees/inbox/run")

        data = client.post("/api/bees/inbox/run").json()

        assert data["message"] == "Already running, trigger skipped"
        assert data["running"] is True
        assert data["queued"] is False

    def test_queue_while_running(self, client: TestClient, runner: GatedRunner) -> None:
        """Test the queue policy reports a queued rerun."""
        client.patch("/api/bees/inbox/config", json={"overlap": "queue"})
        runner.gate.clear()
        client.post("/api/bees/inbox/run")

        data = client.post("/api/bees/inbox/run").json()

        assert data["message"] == "Already running, rerun queued"
        assert data["queued"] is True
        assert client.get("/api/status").json()["queued"] == ["inbox"]

    def test_parallel_while_running(self, client: TestClient, runner: GatedRunner) -> None:
        """Test the parallel policy starts a second run."""
        client.patch("/api/bees/inbox/config", json={"overlap": "parallel"})
        runner.gate.clear()
        client.post("/api/bees/inbox/run")

        data = client.post("/api/bees/inbox/run").json()

        assert data["message"] == "Run started alongside the current one"
        wait_until(lambda: len(runner.calls) == 2)


class TestUpdateConfig:
    """Tests for PATCH /bees/{id}/config."""

    def test_update(self, client: TestClient, hive_dir: Path) -> None:
        """Test changes are applied and persisted."""
        response = client.patch(
            "/api/bees/inbox/config",
            json={"schedule": "0 9 * * 1-5", "model": "deep", "timeout": 60},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["schedule"] == "0 9 * * 1-5"
        assert data["schedule_description"] == "Weekdays at 9:00 AM"
        assert data["model"] == "deep"
        assert "0 9 * * 1-5" in (hive_dir / "hive.yaml").read_text()

    def test_disable_clears_next_run(self, client: TestClient) -> None:
        """Test disabled bees have no next run."""
        data = client.patch("/api/bees/inbox/config", json={"enabled": False}).json()

        assert data["enabled"] is False
        assert data["next_run"] is None

    def test_null_clears_override(self, client: TestClient) -> None:
        """Test null resets an override but not required fields."""
        client.patch("/api/bees/inbox/config", json={"model": "deep"})

        data = client.patch(
            "/api/bees/inbox/config", json={"model": None, "schedule": None}
        ).json()

        assert data["model"] is None
        assert data["schedule"] == "*/5 * * * *"

    def test_invalid_schedule(self, client: TestClient) -> None:
        """Test a malformed cron expression is rejected."""
        response = client.patch("/api/bees/inbox/config", json={"schedule": "every day"})

        assert response.status_code == 422
        assert "Invalid cron expression" in response.json()["detail"]

    def test_invalid_timeout(self, client: TestClient) -> None:
        """Test timeouts must be positive."""
        assert client.patch("/api/bees/inbox/config", json={"timeout": 0}).status_code == 422

    def test_unknown_bee(self, client: TestClient) -> None:
        """Test updating an unknown bee is 404."""
        assert client.patch("/api/bees/ghost/config", json={"enabled": False}).status_code == 404


class TestConfirmations:
    """Tests for answering confirmation requests."""

    def test_empty(self, client: TestClient) -> None:
        """Test no requests are pending initially."""
        assert client.get("/api/confirmations").json() == []
        assert client.get("/api/confirmations/nope").status_code == 404

    @pytest.mark.parametrize(
        ("answer", "confirmed", "reason", "message"),
        [
            ({"confirmed": True}, True, None, "Inbox Triage: confirmed"),
            ({"confirmed": False}, False, "rejected", "Inbox Triage: rejected"),
            (
                {"confirmed": False, "reason": "not today"},
                False,
                "not today",
                "Inbox Triage: rejected",
            ),
        ],
    )
    def test_answer(
        self,
        client: TestClient,
        beekeeper: Beekeeper,
        answer: dict,
        confirmed: bool,
        reason: str | None,
        message: str,
    ) -> None:
        """Test an answer resolves the waiting request."""
        future = client.portal.start_task_soon(
            beekeeper.broker.request_decision, "inbox", "Inbox Triage", "Archive 40 emails?", 60
        )
        wait_until(lambda: len(client.get("/api/confirmations").json()) == 1)

        item = client.get("/api/confirmations").json()[0]
        assert item["bee_id"] == "inbox"
        assert item["message"] == "Archive 40 emails?"
        assert client.get(f"/api/confirmations/{item['id']}").status_code == 200

        response = client.post(f"/api/confirmations/{item['id']}", json=answer)

        assert response.status_code == 200
        assert response.json()["message"] == message
        decision = future.result(timeout=5)
        assert decision.confirmed is confirmed
        assert decision.reason == reason
        assert client.get("/api/confirmations").json() == []

    def test_answer_twice(self, client: TestClient, beekeeper: Beekeeper) -> None:
        """Test a resolved request cannot be answered again."""
        future = client.portal.start_task_soon(
            beekeeper.broker.request_decision, "inbox", "Inbox Triage", "Proceed?", 60
        )
        wait_until(beekeeper.broker.has_pending)
        request_id = beekeeper.broker.pending_requests()[0].id

        url = f"/api/confirmations/{request_id}"
        assert client.post(url, json={"confirmed": True}).status_code == 200
        future.result(timeout=5)
        assert client.post(url, json={"confirmed": False}).status_code == 404


class TestControl:
    """Tests for pause, resume and status."""

    def test_status(self, client: TestClient) -> None:
        """Test the initial status."""
        data = client.get("/api/status").json()

        assert data == {
            "paused": False,
            "scheduler_running": False,
            "bees": 2,
            "running": [],
            "queued": [],
            "pending_confirmations": 0,
        }

    def test_pause_resume(self, client: TestClient, beekeeper: Beekeeper) -> None:
        """Test pausing and resuming."""
        assert client.post("/api/pause").json()["paused"] is True
        assert beekeeper.paused
        assert client.post("/api/resume").json()["paused"] is False
        assert not beekeeper.paused

    def test_manual_trigger_while_paused(self, client: TestClient, beekeeper: Beekeeper) -> None:
        """Test pausing does not block manual runs."""
        client.post("/api/pause")

        assert client.post("/api/bees/news/run").json()["message"] == "Run started"


class TestRuns:
    """Tests for the run history endpoints."""

    @pytest.fixture(autouse=True)
    def history(self, db: Database) -> None:
        """Seed the run history."""
        start = datetime(2026, 1, 2, 9, 0)
        with db.session_scope() as session:
            repo = RunRepository(session)
            for i, (bee_id, success) in enumerate(
                [("inbox", True), ("inbox", False), ("news", True)]
            ):
                started = start + timedelta(hours=i)
                repo.create(
                    Run(
                        id=f"run-{i}",
                        bee_id=bee_id,
                        started_at=started,
                        finished_at=started + timedelta(seconds=5),
                        duration=5.0,
                        success=success,
                        output="out",
                        error=None if success else "boom",
                    )
                )

    def test_recent(self, client: TestClient) -> None:
        """Test recent runs across bees, newest first."""
        runs = client.get("/api/runs").json()

        assert [r["id"] for r in runs] == ["run-2", "run-1", "run-0"]
        assert [r["id"] for r in client.get("/api/runs?limit=1").json()] == ["run-2"]

    def test_by_bee(self, client: TestClient) -> None:
        """Test one bee's runs and the failed filter."""
        assert [r["id"] for r in client.get("/api/runs/inbox").json()] == ["run-1", "run-0"]

        failed = client.get("/api/runs/inbox?failed_only=true").json()
        assert [r["id"] for r in failed] == ["run-1"]
        assert failed[0]["error"] == "boom"

    def test_without_database(self, beekeeper: Beekeeper) -> None:
        """Test the runs endpoints need a database."""
        with TestClient(create_app(beekeeper=beekeeper)) as client:
            response = client.get("/api/runs")

        assert response.status_code == 503
