"""`beekeeper serve` and `beekeeper stop`.

One process hosts the minute scheduler and the HTTP API. The hive's
beekeeper.pid marks it as running; in daemon mode its output goes to
logs/server.log.
"""

from __future__ import annotations

import atexit
import logging
import os
import signal
import sys
import time
from pathlib import Path

import typer
import uvicorn

from beekeeper.cli import DEFAULT_HOST, DEFAULT_PORT, app, console
from beekeeper.config import get_hive_dir, get_logs_dir

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Seconds `beekeeper stop` gives in-flight bees before SIGKILL
STOP_GRACE_SECONDS = 10


def get_pid_file() -> Path:
    """beekeeper.pid inside the hive directory."""
    return get_hive_dir() / "beekeeper.pid"


def get_log_file() -> Path:
    """logs/server.log, creating the logs directory on first use."""
    log_dir = get_logs_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir / "server.log"


def read_pid() -> int | None:
    """PID of the live server, or None.

    A PID file that does not parse or names a dead process is removed.
    """
    pid_file = get_pid_file()
    if not pid_file.exists():
        return None

    try:
        pid = int(pid_file.read_text().strip())
        os.kill(pid, 0)
    except (ValueError, ProcessLookupError, PermissionError):
        pid_file.unlink(missing_ok=True)
        return None
    return pid


def write_pid(pid: int) -> None:
    pid_file = get_pid_file()
    pid_file.parent.mkdir(parents=True, exist_ok=True)
    pid_file.write_text(str(pid))


def remove_pid_file() -> None:
    get_pid_file().unlink(missing_ok=True)


def is_server_running() -> tuple[bool, int | None]:
    """(running, pid) for `status` and for refusing a second `serve`."""
    pid = read_pid()
    return (pid is not None, pid)


def _exited(pid: int, seconds: int) -> bool:
    """Poll once a second until ``pid`` is gone or ``seconds`` pass."""
    for _ in range(seconds):
        time.sleep(1)
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return True
    return False


def stop_server(pid: int, timeout: int = STOP_GRACE_SECONDS) -> bool:
    """Shut the server down, forcibly if it lingers.

    On SIGTERM the server rejects pending confirmations and waits for the
    bees it is running. A server still alive after ``timeout`` seconds is
    killed.

    Returns:
        False if ``pid`` was already gone.
    """
    try:
        os.kill(pid, signal.SIGTERM)
        if not _exited(pid, timeout):
            logger.warning(f"Server {pid} ignored SIGTERM for {timeout}s, killing it")
            os.kill(pid, signal.SIGKILL)
            time.sleep(0.5)
    except ProcessLookupError:
        return False
    finally:
        remove_pid_file()
    return True


def _fork_or_exit(stage: str) -> None:
    """Fork and let the parent exit; the child carries on."""
    try:
        pid = os.fork()
    except OSError as e:
        console.print(f"[red]Error:[/] {stage} fork failed: {e}")
        sys.exit(1)
    if pid > 0:
        sys.exit(0)


def daemonize() -> None:
    """Detach from the terminal and send stdout/stderr to server.log."""
    _fork_or_exit("First")
    os.chdir("/")
    os.setsid()
    os.umask(0o022)
    _fork_or_exit("Second")

    sys.stdout.flush()
    sys.stderr.flush()

    with (
        open(os.devnull, "rb") as null_in,
        open(get_log_file(), "a+b") as log_out,
    ):
        os.dup2(null_in.fileno(), sys.stdin.fileno())
        os.dup2(log_out.fileno(), sys.stdout.fileno())
        os.dup2(log_out.fileno(), sys.stderr.fileno())


def setup_logging(log_file: Path | None = None, debug: bool = False) -> None:
    """Send root logging to ``log_file``, or to stderr when it is None."""
    handler: logging.Handler = (
        logging.FileHandler(log_file) if log_file is not None else logging.StreamHandler()
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[handler],
    )


def run_server(host: str, port: int) -> None:
    """Wire the hive, run log and notifier into the API and block in uvicorn.

    The API app owns the Beekeeper lifecycle: startup loads the hive and
    starts the scheduler, shutdown drains it.
    """
    # Server stack is only needed here
    from beekeeper.api.app import create_app
    from beekeeper.app import Beekeeper
    from beekeeper.notify import LogNotifier
    from beekeeper.scheduler import HiveManager
    from beekeeper.storage import RunLog, init_database

    hive_dir = get_hive_dir()
    db = init_database()
    beekeeper = Beekeeper(
        HiveManager(hive_dir),
        run_log=RunLog(get_logs_dir(hive_dir), db),
        notifier=LogNotifier(api_base=f"http://{host}:{port}"),
    )
    api = create_app(beekeeper=beekeeper, db=db, manage_lifecycle=True)

    try:
        uvicorn.run(api, host=host, port=port, log_level="info")
    finally:
        db.dispose()


@app.command()
def serve(
    host: str = typer.Option(DEFAULT_HOST, "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(DEFAULT_PORT, "--port", "-p", help="Port to bind to"),
    daemon: bool = typer.Option(False, "--daemon", "-d", help="Detach into the background"),
    debug: bool = typer.Option(False, "--debug", help="Log at DEBUG level"),
) -> None:
    """Run bees on their schedules and serve the API.

    Confirmation requests wait for POST /api/confirmations/<id>.

    Examples:
        beekeeper serve
        beekeeper serve --daemon
        beekeeper serve --port 9000
    """
    running, existing_pid = is_server_running()
    if running:
        console.print(f"[yellow]Server already running (PID: {existing_pid})[/]")
        console.print("Use [cyan]beekeeper stop[/] to stop it first.")
        raise typer.Exit(1)

    if daemon:
        console.print(f"[cyan]Starting Beekeeper in daemon mode on {host}:{port}...[/]")
        daemonize()
        setup_logging(get_log_file(), debug)
    else:
        console.print(f"[cyan]Starting Beekeeper on {host}:{port}...[/]")
        console.print("[dim]Press Ctrl+C to stop[/]")
        console.print()
        setup_logging(debug=debug)

    write_pid(os.getpid())
    atexit.register(remove_pid_file)
    logger.info(f"Beekeeper server starting on {host}:{port}")

    try:
        run_server(host, port)
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped.[/]")
    finally:
        remove_pid_file()


@app.command()
def stop() -> None:
    """Stop the server started by `beekeeper serve`."""
    running, pid = is_server_running()
    if not running or pid is None:
        console.print("[yellow]Server is not running.[/]")
        raise typer.Exit(0)

    console.print(f"[cyan]Stopping Beekeeper server (PID: {pid})...[/]")
    if stop_server(pid):
        console.print("[green]Server stopped successfully.[/]")
    else:
        console.print("[yellow]Server was already stopped.[/]")
