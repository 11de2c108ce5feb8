"""Logs command for Beekeeper CLI."""

from __future__ import annotations

from collections import deque

import typer
from rich.table import Table

from beekeeper.cli import app, console
from beekeeper.cli.commands.serve import get_log_file
from beekeeper.cli.utils import open_database
from beekeeper.config import get_logs_dir
from beekeeper.storage import RunLog, RunRepository


@app.command()
def logs(
    bee_id: str = typer.Argument(None, help="Bee id"),
    count: int = typer.Option(
        1,
        "--count",
        "-n",
        min=1,
        help="Number of recent runs to show",
    ),
    list_only: bool = typer.Option(
        False,
        "--list",
        "-l",
        help="List log files instead of printing them",
    ),
    server: bool = typer.Option(
        False,
        "--server",
        "-s",
        help="View server logs instead of run logs",
    ),
    lines: int = typer.Option(
        50,
        "--lines",
        help="Server log lines to show with --server",
    ),
    prune: int | None = typer.Option(
        None,
        "--prune",
        min=1,
        metavar="DAYS",
        help="Delete run logs and history older than DAYS",
    ),
) -> None:
    """View run logs for a bee, or the server log.

    Examples:
        beekeeper logs inbox-triage
        beekeeper logs inbox-triage -n 3
        beekeeper logs inbox-triage --list
        beekeeper logs --server
        beekeeper logs --prune 30
    """
    if prune is not None:
        _prune(prune)
        return

    if server:
        _show_server_logs(lines)
        return

    if not bee_id:
        console.print("[red]Error:[/] Bee id is required (or use --server)")
        raise typer.Exit(1)

    files = RunLog(get_logs_dir()).log_files(bee_id)
    if not files:
        console.print(f"[yellow]No run logs for {bee_id}.[/]")
        raise typer.Exit(0)

    if list_only:
        table = Table(title=f"Run logs: {bee_id}")
        table.add_column("File", style="cyan")
        table.add_column("Size", justify="right")
        for path in files:
            table.add_row(path.name, f"{path.stat().st_size} B")
        console.print(table)
        return

    for path in reversed(files[:count]):
        console.rule(f"[cyan]{path.name}[/]")
        content = path.read_text(encoding="utf-8", errors="replace")
        console.print(content, markup=False, highlight=False)


def _show_server_logs(lines: int) -> None:
    log_file = get_log_file()
    if not log_file.exists() or log_file.stat().st_size == 0:
        console.print("[yellow]No server logs found.[/]")
        return

    with log_file.open(encoding="utf-8", errors="replace") as f:
        tail = deque(f, maxlen=lines)
    for line in tail:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def _prune(days: int) -> None:
    files = RunLog(get_logs_dir()).prune(days)

    rows = 0
    db = open_database()
    if db is not None:
        try:
            with db.session_scope() as session:
                rows = RunRepository(session).cleanup_old(days)
        finally:
            db.dispose()

    console.print(f"[green]✓[/] Removed {files} log file(s) and {rows} history record(s)")
