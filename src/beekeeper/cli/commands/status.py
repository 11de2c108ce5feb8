"""Status command for Beekeeper CLI."""

from __future__ import annotations

import typer
from rich.table import Table

from beekeeper.cli import app, console
from beekeeper.cli.commands.serve import get_log_file, is_server_running
from beekeeper.cli.utils import load_hive, open_database
from beekeeper.config import get_db_path, get_hive_dir
from beekeeper.storage import RunRepository


@app.command()
def status(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """Show the hive, server and last run of every bee."""
    hive_dir = get_hive_dir()
    running, pid = is_server_running()
    hive = load_hive()
    db = open_database()

    last_runs: dict[str, dict[str, object]] = {}
    if db is not None:
        try:
            with db.session_scope() as session:
                repo = RunRepository(session)
                for bee in hive.bees:
                    last = repo.get_last(bee.id)
                    if last is not None:
                        last_runs[bee.id] = {
                            "started_at": last.started_at.isoformat(),
                            "success": last.success,
                            "duration": last.duration,
                            "error": last.error,
                            "runs": repo.count_by_bee(bee.id),
                        }
        finally:
            db.dispose()

    if json_output:
        console.print_json(
            data={
                "hive_dir": str(hive_dir),
                "server": {"running": running, "pid": pid},
                "bees": [
                    {
                        "id": bee.id,
                        "enabled": bee.config.enabled,
                        "last_run": last_runs.get(bee.id),
                    }
                    for bee in hive.bees
                ],
            }
        )
        return

    console.print("[bold]Beekeeper Status[/]")
    console.print()
    console.print(f"[dim]Hive directory:[/] {hive_dir}")

    db_file = get_db_path(hive_dir)
    if db_file.exists():
        size_kb = db_file.stat().st_size / 1024
        console.print(f"[dim]Database:[/] {db_file} ({size_kb:.1f} KB)")
    else:
        console.print("[dim]Database:[/] [yellow]No runs recorded yet[/]")

    enabled = sum(1 for bee in hive.bees if bee.config.enabled)
    console.print(f"[dim]Bees:[/] {len(hive.bees)} ({enabled} enabled)")

    if running:
        console.print(f"[green]Server is running[/] (PID: {pid})")
        console.print(f"[dim]Log file:[/] {get_log_file()}")
    else:
        console.print("[yellow]Server is not running[/]")
        console.print("Start with [cyan]beekeeper serve --daemon[/]")

    if not hive.bees:
        return

    console.print()
    table = Table(title="Last runs")
    table.add_column("Bee", style="cyan")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Duration", justify="right")
    table.add_column("Runs", justify="right")

    for bee in hive.bees:
        info = last_runs.get(bee.id)
        if info is None:
            table.add_row(bee.id, "[dim]never run[/]", "", "", "0")
            continue
        state = "[green]success[/]" if info["success"] else "[red]failed[/]"
        table.add_row(
            bee.id,
            state,
            str(info["started_at"]).replace("T", " "),
            f"{info['duration']:.1f}s",
            str(info["runs"]),
        )

    console.print(table)
