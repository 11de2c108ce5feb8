"""Run command for Beekeeper CLI."""

from __future__ import annotations

import asyncio

import typer
from rich.panel import Panel
from rich.text import Text

from beekeeper.cli import app, console
from beekeeper.cli.utils import load_hive, open_database, require_bee
from beekeeper.config import get_logs_dir
from beekeeper.engine.confirm import ConfirmationBroker
from beekeeper.engine.runner import BeeRunner
from beekeeper.models import resolve_cli, resolve_model
from beekeeper.notify import ConsolePresenter
from beekeeper.storage import RunLog


@app.command()
def run(
    bee_id: str = typer.Argument(..., help="Bee id (its folder name)"),
    cli: str | None = typer.Option(
        None,
        "--cli",
        help="CLI to run with, overriding the bee and hive settings",
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model to run with",
    ),
    timeout: int | None = typer.Option(
        None,
        "--timeout",
        "-t",
        min=1,
        help="Seconds to wait for a confirmation answer",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output result as JSON",
    ),
) -> None:
    """Run a bee once in the foreground.

    Confirmation requests are asked on this terminal. The run is recorded
    in the run log like scheduled runs.

    Examples:
        beekeeper run inbox-triage
        beekeeper run inbox-triage --model sonnet
        beekeeper run inbox-triage --timeout 60
    """
    hive = load_hive()
    bee = require_bee(hive, bee_id)
    if timeout is not None:
        bee = bee.with_config(bee.config.model_copy(update={"timeout": timeout}))

    resolved_cli = cli or resolve_cli(bee.config.cli, hive.config.default_cli)
    resolved_model = model or resolve_model(bee.config.model, hive.config.default_model)

    db = open_database(create=True)
    run_log = RunLog(get_logs_dir(hive.hive_dir), db)
    broker = ConfirmationBroker(ConsolePresenter(console))
    runner = BeeRunner(broker, run_log=run_log)

    if not json_output:
        console.print(f"[cyan]Running {bee.display_name} with {resolved_cli}...[/]")

    try:
        result = asyncio.run(runner.run(bee, resolved_cli, resolved_model))
    finally:
        if db is not None:
            db.dispose()

    if json_output:
        console.print_json(
            data={
                "bee": bee.id,
                "success": result.success,
                "duration": round(result.duration, 2),
                "output": result.output,
                "error": result.error,
            }
        )
    else:
        if result.output:
            console.print(Panel(Text(result.output), title="Output", expand=False))
        if result.success:
            console.print(f"[green]✓[/] Completed in {result.duration:.1f}s")
        else:
            console.print(f"[red]✗[/] Failed: {result.error}")

    if not result.success:
        raise typer.Exit(1)
