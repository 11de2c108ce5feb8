"""Config command for Beekeeper CLI."""

from __future__ import annotations

from typing import Any

import typer

from beekeeper.cli import app, console
from beekeeper.cli.utils import load_hive, require_bee
from beekeeper.config import ConfigError
from beekeeper.engine.cron import is_valid, to_english
from beekeeper.models import OverlapPolicy, resolve_overlap, resolve_timeout
from beekeeper.scheduler import HiveManager


def _show(hive: HiveManager, bee_id: str | None) -> None:
    defaults = hive.config
    if bee_id is None:
        console.print("[bold]Hive defaults[/]")
        console.print(f"  cli:     {defaults.default_cli}")
        console.print(f"  model:   {defaults.default_model or '[dim]CLI default[/]'}")
        console.print(f"  overlap: {defaults.default_overlap.value}")
        return

    bee = require_bee(hive, bee_id)
    config = bee.config
    inherited = "[dim](inherited)[/]"
    console.print(f"[bold]{bee.display_name}[/] [dim]({bee.id})[/]")
    console.print(f"  enabled:  {config.enabled}")
    console.print(f"  schedule: {config.schedule}  [dim]{to_english(config.schedule)}[/]")
    console.print(f"  cli:      {config.cli or f'{defaults.default_cli} {inherited}'}")
    console.print(f"  model:    {config.model or inherited}")
    overlap = resolve_overlap(config.overlap, defaults.default_overlap).value
    console.print(f"  overlap:  {overlap}{'' if config.overlap else ' ' + inherited}")
    timeout = resolve_timeout(config)
    console.print(f"  timeout:  {timeout}s{'' if config.timeout else ' ' + inherited}")


@app.command("config")
def config_cmd(
    bee_id: str = typer.Argument(None, help="Bee id; omit to change the hive defaults"),
    schedule: str | None = typer.Option(
        None,
        "--schedule",
        help='5-field cron expression, e.g. "0 9 * * 1-5"',
    ),
    enabled: bool | None = typer.Option(
        None,
        "--enable/--disable",
        help="Enable or disable the schedule",
    ),
    cli: str | None = typer.Option(None, "--cli", help="CLI executable"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model selector"),
    overlap: OverlapPolicy | None = typer.Option(
        None,
        "--overlap",
        help="What to do when triggered while running",
    ),
    timeout: int | None = typer.Option(
        None,
        "--timeout",
        min=1,
        help="Confirmation timeout in seconds",
    ),
    reset: bool = typer.Option(
        False,
        "--reset",
        help="Clear the bee's cli, model, overlap and timeout overrides",
    ),
) -> None:
    """Show or change bee settings in hive.yaml.

    Without options, prints the current settings. A running server picks up
    changes on its next refresh.

    Examples:
        beekeeper config inbox-triage
        beekeeper config inbox-triage --schedule "0 9 * * 1-5" --enable
        beekeeper config inbox-triage --overlap queue
        beekeeper config --cli claude --model sonnet
    """
    hive = load_hive()

    if bee_id is None:
        if schedule is not None or enabled is not None or timeout is not None or reset:
            console.print("[red]Error:[/] --schedule, --enable, --timeout and --reset need a bee")
            raise typer.Exit(1)

        global_changes: dict[str, Any] = {}
        if cli is not None:
            global_changes["default_cli"] = cli
        if model is not None:
            global_changes["default_model"] = model
        if overlap is not None:
            global_changes["default_overlap"] = overlap

        if global_changes:
            try:
                hive.update_global_config(lambda c: c.model_copy(update=global_changes))
            except ConfigError as e:
                console.print(f"[red]Error:[/] {e}")
                raise typer.Exit(1) from e
            console.print("[green]✓[/] Updated hive defaults")
        _show(hive, None)
        return

    require_bee(hive, bee_id)

    changes: dict[str, Any] = {}
    if reset:
        changes.update(cli=None, model=None, overlap=None, timeout=None)
    if schedule is not None:
        if not is_valid(schedule):
            console.print(f"[red]Error:[/] Invalid cron expression (expected 5 fields): {schedule}")
            raise typer.Exit(1)
        changes["schedule"] = schedule
    if enabled is not None:
        changes["enabled"] = enabled
    if cli is not None:
        changes["cli"] = cli
    if model is not None:
        changes["model"] = model
    if overlap is not None:
        changes["overlap"] = overlap
    if timeout is not None:
        changes["timeout"] = timeout

    if changes:
        try:
            hive.update_bee_config(bee_id, lambda c: c.model_copy(update=changes))
        except ConfigError as e:
            console.print(f"[red]Error:[/] {e}")
            raise typer.Exit(1) from e
        console.print(f"[green]✓[/] Updated {bee_id}")

    _show(hive, bee_id)
