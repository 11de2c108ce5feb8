"""List command for Beekeeper CLI."""

from typing import Any

import typer
from rich.table import Table

from beekeeper.cli import app, console
from beekeeper.cli.utils import load_hive
from beekeeper.engine.cron import format_next_run, next_run, to_english
from beekeeper.models import resolve_cli, resolve_overlap


@app.command("list")
def list_bees(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """List bees in the hive with their schedules."""
    hive = load_hive()
    defaults = hive.config

    bees: list[dict[str, Any]] = []
    for bee in hive.bees:
        config = bee.config
        upcoming = next_run(config.schedule) if config.enabled else None
        bees.append(
            {
                "id": bee.id,
                "name": bee.display_name,
                "description": bee.description,
                "enabled": config.enabled,
                "schedule": config.schedule,
                "schedule_description": to_english(config.schedule),
                "next_run": upcoming.isoformat() if upcoming else None,
                "next_run_display": format_next_run(upcoming) if upcoming else "",
                "cli": resolve_cli(config.cli, defaults.default_cli),
                "overlap": resolve_overlap(config.overlap, defaults.default_overlap).value,
            }
        )

    if json_output:
        console.print_json(
            data={"bees": [{k: v for k, v in b.items() if k != "next_run_display"} for b in bees]}
        )
        return

    if not bees:
        console.print("[yellow]No bees found.[/]")
        console.print(f"Create a folder with a SKILL.md in: [cyan]{hive.hive_dir}[/]")
        return

    table = Table(title="Bees")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Schedule")
    table.add_column("Next run")
    table.add_column("Overlap")
    table.add_column("CLI")

    for info in bees:
        schedule = info["schedule_description"]
        if not info["enabled"]:
            schedule = f"[dim]{schedule} (disabled)[/]"
        table.add_row(
            info["id"],
            info["name"],
            schedule,
            info["next_run_display"] or "[dim]-[/]",
            info["overlap"],
            info["cli"],
        )

    console.print(table)
    console.print()
    console.print(f"[dim]Hive directory: {hive.hive_dir}[/]")
