"""Init command for Beekeeper CLI."""

import typer

from beekeeper.cli import app, console
from beekeeper.config import (
    ConfigError,
    get_config_path,
    get_hive_dir,
    get_logs_dir,
    save_hive_config,
)
from beekeeper.models import BeeConfig, HiveConfig

EXAMPLE_BEE_ID = "hello-bee"

EXAMPLE_SKILL = """\
---
name: hello-bee
description: Example bee that greets you with the current date
metadata:
  display-name: Hello Bee
  icon: ant
allowed-tools: Bash
---

# Hello Bee

Greet the user and report the current date and time using the context
below. Nothing here needs confirmation.
"""

EXAMPLE_SCRIPT = """\
#!/bin/sh
date
"""


@app.command()
def init(
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite existing configuration",
    ),
) -> None:
    """Initialize the hive directory.

    Creates the hive (~/.bee, or $BEE_HOME) with:
    - hive.yaml with default settings
    - logs/ directory for run logs
    - An example hello-bee with a context script
    """
    hive_dir = get_hive_dir()
    config_path = get_config_path(hive_dir)

    if config_path.exists() and not force:
        console.print(f"[yellow]Hive already initialized at {hive_dir}[/]")
        console.print("Use [cyan]--force[/] to reinitialize")
        raise typer.Exit(1)

    get_logs_dir(hive_dir).mkdir(parents=True, exist_ok=True)

    bee_dir = hive_dir / EXAMPLE_BEE_ID
    scripts_dir = bee_dir / "scripts"
    scripts_dir.mkdir(parents=True, exist_ok=True)
    (bee_dir / "SKILL.md").write_text(EXAMPLE_SKILL, encoding="utf-8")
    script = scripts_dir / "date.sh"
    script.write_text(EXAMPLE_SCRIPT, encoding="utf-8")
    script.chmod(0o755)

    # Example starts disabled so nothing runs until the user opts in
    config = HiveConfig(bees={EXAMPLE_BEE_ID: BeeConfig(enabled=False, schedule="0 9 * * *")})
    try:
        save_hive_config(config, config_path)
    except ConfigError as e:
        console.print(f"[red]Error:[/] {e}")
        raise typer.Exit(1) from e

    console.print(f"[green]✓[/] Initialized hive at {hive_dir}")
    console.print(f"[green]✓[/] Created config file: {config_path}")
    console.print(f"[green]✓[/] Created example bee: {EXAMPLE_BEE_ID}")
    console.print()
    console.print(f"Run [cyan]beekeeper run {EXAMPLE_BEE_ID}[/] to test your setup")
