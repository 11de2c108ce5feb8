"""Utility functions for Beekeeper CLI."""

from __future__ import annotations

import typer

from beekeeper.cli import console
from beekeeper.config import get_config_path, get_db_path, get_hive_dir
from beekeeper.models import Bee
from beekeeper.scheduler import HiveManager
from beekeeper.storage import Database, init_database


def load_hive() -> HiveManager:
    """Load the hive, exiting if it was never initialized.

    Raises:
        typer.Exit: If the hive directory or hive.yaml is missing.
    """
    hive_dir = get_hive_dir()
    if not get_config_path(hive_dir).exists():
        console.print(f"[yellow]No hive found at {hive_dir}.[/]")
        console.print("Run [cyan]beekeeper init[/] to create it.")
        raise typer.Exit(1)

    hive = HiveManager(hive_dir)
    hive.refresh()
    if hive.last_error:
        console.print(f"[red]Error:[/] {hive.last_error}")
        raise typer.Exit(1)
    return hive


def require_bee(hive: HiveManager, bee_id: str) -> Bee:
    """Look up a bee by id, exiting with the available ids if missing.

    Raises:
        typer.Exit: If no bee has this id.
    """
    bee = hive.get_bee(bee_id)
    if bee is not None:
        return bee

    console.print(f"[red]Error:[/] Bee not found: {bee_id}")
    if hive.bees:
        console.print(f"Available: {', '.join(b.id for b in hive.bees)}")
    else:
        console.print(f"No bees in {hive.hive_dir}")
    raise typer.Exit(1)


def open_database(create: bool = False) -> Database | None:
    """Open the run history database.

    Args:
        create: Create the database file if it does not exist yet.

    Returns:
        The database, or None if it does not exist and create is False.
    """
    db_path = get_db_path()
    if not db_path.exists() and not create:
        return None
    return init_database(db_path)
