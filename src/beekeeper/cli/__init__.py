"""Beekeeper CLI interface."""

import typer
from rich.console import Console

# CLI App
app = typer.Typer(
    name="beekeeper",
    help="Run agent bees on cron schedules, with human confirmation for risky steps.",
    no_args_is_help=True,
)

# Console for rich output
console = Console()

# Server defaults
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080

# Import commands to register them
from beekeeper.cli.commands import (  # noqa: E402, F401
    config_cmd,
    init,
    list_cmd,
    logs,
    run,
    serve,
    status,
)


@app.command()
def version() -> None:
    """Show Beekeeper version."""
    from beekeeper import __version__

    console.print(f"Beekeeper v{__version__}")


if __name__ == "__main__":
    app()
