"""CLI commands for Beekeeper."""

# Import command modules to register them with the app
# These imports have side effects (register commands via @app.command())
from beekeeper.cli.commands import (
    config_cmd,
    init,
    list_cmd,
    logs,
    run,
    serve,
    status,
)

__all__ = ["config_cmd", "init", "list_cmd", "logs", "run", "serve", "status"]
