"""Allow ``python -m beekeeper``."""

from beekeeper.cli import app

app()
