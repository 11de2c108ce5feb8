"""Beekeeper storage layer.

Run history lives in SQLite via SQLAlchemy; every run also gets a
Markdown log file under the hive's logs directory.
"""

from .database import Database, init_database
from .models import Base, Run
from .repositories import RunRepository
from .run_log import RunLog, format_log

__all__ = [
    "Base",
    "Database",
    "Run",
    "RunLog",
    "RunRepository",
    "format_log",
    "init_database",
]
