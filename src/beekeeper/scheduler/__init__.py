"""Beekeeper scheduling.

The Scheduler ticks once a minute (via APScheduler) and applies each bee's
overlap policy; the HiveManager supplies the bee catalog it evaluates.
"""

from .hive import HiveError, HiveManager, parse_allowed_tools, parse_frontmatter
from .service import Scheduler, next_minute_boundary

__all__ = [
    "HiveError",
    "HiveManager",
    "Scheduler",
    "next_minute_boundary",
    "parse_allowed_tools",
    "parse_frontmatter",
]
