"""Beekeeper API server.

Lists bees, triggers runs, edits schedules and answers confirmation
requests over HTTP.
"""

from .app import create_app

__all__ = ["create_app"]
