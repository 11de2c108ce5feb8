"""Beekeeper API routes."""

from . import bees, confirmations, control, health, runs

__all__ = [
    "bees",
    "confirmations",
    "control",
    "health",
    "runs",
]
