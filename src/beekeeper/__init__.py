"""Beekeeper: scheduled agent runs with human-in-the-loop confirmation."""

__version__ = "0.1.0"
