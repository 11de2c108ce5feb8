"""Beekeeper data models."""

from .bee import (
    DEFAULT_CLI,
    DEFAULT_CONFIRM_TIMEOUT,
    DEFAULT_SCHEDULE,
    Bee,
    BeeConfig,
    HiveConfig,
    OverlapPolicy,
    resolve_cli,
    resolve_model,
    resolve_overlap,
    resolve_timeout,
)

__all__ = [
    "DEFAULT_CLI",
    "DEFAULT_CONFIRM_TIMEOUT",
    "DEFAULT_SCHEDULE",
    "Bee",
    "BeeConfig",
    "HiveConfig",
    "OverlapPolicy",
    "resolve_cli",
    "resolve_model",
    "resolve_overlap",
    "resolve_timeout",
]
