"""Configuration management for Beekeeper."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from beekeeper.models import BeeConfig, HiveConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "hive.yaml"
DB_FILENAME = "beekeeper.db"


class ConfigError(Exception):
    """Error loading or saving configuration."""


def get_hive_dir() -> Path:
    """Get the hive directory.

    ``BEE_HOME`` overrides the default ``~/.bee``.
    """
    if home := os.environ.get("BEE_HOME"):
        return Path(home).expanduser()
    return Path.home() / ".bee"


def get_config_path(hive_dir: Path | None = None) -> Path:
    """Path to hive.yaml."""
    return (hive_dir or get_hive_dir()) / CONFIG_FILENAME


def get_logs_dir(hive_dir: Path | None = None) -> Path:
    """Directory holding per-bee run logs and server logs."""
    return (hive_dir or get_hive_dir()) / "logs"


def get_db_path(hive_dir: Path | None = None) -> Path:
    """Path to the run history database."""
    return (hive_dir or get_hive_dir()) / DB_FILENAME


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning(f"Ignoring '{key}' in hive config: expected a mapping")
        return {}
    return value


def _parse_config(data: dict[str, Any]) -> HiveConfig:
    defaults = _section(data, "defaults")
    raw_bees = _section(data, "bees")

    bees: dict[str, BeeConfig] = {}
    for bee_id, raw in raw_bees.items():
        try:
            bees[str(bee_id)] = BeeConfig.model_validate(raw or {})
        except ValidationError as e:
            logger.warning(f"Invalid config for bee '{bee_id}', using defaults: {e}")
            bees[str(bee_id)] = BeeConfig()

    fields: dict[str, Any] = {"version": data.get("version", 1), "bees": bees}
    if "cli" in defaults:
        fields["default_cli"] = defaults["cli"]
    if "model" in defaults:
        fields["default_model"] = defaults["model"]
    if "overlap" in defaults:
        fields["default_overlap"] = defaults["overlap"]

    try:
        return HiveConfig.model_validate(fields)
    except ValidationError as e:
        logger.warning(f"Invalid hive defaults, using built-in defaults: {e}")
        return HiveConfig(bees=bees)


def load_hive_config(path: Path | None = None) -> HiveConfig:
    """Load hive.yaml.

    Args:
        path: Config file path, defaults to the hive's hive.yaml.

    Returns:
        The parsed configuration, defaults if missing or unreadable.
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        return HiveConfig()

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Failed to read {config_path}: {e}")
        return HiveConfig()

    if not isinstance(data, dict):
        return HiveConfig()
    return _parse_config(data)


def dump_hive_config(config: HiveConfig) -> dict[str, Any]:
    """Convert a config to the on-disk hive.yaml structure."""
    defaults: dict[str, Any] = {"cli": config.default_cli}
    if config.default_model:
        defaults["model"] = config.default_model
    defaults["overlap"] = config.default_overlap.value

    return {
        "version": config.version,
        "defaults": defaults,
        "bees": {
            bee_id: bee.model_dump(mode="json", exclude_none=True)
            for bee_id, bee in sorted(config.bees.items())
        },
    }


def save_hive_config(config: HiveConfig, path: Path | None = None) -> None:
    """Write hive.yaml atomically.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    content = yaml.safe_dump(dump_hive_config(config), default_flow_style=False, sort_keys=False)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=config_path.parent, prefix=".hive-", suffix=".yaml")
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.replace(tmp_name, config_path)
    except OSError as e:
        raise ConfigError(f"Failed to write {config_path}: {e}") from e
