"""Bee discovery and config persistence for Beekeeper."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from beekeeper.config import (
    ConfigError,
    get_config_path,
    get_hive_dir,
    load_hive_config,
    save_hive_config,
)
from beekeeper.models import Bee, BeeConfig, HiveConfig

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

SKILL_FILENAME = "SKILL.md"


class HiveError(Exception):
    """Error reading the hive directory."""


def parse_frontmatter(content: str) -> dict[str, Any]:
    """Parse the YAML front-matter block of a SKILL.md.

    Args:
        content: Full document text.

    Returns:
        The front-matter mapping, empty if absent or invalid.
    """
    lines = content.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}

    for index, line in enumerate(lines[1:], start=1):
        if line.strip() == "---":
            block = "\n".join(lines[1:index])
            break
    else:
        return {}

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.warning(f"Invalid front-matter: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def parse_allowed_tools(value: Any) -> tuple[str, ...]:
    """Normalize allowed-tools given as a list or a space-separated string."""
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(value.split())
    if isinstance(value, list):
        return tuple(str(item).strip() for item in value if str(item).strip())
    return ()


class HiveManager:
    """Catalog of bees found in the hive directory.

    A bee is any sub-directory containing a SKILL.md. Its id is the folder
    name; display name, icon, description and allowed tools come from the
    SKILL.md front-matter. Per-bee settings live in hive.yaml.
    """

    def __init__(self, hive_dir: Path | None = None, config_path: Path | None = None) -> None:
        """Initialize the manager.

        Args:
            hive_dir: Directory to scan, defaults to ~/.bee.
            config_path: hive.yaml location, defaults to <hive_dir>/hive.yaml.
        """
        self._hive_dir = hive_dir or get_hive_dir()
        self._config_path = config_path or get_config_path(self._hive_dir)
        self._lock = threading.Lock()
        self._bees: tuple[Bee, ...] = ()
        self._config = HiveConfig()
        self.last_error: str | None = None

    @property
    def hive_dir(self) -> Path:
        """The directory bees are discovered in."""
        return self._hive_dir

    @property
    def bees(self) -> tuple[Bee, ...]:
        """Current bee snapshot, sorted by display name."""
        return self._bees

    @property
    def config(self) -> HiveConfig:
        """Current hive configuration."""
        return self._config

    def get_bee(self, bee_id: str) -> Bee | None:
        """Look up a bee by id."""
        for bee in self._bees:
            if bee.id == bee_id:
                return bee
        return None

    def refresh(self) -> tuple[Bee, ...]:
        """Rescan the hive and reload hive.yaml.

        Newly discovered bees get a default config, which is persisted.

        Returns:
            The new bee snapshot.
        """
        with self._lock:
            self.last_error = None
            try:
                self._hive_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self.last_error = f"Failed to create {self._hive_dir}: {e}"
                logger.error(self.last_error)
                return self._bees

            config = load_hive_config(self._config_path)
            bees = self._discover(config)

            missing = [bee.id for bee in bees if bee.id not in config.bees]
            if missing:
                updated = dict(config.bees)
                for bee_id in missing:
                    updated[bee_id] = BeeConfig()
                config = config.model_copy(update={"bees": updated})
                self._save(config)

            # Publish atomically: readers see either the old or new tuple
            self._config = config
            self._bees = tuple(bees)
            logger.info(f"Discovered {len(bees)} bee(s) in {self._hive_dir}")
            return self._bees

    def _discover(self, config: HiveConfig) -> list[Bee]:
        try:
            entries = sorted(self._hive_dir.iterdir())
        except OSError as e:
            self.last_error = f"Failed to read {self._hive_dir}: {e}"
            logger.error(self.last_error)
            return []

        bees: list[Bee] = []
        for entry in entries:
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            if not (entry / SKILL_FILENAME).is_file():
                continue
            bee = self._parse_bee(entry, config)
            if bee is not None:
                bees.append(bee)

        bees.sort(key=lambda b: b.display_name.casefold())
        return bees

    @staticmethod
    def _parse_bee(path: Path, config: HiveConfig) -> Bee | None:
        try:
            content = (path / SKILL_FILENAME).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping {path.name}: {e}")
            return None

        frontmatter = parse_frontmatter(content)
        metadata = frontmatter.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}

        return Bee(
            id=path.name,
            display_name=str(metadata.get("display-name") or path.name),
            icon=str(metadata.get("icon") or "ant"),
            description=str(frontmatter.get("description") or ""),
            path=path,
            allowed_tools=parse_allowed_tools(frontmatter.get("allowed-tools")),
            config=config.bees.get(path.name, BeeConfig()),
        )

    def update_bee_config(self, bee_id: str, mutator: Callable[[BeeConfig], BeeConfig]) -> Bee:
        """Change one bee's settings and persist them.

        Args:
            bee_id: Bee to update.
            mutator: Receives a copy of the current config and returns the
                new one.

        Returns:
            The updated bee snapshot.

        Raises:
            HiveError: If no bee has this id.
            ConfigError: If hive.yaml cannot be written.
        """
        with self._lock:
            bee = self.get_bee(bee_id)
            if bee is None:
                raise HiveError(f"Bee not found: {bee_id}")

            new_config = BeeConfig.model_validate(
                mutator(bee.config.model_copy()).model_dump()
            )
            updated_bee = bee.with_config(new_config)

            bees = dict(self._config.bees)
            bees[bee_id] = new_config
            config = self._config.model_copy(update={"bees": bees})
            self._save(config, strict=True)

            self._config = config
            self._bees = tuple(updated_bee if b.id == bee_id else b for b in self._bees)
            logger.info(f"Updated config for {bee_id}")
            return updated_bee

    def update_global_config(self, mutator: Callable[[HiveConfig], HiveConfig]) -> HiveConfig:
        """Change the global defaults and persist them.

        Raises:
            ConfigError: If hive.yaml cannot be written.
        """
        with self._lock:
            config = HiveConfig.model_validate(mutator(self._config.model_copy()).model_dump())
            self._save(config, strict=True)
            self._config = config
            return config

    def _save(self, config: HiveConfig, strict: bool = False) -> None:
        try:
            save_hive_config(config, self._config_path)
        except ConfigError as e:
            if strict:
                raise
            logger.warning(str(e))
