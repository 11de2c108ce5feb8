"""Pytest configuration and shared fixtures."""

import tempfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from beekeeper.models import Bee, BeeConfig

SKILL_TEMPLATE = """\
---
name: {bee_id}
description: {description}
metadata:
  display-name: {name}
  icon: bolt
allowed-tools: Bash Read
---

# {name}

Check the context and report anything unusual.
"""


def write_skill(path: Path, bee_id: str, name: str, description: str = "Test bee") -> Path:
    """Create a bee folder with a SKILL.md."""
    path.mkdir(parents=True, exist_ok=True)
    (path / "SKILL.md").write_text(
        SKILL_TEMPLATE.format(bee_id=bee_id, name=name, description=description)
    )
    return path


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def hive_dir(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create a temporary hive and point BEE_HOME at it."""
    home = temp_dir / ".bee"
    home.mkdir()
    monkeypatch.setenv("BEE_HOME", str(home))
    return home


@pytest.fixture
def add_bee(hive_dir: Path) -> Callable[..., Path]:
    """Add a bee folder to the temporary hive."""

    def _add(bee_id: str, name: str | None = None, description: str = "Test bee") -> Path:
        return write_skill(hive_dir / bee_id, bee_id, name or bee_id.title(), description)

    return _add


@pytest.fixture
def make_bee(temp_dir: Path) -> Callable[..., Bee]:
    """Build a Bee backed by a real folder, with config overrides."""

    def _make(bee_id: str = "test-bee", **config: object) -> Bee:
        path = write_skill(temp_dir / "bees" / bee_id, bee_id, bee_id.title())
        return Bee(
            id=bee_id,
            display_name=bee_id.title(),
            path=path,
            allowed_tools=("Bash", "Read"),
            config=BeeConfig(**config),
        )

    return _make
