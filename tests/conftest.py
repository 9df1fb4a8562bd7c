"""Pytest configuration and shared fixtures."""

import tempfile
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def scriptpilot_home(temp_dir: Path) -> Path:
    """Create a temporary ScriptPilot home directory."""
    home = temp_dir / ".scriptpilot"
    home.mkdir()
    return home


@pytest.fixture
def launcher() -> MagicMock:
    """Create a mock script launcher."""
    return MagicMock()


@pytest.fixture
def script(temp_dir: Path) -> Path:
    """Create a runnable Python script."""
    path = temp_dir / "job.py"
    path.write_text("import sys\n")
    return path

