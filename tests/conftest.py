"""Shared pytest fixtures for maptrack tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pytest
from click.testing import CliRunner

from maptrack.models.activity import CyclingActivity, RunningActivity
from maptrack.models.storage import MemoryStorage, PersistenceAdapter
from maptrack.models.store import ActivityStore


@pytest.fixture(autouse=True)
def _reset_maptrack_logger() -> Iterator[None]:
    """Drop handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger("maptrack")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def temp_data_dir(tmp_path: Path) -> Path:
    """Empty data directory."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def memory_adapter() -> PersistenceAdapter:
    """Persistence adapter over in-memory storage."""
    return PersistenceAdapter(MemoryStorage())


@pytest.fixture
def sample_run() -> RunningActivity:
    """A run created on April 14, 2024."""
    return RunningActivity(
        (40.7, -74.0),
        5.2,
        24,
        178,
        created_at=datetime(2024, 4, 14, 7, 30),
    )


@pytest.fixture
def sample_ride() -> CyclingActivity:
    """A ride created on May 2, 2024."""
    return CyclingActivity(
        (40.75, -73.98),
        27,
        95,
        523,
        created_at=datetime(2024, 5, 2, 18, 0),
    )


@pytest.fixture
def sample_store(sample_run: RunningActivity, sample_ride: CyclingActivity) -> ActivityStore:
    """Store holding one run and one ride."""
    store = ActivityStore()
    store.add(sample_run)
    store.add(sample_ride)
    return store


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click test runner."""
    return CliRunner()


@pytest.fixture
def cli_data_dir(tmp_path: Path) -> Path:
    """Data directory used by CLI tests."""
    return tmp_path / "cli-data"


@pytest.fixture
def cli_env(tmp_path: Path, cli_data_dir: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Environment isolating CLI runs from user configuration."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MAPTRACK_STORAGE_KEY", raising=False)
    return {
        "MAPTRACK_CONFIG": str(tmp_path / "missing-config.toml"),
        "MAPTRACK_DATA_DIR": str(cli_data_dir),
    }
