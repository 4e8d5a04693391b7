"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import yaml

from airwatch.config.defaults import DEFAULT_CITIES
from airwatch.config.schema import AppConfig
from airwatch.models.air_quality import MetricSnapshot
from airwatch.models.common import Pollutant
from airwatch.storage.snapshot_repo import SqliteSnapshotStore


class FakeClock:
    """Controllable UTC clock: call it for the time, ``advance`` to move it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 14, 12, 0, tzinfo=UTC))


@pytest.fixture
def store(tmp_path: Path):
    s = SqliteSnapshotStore(tmp_path / "test.db")
    yield s
    s.close()


@pytest.fixture
def default_config() -> AppConfig:
    """Return default AppConfig with default cities."""
    return AppConfig(cities=DEFAULT_CITIES)


@pytest.fixture
def config_yaml_path(tmp_path: Path) -> Path:
    """Write a minimal valid config YAML and return its path."""
    data = {
        "upstream": {"token": "test-token", "max_retries": 1},
        "cache": {"live_ttl_minutes": 15},
        "persistence": {"db_path": str(tmp_path / "airwatch.db")},
    }
    path = tmp_path / "test_config.yaml"
    with open(path, "w") as f:
        yaml.dump(data, f)
    return path


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def make_snapshot():
    """Factory for persisted-style snapshots with a PM2.5 reading."""

    def _make(target: str, timestamp: datetime, index: int) -> MetricSnapshot:
        return MetricSnapshot(
            target=target,
            timestamp=timestamp,
            index=index,
            dominant_pollutant="pm25",
            concentrations={Pollutant.PM25: float(index)},
        )

    return _make
