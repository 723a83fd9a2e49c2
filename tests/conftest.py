"""Shared fixtures for Schema-Upgrader tests."""

from pathlib import Path

import pytest

from schema_upgrader.config import Config
from schema_upgrader.migrations import UpgradeContext
from schema_upgrader.state import StateStore


class MemoryVersionStore:
    """Version store keeping the version in memory and recording writes."""

    def __init__(self, version: str = "") -> None:
        self.version = version
        self.writes: list[str] = []

    def get_current_version(self) -> str:
        return self.version

    def set_current_version(self, version: str) -> None:
        self.writes.append(version)
        self.version = version


class RecordingCache:
    """Cache invalidator appending to a shared event log."""

    def __init__(self, events: list[str]) -> None:
        self.events = events

    def clear_all(self) -> None:
        self.events.append("cache")


class RecordingMaintenance:
    """Maintenance signal appending to a shared event log."""

    def __init__(self, events: list[str], fail: bool = False) -> None:
        self.events = events
        self.fail = fail

    def set_enabled(self, enabled: bool) -> None:
        self.events.append("maintenance on" if enabled else "maintenance off")
        if self.fail:
            raise OSError("maintenance page unavailable")


@pytest.fixture
def events() -> list[str]:
    """Ordered log of cache, maintenance and action events."""
    return []


@pytest.fixture
def version_store() -> MemoryVersionStore:
    """In-memory version store starting at version "1"."""
    return MemoryVersionStore("1")


@pytest.fixture
def context(version_store: MemoryVersionStore, events: list[str]) -> UpgradeContext:
    """Upgrade context with recording collaborators and no config or state."""
    return UpgradeContext(
        config=None,
        version_store=version_store,
        cache=RecordingCache(events),
        maintenance=RecordingMaintenance(events),
    )


@pytest.fixture
def config_data(tmp_path: Path) -> dict:
    """Raw configuration pointing every path into tmp_path."""
    return {
        "paths": {
            "state_file": str(tmp_path / "state.json"),
            "sql_dir": str(tmp_path / "upgrade_sql"),
            "storage_dir": str(tmp_path / "stor"),
            "cache_dir": str(tmp_path / "cache"),
        },
        "database": {
            "host": "db.example.com",
            "user": "airtime",
            "password": "s3cret",
            "name": "airtime",
            "psql_binary": "psql",
            "timeout": 30.0,
        },
        "maintenance": {
            "enabled": False,
            "marker_file": str(tmp_path / "maintenance.txt"),
        },
    }


@pytest.fixture
def config(config_data: dict) -> Config:
    """Validated configuration rooted in tmp_path."""
    return Config.model_validate(config_data)


@pytest.fixture
def state(tmp_path: Path):
    """State store backed by a JSON file in tmp_path."""
    store = StateStore(tmp_path / "state.json")
    yield store
    store.close()
