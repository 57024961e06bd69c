"""Shared test fixtures for GreenDay tests."""

from __future__ import annotations

import json
import os
from datetime import date
from pathlib import Path

import pytest
import yaml

from greenday.clock import FixedClock
from greenday.errors import StorageUnavailable
from greenday.storage import JsonFileStorage, MemoryStorage
from greenday.store import DateStateStore


class FlakyStorage(MemoryStorage):
    """MemoryStorage whose reads and writes can be switched off."""

    def __init__(self, data=None):
        super().__init__(data)
        self.fail_reads = False
        self.fail_writes = False

    def load(self):
        if self.fail_reads:
            raise StorageUnavailable("Storage read disabled")
        return super().load()

    def save(self, data):
        if self.fail_writes:
            raise StorageUnavailable("Storage write disabled")
        super().save(data)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a profile and some saved days."""
    root = tmp_path / "workspace"
    (root / "tracker").mkdir(parents=True)

    profile = {"timezone": "UTC", "week_start": "sun"}
    (root / "tracker" / "profile.yaml").write_text(
        yaml.dump(profile, default_flow_style=False), encoding="utf-8"
    )

    state = {
        "greenDates": ["2024-01-10", "2024-01-12"],
        "redDates": ["2024-01-11"],
        "installDate": "2024-01-10T00:00:00+00:00",
    }
    (root / "tracker" / "state.json").write_text(
        json.dumps(state, indent=2), encoding="utf-8"
    )

    os.environ["GREENDAY_ROOT"] = str(root)
    yield root
    if "GREENDAY_ROOT" in os.environ:
        del os.environ["GREENDAY_ROOT"]


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-01-12 noon UTC."""
    return FixedClock(date(2024, 1, 12))


@pytest.fixture
def flaky_storage():
    """Factory for storage whose reads and writes can be made to fail."""
    return FlakyStorage


@pytest.fixture
def fresh_store(clock: FixedClock) -> DateStateStore:
    """An initialized store over empty in-memory storage, installed 'today'."""
    store = DateStateStore(MemoryStorage(), clock)
    store.initialize()
    return store


@pytest.fixture
def scenario_store(clock: FixedClock) -> DateStateStore:
    """Installed 2024-01-10, today 2024-01-12, nothing marked yet."""
    storage = FlakyStorage({"installDate": "2024-01-10T00:00:00+00:00"})
    store = DateStateStore(storage, clock)
    store.initialize()
    return store


@pytest.fixture
def file_store(workspace: Path, clock: FixedClock) -> DateStateStore:
    store = DateStateStore(JsonFileStorage(root=workspace), clock)
    store.initialize()
    return store
