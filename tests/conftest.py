"""Shared test fixtures for tallysheet tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tallysheet.config import TallysheetConfig
from tallysheet.engine.controller import TimesheetController
from tallysheet.stores.memory import InMemoryStore
from tests.fakes.store import RecordingObserver


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def controller(store: InMemoryStore, observer: RecordingObserver) -> TimesheetController:
    """Controller with a short debounce so tests can drain quickly."""
    return TimesheetController(store, debounce_ms=10, observer=observer)


@pytest.fixture
def sample_config() -> TallysheetConfig:
    return TallysheetConfig(store="memory", auth="none", debounce_ms=10)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "tallysheet.json"
    path.write_text(json.dumps({"store": "memory", "auth": "none", "debounce_ms": 5}), encoding="utf-8")
    return path
