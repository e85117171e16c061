"""Shared fixtures for worklog tests."""

import copy

import pytest
from PyQt6.QtCore import QCoreApplication

from config import DEFAULT_SEEDS
from storage import SlotStorage, TaskCounter
from task_store import TaskStore
from timer_engine import TimerEngine

START_MS = 1_704_110_400_000  # 2024-01-01 12:00 UTC


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture(scope="session", autouse=True)
def qapp():
    """QTimer needs an application object in the process."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage(tmp_path):
    return SlotStorage(tmp_path / "data")


@pytest.fixture
def counter(storage):
    return TaskCounter(storage, "test-counter")


@pytest.fixture
def store(counter, clock):
    return TaskStore(counter, clock=clock)


@pytest.fixture
def engine(store, clock):
    engine = TimerEngine(store, clock=clock)
    yield engine
    engine.shutdown()


@pytest.fixture
def seeds():
    return copy.deepcopy(DEFAULT_SEEDS)
