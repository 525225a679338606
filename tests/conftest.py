"""Shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chronorepeat.database import DatabaseManager


class FakeClock:
    """Controllable clock returning epoch milliseconds."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now


@pytest.fixture
def db_manager():
    """In-memory database, fresh per test."""
    manager = DatabaseManager(database_url="sqlite://")
    manager.initialize()
    yield manager
    manager.close()


@pytest.fixture
def clock():
    return FakeClock(12000)
