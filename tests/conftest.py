"""
Pytest Configuration and Fixtures
===================================

Fixtures:
    - fixed_now: Frozen UTC timestamp used as the clock
    - memory_storage: Empty in-memory slot storage
    - file_storage: JSON file storage in a temporary directory
    - database: Initialized data store on memory storage
    - timer: Meditation timer wired to the data store
"""

from datetime import datetime

import pytest
import pytz

from stillmind.core.database import create_database_manager
from stillmind.database.manager import JsonFileStorage, MemoryStorage
from stillmind.services.timer_service import MeditationTimer


FIXED_NOW = datetime(2026, 10, 16, 9, 30, tzinfo=pytz.utc)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: Tests that touch the filesystem or CLI"
    )


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now):
    return lambda: fixed_now


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def file_storage(tmp_path):
    return JsonFileStorage(tmp_path / "data")


@pytest.fixture
def database(memory_storage, clock):
    """Initialized store; shut down after the test."""
    manager = create_database_manager(memory_storage, clock=clock)
    yield manager
    manager.shutdown()


@pytest.fixture
def timer(database, clock):
    return MeditationTimer(database, clock=clock)
