"""Pytest configuration for HR Chat tests."""

from unittest.mock import MagicMock

import pytest

from hrchat.cache.cache import CacheClient
from hrchat.core.intents import Requester
from hrchat.data.database import build_engine, build_session_factory, create_tables
from hrchat.data.employee_store import EmployeeStore
from hrchat.history.session_history import SessionHistoryManager
from hrchat.realtime.broadcaster import AdminNotifier, Broadcaster


# ---------------------------------------------------------------------------
# Seed data: ids are assigned in this order (1..5)
# ---------------------------------------------------------------------------

EMPLOYEES = [
    {"name": "Alice Smith", "position": "Engineer", "department": "Engineering", "salary": 120000, "createdBy": "alice"},
    {"name": "John Doe", "position": "Developer", "department": "Engineering", "salary": 95000, "createdBy": "bob"},
    {"name": "Mary Jones", "position": "Accountant", "department": "Finance", "salary": 70000, "createdBy": "alice"},
    {"name": "Carol King", "position": "Director", "department": "Sales", "salary": 150000, "createdBy": "bob"},
    {"name": "John Park", "position": "Designer", "department": "Marketing", "salary": 60000, "createdBy": "alice"},
]


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def store(session_factory):
    return EmployeeStore(session_factory)


@pytest.fixture
def seeded_store(store):
    for employee in EMPLOYEES:
        store.insert(employee)
    return store


@pytest.fixture
def history(session_factory):
    return SessionHistoryManager(session_factory, context_window=10)


@pytest.fixture
def cache():
    """Cache double: always a miss."""
    mock = MagicMock(spec=CacheClient)
    mock.get.return_value = None
    mock.delete_pattern.return_value = 0
    mock.get_notifications.return_value = []
    mock.ping.return_value = True
    return mock


@pytest.fixture
def broadcaster():
    return MagicMock(spec=Broadcaster)


@pytest.fixture
def notifier():
    return MagicMock(spec=AdminNotifier)


@pytest.fixture
def admin():
    return Requester(username="root", role="admin")


@pytest.fixture
def alice():
    return Requester(username="alice", role="user")


@pytest.fixture
def bob():
    return Requester(username="bob", role="user")
