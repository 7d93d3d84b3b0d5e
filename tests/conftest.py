"""Shared fixtures: a fresh in-memory database per test."""

import locale
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import create_engine
from sqlmodel.pool import StaticPool

from todo.database import create_db_and_tables
from todo.models import TaskPriority, TaskRecord
from todo.settings import SettingsStore
from todo.store import TaskStore

BASE_TIME = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(name="engine")
def engine_fixture():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture(name="store")
def store_fixture(engine):
    return TaskStore(engine)


@pytest.fixture(name="settings")
def settings_fixture(engine):
    return SettingsStore(engine)


def make_record(
    title="Task",
    *,
    id=None,
    notes="",
    category="General",
    priority=TaskPriority.medium,
    due_date=None,
    is_completed=False,
    created_minutes=0,
):
    """Build a TaskRecord created *created_minutes* after BASE_TIME."""
    return TaskRecord(
        id=id or title,
        title=title,
        notes=notes,
        category=category,
        priority=priority,
        due_date=due_date,
        is_completed=is_completed,
        created_at=BASE_TIME + timedelta(minutes=created_minutes),
    )


COLLATING_LOCALES = ("en_US.UTF-8", "en_US.utf8", "en_GB.UTF-8", "de_DE.UTF-8", "fr_FR.UTF-8")


def find_collating_locale():
    """First installed UTF-8 locale with language-aware collation, or None."""
    current = locale.setlocale(locale.LC_COLLATE)
    try:
        for name in COLLATING_LOCALES:
            try:
                locale.setlocale(locale.LC_COLLATE, name)
            except locale.Error:
                continue
            return name
        return None
    finally:
        locale.setlocale(locale.LC_COLLATE, current)


@pytest.fixture(name="restore_collation")
def restore_collation_fixture():
    """Put LC_COLLATE back after a test changes it."""
    current = locale.setlocale(locale.LC_COLLATE)
    yield
    locale.setlocale(locale.LC_COLLATE, current)


@pytest.fixture(name="collating_locale")
def collating_locale_fixture(restore_collation):
    name = find_collating_locale()
    if name is None:
        pytest.skip("no UTF-8 locale with language collation installed")
    return name
