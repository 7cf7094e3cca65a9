"""Gemeinsame Fixtures: In-Memory-Speicher mit Standard-Räumen und -Tagen."""

from datetime import datetime, timezone

import pytest

from booking.engine import ScheduleEngine
from booking.state import ScheduleStore
from config.defaults import build_day_template, default_days, default_rooms
from data.memory_store import InMemoryDocumentStore

FIXED_NOW = datetime(2025, 7, 10, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def room_names() -> dict[str, str]:
    return {r.id: r.name for r in default_rooms()}


@pytest.fixture
def template():
    return build_day_template(default_days())


@pytest.fixture
def gateway() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def store(gateway, room_names, template) -> ScheduleStore:
    s = ScheduleStore(gateway, room_names, template)
    s.open()
    return s


@pytest.fixture
def engine(store) -> ScheduleEngine:
    return ScheduleEngine(store, clock=lambda: FIXED_NOW)
