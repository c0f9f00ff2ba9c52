"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest
from rest_framework.test import APIClient

from planner.services import build_planner
from planner.services.notifier import Notifier
from planner.stores.memory_store import MemoryPlannerStore

NOW = datetime(2029, 12, 10, 12, 0, tzinfo=timezone.utc)
DEADLINE = datetime(2029, 12, 20, tzinfo=timezone.utc)

INVITES = [
    {"label": "Alice", "slug": "alice"},
    {"label": "Bob", "slug": "bob"},
    {"label": "Carol", "slug": "carol"},
    {"label": "Dan", "slug": "dan"},
]


class FixedClock:
    """Clock returning a settable instant."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now += timedelta(**delta)


class RecordingNotifier(Notifier):
    """Notifier that keeps every emitted event."""

    def __init__(self) -> None:
        self.events = []

    def emit(self, event_id, name, payload) -> None:
        self.events.append((str(event_id), name, payload))

    def names(self) -> list[str]:
        return [name for _, name, _ in self.events]


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> MemoryPlannerStore:
    return MemoryPlannerStore()


@pytest.fixture
def planner(store, notifier, clock):
    return build_planner(store, notifier, clock)


@pytest.fixture
def make_event(planner):
    """Create a Jan 1-7 2030 event with four invited names and quorum 2."""

    def _make(**overrides):
        fields = {
            "host_id": "host",
            "title": "Cabin weekend",
            "start_date": "2030-01-01",
            "end_date": "2030-01-07",
            "vote_deadline": DEADLINE,
            "quorum": 2,
            "attendee_names": INVITES,
        }
        fields.update(overrides)
        return planner.events.create_event(**fields)

    return _make


@pytest.fixture
def join(planner):
    """Join an event as an invited name; returns the JoinResult."""

    def _join(event, slug, user_id=None, session_key=None, **kwargs):
        return planner.identity.join(event.id, slug=slug, user_id=user_id, session_key=session_key, **kwargs)

    return _join
