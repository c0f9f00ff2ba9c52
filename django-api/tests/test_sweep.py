"""Tests for the expiry sweep and its management command.

Run with: pytest tests/test_sweep.py -v
"""

from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from planner.domain import Phase
from planner.services import build_planner
from planner.stores.memory_store import MemoryPlannerStore
from planner.wiring import get_planner
from tests.conftest import DEADLINE, INVITES


class BrokenStore(MemoryPlannerStore):
    """Memory store whose phase writes always lose the race for one event."""

    def __init__(self) -> None:
        super().__init__()
        self.broken = set()

    def update_phase(self, event_id, *args, **kwargs) -> bool:
        if event_id in self.broken:
            return False
        return super().update_phase(event_id, *args, **kwargs)


class TestSweepService:
    """Tests for SweepService."""

    def test_fails_expired_events_without_quorum(self, planner, make_event, clock, notifier):
        """Expired events without quorum are failed."""
        expired = make_event()
        clock.advance(days=30)
        result = planner.sweeper.sweep()
        assert result.failed == [expired.id]
        assert result.advanced == []
        assert planner.events.get_event(expired.id).phase is Phase.FAILED
        assert notifier.names() == ["phase.changed"]

    def test_skips_events_before_deadline(self, planner, make_event):
        """Events before their deadline are skipped."""
        event = make_event()
        result = planner.sweeper.sweep()
        assert result.failed == result.advanced == result.errors == []
        assert planner.events.get_event(event.id).phase is Phase.VOTE

    def test_skips_events_outside_vote(self, planner, make_event, join, clock):
        """Events past VOTE are skipped."""
        event = make_event(quorum=1)
        planner.votes.cast_vote(event.id, True, session_key=str(join(event, "alice").session.session_key))
        clock.advance(days=30)
        assert planner.sweeper.sweep().failed == []
        assert planner.events.get_event(event.id).phase is Phase.PICK_DAYS

    def test_is_idempotent(self, planner, make_event, clock, notifier):
        """A second sweep changes nothing."""
        make_event()
        clock.advance(days=30)
        planner.sweeper.sweep()
        second = planner.sweeper.sweep()
        assert second.failed == []
        assert notifier.names().count("phase.changed") == 1

    def test_explicit_now(self, planner, make_event):
        """An explicit now overrides the clock."""
        event = make_event()
        result = planner.sweeper.sweep(DEADLINE + timedelta(seconds=1))
        assert result.failed == [event.id]

    def test_error_on_one_event_does_not_stop_batch(self, clock, notifier):
        """An error on one event does not stop the others."""
        store = BrokenStore()
        planner = build_planner(store, notifier, clock, retries=2)
        broken = planner.events.create_event("host", "A", "2030-01-01", "2030-01-02", DEADLINE, 2, INVITES)
        healthy = planner.events.create_event(
            "host", "B", "2030-01-01", "2030-01-02", DEADLINE + timedelta(hours=1), 2, INVITES
        )
        store.broken.add(broken.id)
        clock.advance(days=30)

        result = planner.sweeper.sweep()

        assert result.errors == [broken.id]
        assert result.failed == [healthy.id]
        assert planner.events.get_event(broken.id).phase is Phase.VOTE


@pytest.mark.django_db
class TestSweepCommand:
    """Tests for manage.py sweep_expired_events."""

    def test_command_fails_overdue_events(self):
        """The command fails overdue events and reports a count."""
        event = get_planner().events.create_event(
            "host", "Overdue", "2030-01-01", "2030-01-03", DEADLINE, 2, INVITES
        )
        out = StringIO()
        call_command("sweep_expired_events", "--now", "2030-01-01T00:00:00Z", stdout=out)
        assert "Failed 1 events" in out.getvalue()
        assert get_planner().events.get_event(event.id).phase is Phase.FAILED

    def test_command_rejects_bad_now(self):
        """The command rejects unparsable or naive --now values."""
        with pytest.raises(CommandError):
            call_command("sweep_expired_events", "--now", "yesterday")
        with pytest.raises(CommandError):
            call_command("sweep_expired_events", "--now", "2030-01-01T00:00:00")
