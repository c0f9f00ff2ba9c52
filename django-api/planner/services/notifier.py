"""Outbound change events.

Services call ``Notifier.emit`` after their atomic unit commits. Delivery is
fire-and-forget: consumers must tolerate missed or duplicate events and treat
storage as the source of truth.
"""

from abc import ABC, abstractmethod
from typing import Any

from planner.domain import EventId

VOTE_UPDATED = "vote.updated"
BLOCKS_UPDATED = "blocks.updated"
PHASE_CHANGED = "phase.changed"
FINAL_DATE_SET = "final.date.set"
ATTENDEE_JOINED = "attendee.joined"
ATTENDEE_NAME_CHANGED = "attendee.nameChanged"
ATTENDEE_LEFT = "attendee.left"
SHOW_RESULTS_CHANGED = "showResults.changed"


class Notifier(ABC):
    """Interface for emitting named change events."""

    @abstractmethod
    def emit(self, event_id: EventId, name: str, payload: dict[str, Any]) -> None:
        """Publish ``name`` with ``payload`` for the given event. Must not raise."""
        ...


class NullNotifier(Notifier):
    """Notifier that drops every event."""

    def emit(self, event_id: EventId, name: str, payload: dict[str, Any]) -> None:
        return None
