"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Every mutation that can
trigger a phase transition runs inside ``PlannerStore.atomic()``; reads made
through ``get_event_for_update`` inside that block see a locked, consistent
row.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from datetime import date, datetime

from planner.domain import (
    AttendeeName,
    AttendeeNameId,
    AttendeeSession,
    AttendeeSessionId,
    DayBlock,
    Event,
    EventId,
    Phase,
    SessionKey,
    Vote,
)


class EventStore(ABC):
    """Interface for event persistence operations."""

    @abstractmethod
    def add_event(self, event: Event, names: Sequence[AttendeeName]) -> None:
        """Persist a new event together with its invite list."""
        ...

    @abstractmethod
    def get_event(self, event_id: EventId) -> Event | None:
        """Return an event by ID, or None if not found."""
        ...

    @abstractmethod
    def get_event_for_update(self, event_id: EventId) -> Event | None:
        """Return an event by ID, locking it until the atomic block ends."""
        ...

    @abstractmethod
    def update_phase(
        self,
        event_id: EventId,
        expected: Phase,
        new: Phase,
        final_date: date | None = None,
    ) -> bool:
        """Set the phase only if the current phase equals ``expected``.

        Returns True when the row was updated, False when the stored phase
        no longer matched.
        """
        ...

    @abstractmethod
    def set_show_results(self, event_id: EventId, show: bool) -> None:
        """Update the results visibility flag."""
        ...

    @abstractmethod
    def list_overdue_vote_events(self, now: datetime) -> list[EventId]:
        """Return IDs of VOTE-phase events whose deadline is before ``now``."""
        ...


class AttendeeStore(ABC):
    """Interface for attendee names and attendee sessions."""

    @abstractmethod
    def list_attendee_names(self, event_id: EventId) -> list[AttendeeName]:
        """Return the event's invite list in creation order."""
        ...

    @abstractmethod
    def get_attendee_name(self, event_id: EventId, name_id: AttendeeNameId) -> AttendeeName | None:
        ...

    @abstractmethod
    def get_attendee_name_by_slug(self, event_id: EventId, slug: str) -> AttendeeName | None:
        ...

    @abstractmethod
    def find_active_session_by_key(self, event_id: EventId, session_key: SessionKey) -> AttendeeSession | None:
        ...

    @abstractmethod
    def find_active_session_by_user(self, event_id: EventId, user_id: str) -> AttendeeSession | None:
        ...

    @abstractmethod
    def find_active_session_by_name(self, event_id: EventId, name_id: AttendeeNameId) -> AttendeeSession | None:
        ...

    @abstractmethod
    def list_active_sessions(self, event_id: EventId) -> list[AttendeeSession]:
        ...

    @abstractmethod
    def add_session(self, session: AttendeeSession) -> None:
        ...

    @abstractmethod
    def deactivate_session(self, session_id: AttendeeSessionId) -> None:
        """Mark a session inactive. Sessions are never deleted."""
        ...

    @abstractmethod
    def update_session(
        self,
        session_id: AttendeeSessionId,
        *,
        attendee_name_id: AttendeeNameId | None = None,
        display_name: str | None = None,
        anonymous_blocks: bool | None = None,
        has_saved_availability: bool | None = None,
        user_id: str | None = None,
    ) -> AttendeeSession:
        """Update the given fields and return the stored session."""
        ...


class BallotStore(ABC):
    """Interface for votes and day blocks."""

    @abstractmethod
    def upsert_vote(self, vote: Vote) -> None:
        """Insert or overwrite the session's vote (last write wins)."""
        ...

    @abstractmethod
    def get_vote(self, event_id: EventId, session_id: AttendeeSessionId) -> Vote | None:
        ...

    @abstractmethod
    def count_in(self, event_id: EventId) -> int:
        """Number of active sessions whose vote is "in"."""
        ...

    @abstractmethod
    def count_total_voters(self, event_id: EventId) -> int:
        """Number of active sessions that have voted at all."""
        ...

    @abstractmethod
    def list_active_votes(self, event_id: EventId) -> list[Vote]:
        """Votes cast by currently active sessions."""
        ...

    @abstractmethod
    def replace_blocks(self, event_id: EventId, session_id: AttendeeSessionId, days: Iterable[date]) -> None:
        """Make ``days`` the session's complete block list for the event."""
        ...

    @abstractmethod
    def list_blocks(self, event_id: EventId) -> list[DayBlock]:
        """Blocks of currently active sessions, ordered by date."""
        ...

    @abstractmethod
    def list_session_blocks(self, event_id: EventId, session_id: AttendeeSessionId) -> list[date]:
        ...


class PlannerStore(EventStore, AttendeeStore, BallotStore):
    """All planner persistence behind one transactional boundary."""

    @abstractmethod
    def atomic(self) -> AbstractContextManager[None]:
        """Run the enclosed reads and writes as one atomic unit."""
        ...
