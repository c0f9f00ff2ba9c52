"""In-process implementation of the PlannerStore.

Backs unit tests and single-process tooling. ``atomic()`` holds a re-entrant
lock for the whole block and restores the previous state if the block raises,
so it offers the same serializable read-decide-write guarantee as a database
transaction with a row lock.
"""

import threading
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
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
from planner.domain.dates import utc_now
from planner.stores.interfaces import PlannerStore


@dataclass
class _State:
    events: dict[EventId, Event] = field(default_factory=dict)
    names: dict[AttendeeNameId, AttendeeName] = field(default_factory=dict)
    sessions: dict[AttendeeSessionId, AttendeeSession] = field(default_factory=dict)
    votes: dict[tuple[EventId, AttendeeSessionId], Vote] = field(default_factory=dict)
    blocks: dict[tuple[EventId, AttendeeSessionId], frozenset[date]] = field(default_factory=dict)

    def copy(self) -> "_State":
        return _State(
            events=dict(self.events),
            names=dict(self.names),
            sessions=dict(self.sessions),
            votes=dict(self.votes),
            blocks=dict(self.blocks),
        )


class MemoryPlannerStore(PlannerStore):
    """Thread-safe dictionary-backed planner store."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = _State()
        self._depth = 0

    @contextmanager
    def atomic(self) -> Iterator[None]:
        with self._lock:
            snapshot = self._state.copy() if self._depth == 0 else None
            self._depth += 1
            try:
                yield
            except BaseException:
                if snapshot is not None:
                    self._state = snapshot
                raise
            finally:
                self._depth -= 1

    # Events

    def add_event(self, event: Event, names: Sequence[AttendeeName]) -> None:
        with self._lock:
            self._state.events[event.id] = event
            for name in names:
                self._state.names[name.id] = name

    def get_event(self, event_id: EventId) -> Event | None:
        with self._lock:
            return self._state.events.get(event_id)

    def get_event_for_update(self, event_id: EventId) -> Event | None:
        return self.get_event(event_id)

    def update_phase(
        self,
        event_id: EventId,
        expected: Phase,
        new: Phase,
        final_date: date | None = None,
    ) -> bool:
        with self._lock:
            event = self._state.events.get(event_id)
            if event is None or event.phase != expected:
                return False
            changes = {"phase": new, "updated_at": utc_now()}
            if final_date is not None:
                changes["final_date"] = final_date
            self._state.events[event_id] = replace(event, **changes)
            return True

    def set_show_results(self, event_id: EventId, show: bool) -> None:
        with self._lock:
            event = self._state.events.get(event_id)
            if event is not None:
                self._state.events[event_id] = replace(event, show_results_to_everyone=show, updated_at=utc_now())

    def list_overdue_vote_events(self, now: datetime) -> list[EventId]:
        with self._lock:
            overdue = [
                event
                for event in self._state.events.values()
                if event.phase == Phase.VOTE and event.vote_deadline < now
            ]
        return [event.id for event in sorted(overdue, key=lambda event: event.vote_deadline)]

    # Attendees

    def list_attendee_names(self, event_id: EventId) -> list[AttendeeName]:
        with self._lock:
            return [name for name in self._state.names.values() if name.event_id == event_id]

    def get_attendee_name(self, event_id: EventId, name_id: AttendeeNameId) -> AttendeeName | None:
        with self._lock:
            name = self._state.names.get(name_id)
        return name if name is not None and name.event_id == event_id else None

    def get_attendee_name_by_slug(self, event_id: EventId, slug: str) -> AttendeeName | None:
        return next((name for name in self.list_attendee_names(event_id) if name.slug == slug), None)

    def list_active_sessions(self, event_id: EventId) -> list[AttendeeSession]:
        with self._lock:
            return [
                session
                for session in self._state.sessions.values()
                if session.event_id == event_id and session.is_active
            ]

    def find_active_session_by_key(self, event_id: EventId, session_key: SessionKey) -> AttendeeSession | None:
        return next(
            (session for session in self.list_active_sessions(event_id) if session.session_key == session_key),
            None,
        )

    def find_active_session_by_user(self, event_id: EventId, user_id: str) -> AttendeeSession | None:
        return next(
            (session for session in self.list_active_sessions(event_id) if session.user_id == user_id),
            None,
        )

    def find_active_session_by_name(self, event_id: EventId, name_id: AttendeeNameId) -> AttendeeSession | None:
        return next(
            (session for session in self.list_active_sessions(event_id) if session.attendee_name_id == name_id),
            None,
        )

    def add_session(self, session: AttendeeSession) -> None:
        with self._lock:
            others = self.list_active_sessions(session.event_id) if session.is_active else []
            for other in others:
                if other.session_key == session.session_key:
                    raise ValueError("Duplicate session key for event")
                if session.user_id and other.user_id == session.user_id:
                    raise ValueError("User already has an active session for event")
                if other.attendee_name_id == session.attendee_name_id:
                    raise ValueError("Attendee name already claimed by an active session")
            self._state.sessions[session.id] = session

    def deactivate_session(self, session_id: AttendeeSessionId) -> None:
        with self._lock:
            session = self._state.sessions.get(session_id)
            if session is not None:
                self._state.sessions[session_id] = replace(session, is_active=False)

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
        with self._lock:
            session = self._state.sessions[session_id]
            changes = {
                key: value
                for key, value in (
                    ("attendee_name_id", attendee_name_id),
                    ("display_name", display_name),
                    ("anonymous_blocks", anonymous_blocks),
                    ("has_saved_availability", has_saved_availability),
                    ("user_id", user_id),
                )
                if value is not None
            }
            session = replace(session, **changes)
            self._state.sessions[session_id] = session
            return session

    # Ballots

    def _is_active(self, session_id: AttendeeSessionId) -> bool:
        session = self._state.sessions.get(session_id)
        return session is not None and session.is_active

    def upsert_vote(self, vote: Vote) -> None:
        with self._lock:
            self._state.votes[(vote.event_id, vote.attendee_session_id)] = vote

    def get_vote(self, event_id: EventId, session_id: AttendeeSessionId) -> Vote | None:
        with self._lock:
            return self._state.votes.get((event_id, session_id))

    def list_active_votes(self, event_id: EventId) -> list[Vote]:
        with self._lock:
            return [
                vote
                for (vote_event_id, session_id), vote in self._state.votes.items()
                if vote_event_id == event_id and self._is_active(session_id)
            ]

    def count_in(self, event_id: EventId) -> int:
        return sum(1 for vote in self.list_active_votes(event_id) if vote.is_in)

    def count_total_voters(self, event_id: EventId) -> int:
        return len(self.list_active_votes(event_id))

    def replace_blocks(self, event_id: EventId, session_id: AttendeeSessionId, days: Iterable[date]) -> None:
        with self._lock:
            self._state.blocks[(event_id, session_id)] = frozenset(days)

    def list_blocks(self, event_id: EventId) -> list[DayBlock]:
        with self._lock:
            blocks = [
                DayBlock(event_id=event_id, attendee_session_id=session_id, date=day)
                for (block_event_id, session_id), days in self._state.blocks.items()
                if block_event_id == event_id and self._is_active(session_id)
                for day in days
            ]
        return sorted(blocks, key=lambda block: block.date)

    def list_session_blocks(self, event_id: EventId, session_id: AttendeeSessionId) -> list[date]:
        with self._lock:
            return sorted(self._state.blocks.get((event_id, session_id), frozenset()))
