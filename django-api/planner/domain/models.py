"""Domain models representing persisted state.

These are pure domain objects with no API input rules.
Django ORM models are in planner/models.py (persistence layer).
"""

from dataclasses import dataclass
from datetime import date, datetime

from planner.domain.dates import DateWindow
from planner.domain.value_objects import (
    AttendeeNameId,
    AttendeeSessionId,
    EventId,
    Phase,
    Quorum,
    SessionKey,
)


@dataclass(frozen=True)
class Event:
    """Domain representation of an Event."""

    id: EventId
    host_id: str
    title: str
    description: str | None
    window: DateWindow
    vote_deadline: datetime
    quorum: Quorum
    phase: Phase
    final_date: date | None
    require_login_to_attend: bool
    show_results_to_everyone: bool
    created_at: datetime
    updated_at: datetime

    def is_host(self, user_id: str | None) -> bool:
        return bool(user_id) and user_id == self.host_id

    def deadline_passed(self, now: datetime) -> bool:
        return now > self.vote_deadline


@dataclass(frozen=True)
class AttendeeName:
    """Domain representation of an invited name."""

    id: AttendeeNameId
    event_id: EventId
    label: str
    slug: str


@dataclass(frozen=True)
class AttendeeSession:
    """Domain representation of one browser/identity claiming a name."""

    id: AttendeeSessionId
    event_id: EventId
    attendee_name_id: AttendeeNameId
    user_id: str | None
    session_key: SessionKey
    display_name: str
    time_zone: str
    anonymous_blocks: bool
    is_active: bool
    has_saved_availability: bool
    created_at: datetime

    @property
    def is_logged_in(self) -> bool:
        return self.user_id is not None


@dataclass(frozen=True)
class Vote:
    """One attendee session's participation vote."""

    event_id: EventId
    attendee_session_id: AttendeeSessionId
    is_in: bool


@dataclass(frozen=True)
class DayBlock:
    """A day an attendee session cannot attend."""

    event_id: EventId
    attendee_session_id: AttendeeSessionId
    date: date
