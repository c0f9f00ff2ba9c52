from planner.domain.dates import DateWindow
from planner.domain.models import AttendeeName, AttendeeSession, DayBlock, Event, Vote
from planner.domain.value_objects import (
    AttendeeNameId,
    AttendeeSessionId,
    EventId,
    Phase,
    Quorum,
    SessionKey,
    Slug,
)

__all__ = [
    "Event",
    "AttendeeName",
    "AttendeeSession",
    "Vote",
    "DayBlock",
    "DateWindow",
    "EventId",
    "AttendeeNameId",
    "AttendeeSessionId",
    "Phase",
    "Quorum",
    "SessionKey",
    "Slug",
]
