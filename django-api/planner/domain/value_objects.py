"""Domain primitives that enforce validity at creation time."""

import re
import secrets
from dataclasses import dataclass
from enum import StrEnum
from typing import Self
from uuid import UUID

from planner.domain.errors import ValidationError

SLUG_PATTERN = re.compile(r"[a-zA-Z0-9_-]{1,50}")
MAX_QUORUM = 100


class Phase(StrEnum):
    """Lifecycle phase of an event."""

    VOTE = "VOTE"
    PICK_DAYS = "PICK_DAYS"
    RESULTS = "RESULTS"
    FINALIZED = "FINALIZED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.FINALIZED, Phase.FAILED)


def _parse_uuid(value: str, label: str) -> UUID:
    try:
        return UUID(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid {label} format") from exc


@dataclass(frozen=True)
class EventId:
    """Unique identifier for an Event."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=_parse_uuid(value, "event ID"))

    @property
    def prefix(self) -> str:
        """Short event-derived prefix embedded in session keys."""
        return self.value.hex[:8]

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class AttendeeNameId:
    """Unique identifier for an AttendeeName."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=_parse_uuid(value, "attendee name ID"))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class AttendeeSessionId:
    """Unique identifier for an AttendeeSession."""

    value: UUID

    @classmethod
    def from_string(cls, value: str) -> Self:
        return cls(value=_parse_uuid(value, "attendee session ID"))

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Quorum:
    """Positive number of "in" votes needed to leave the vote phase."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError("Quorum must be an integer")
        if self.value < 1:
            raise ValidationError("Quorum must be at least 1")
        if self.value > MAX_QUORUM:
            raise ValidationError("Quorum too high")

    def is_met_by(self, count_in: int) -> bool:
        return count_in >= self.value


@dataclass(frozen=True)
class Slug:
    """URL-safe attendee name handle, unique per event."""

    value: str

    def __post_init__(self) -> None:
        if not SLUG_PATTERN.fullmatch(self.value):
            raise ValidationError(f"Invalid slug format: {self.value!r}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SessionKey:
    """Opaque per-browser, per-event attendee token.

    Format is ``<mode>_<event prefix>_<random>``; the prefix pins the key to
    a single event so a leaked key cannot be replayed elsewhere.
    """

    value: str

    USER_MODE = "user"
    ANONYMOUS_MODE = "anon"

    @classmethod
    def generate(cls, event_id: EventId, user_id: str | None = None) -> Self:
        mode = cls.USER_MODE if user_id else cls.ANONYMOUS_MODE
        return cls(value=f"{mode}_{event_id.prefix}_{secrets.token_urlsafe(32)}")

    def belongs_to(self, event_id: EventId) -> bool:
        parts = self.value.split("_", 2)
        return len(parts) == 3 and parts[1] == event_id.prefix

    def __str__(self) -> str:
        return self.value
