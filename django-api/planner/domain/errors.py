"""Domain error codes for the planner module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    INVALID_RANGE = "INVALID_RANGE"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    ATTENDEE_NAME_NOT_FOUND = "ATTENDEE_NAME_NOT_FOUND"
    ATTENDEE_SESSION_NOT_FOUND = "ATTENDEE_SESSION_NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    ILLEGAL_TRANSITION = "ILLEGAL_TRANSITION"
    PHASE_CLOSED = "PHASE_CLOSED"
    CONFLICT = "CONFLICT"
    NAME_CLAIMED = "NAME_CLAIMED"


@dataclass(eq=False)
class DomainError(Exception):
    """Base domain error with code and user-safe message.

    Not frozen: the interpreter and context managers assign traceback
    attributes on exceptions in flight.
    """

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Raised when input is malformed or violates a domain rule."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.VALIDATION_FAILED) -> None:
        super().__init__(code=code, message=message)


class InvalidRangeError(ValidationError):
    """Raised when a date window starts after it ends."""

    def __init__(self, start: object, end: object) -> None:
        super().__init__(
            message=f"Start {start} is after end {end}",
            code=ErrorCode.INVALID_RANGE,
        )


class NotFoundError(DomainError):
    """Base for lookups that found nothing."""


class EventNotFoundError(NotFoundError):
    """Raised when an event is not found."""

    def __init__(self, event_id: object) -> None:
        super().__init__(code=ErrorCode.EVENT_NOT_FOUND, message="Event not found")
        self.event_id = event_id


class AttendeeNameNotFoundError(NotFoundError):
    """Raised when an attendee name does not belong to the event."""

    def __init__(self, reference: object) -> None:
        super().__init__(
            code=ErrorCode.ATTENDEE_NAME_NOT_FOUND,
            message="Attendee name not found for event",
        )
        self.reference = reference


class AttendeeSessionNotFoundError(NotFoundError):
    """Raised when the caller has no active attendee session for the event."""

    def __init__(self, message: str = "Join the event first") -> None:
        super().__init__(code=ErrorCode.ATTENDEE_SESSION_NOT_FOUND, message=message)


class ForbiddenError(DomainError):
    """Raised when the caller may not perform a host-only action."""

    def __init__(self, message: str = "Only the host can do this") -> None:
        super().__init__(code=ErrorCode.FORBIDDEN, message=message)


class IllegalTransitionError(DomainError):
    """Raised when a phase transition is not in the transition table."""

    def __init__(self, current: object, target: object) -> None:
        super().__init__(
            code=ErrorCode.ILLEGAL_TRANSITION,
            message=f"Cannot move from {current} to {target}",
        )
        self.current = current
        self.target = target


class PhaseClosedError(DomainError):
    """Raised when a mutation arrives in a phase that does not accept it."""

    def __init__(self, phase: object, message: str | None = None) -> None:
        super().__init__(
            code=ErrorCode.PHASE_CLOSED,
            message=message or f"Event is {phase}; this action is closed",
        )
        self.phase = phase


class ConflictError(DomainError):
    """Raised when a conditional write lost a race. Safe to retry."""

    def __init__(self, message: str = "Concurrent update, retry", code: ErrorCode = ErrorCode.CONFLICT) -> None:
        super().__init__(code=code, message=message)


class NameClaimedError(ConflictError):
    """Raised when an attendee name is held by another logged-in user."""

    def __init__(self, label: str) -> None:
        super().__init__(
            message=f'The name "{label}" is claimed by a logged-in user. Please choose another name.',
            code=ErrorCode.NAME_CLAIMED,
        )
