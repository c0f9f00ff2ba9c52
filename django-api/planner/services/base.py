"""Helpers shared by the planner services."""

import logging
from collections.abc import Callable
from typing import TypeVar

from planner.domain import Event, EventId
from planner.domain.errors import ConflictError, ErrorCode, EventNotFoundError
from planner.stores.interfaces import PlannerStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CONFLICT_RETRIES = 3


def parse_event_id(event_id: str | EventId) -> EventId:
    """Accept a raw string or an EventId.

    Raises:
        ValidationError: If the string is not a valid UUID.
    """
    if isinstance(event_id, EventId):
        return event_id
    return EventId.from_string(event_id)


def load_event(store: PlannerStore, event_id: EventId, for_update: bool = False) -> Event:
    event = store.get_event_for_update(event_id) if for_update else store.get_event(event_id)
    if event is None:
        raise EventNotFoundError(event_id)
    return event


def retry_on_conflict(operation: Callable[[], T], attempts: int = DEFAULT_CONFLICT_RETRIES) -> T:
    """Run ``operation`` again from scratch when a conditional write loses a race.

    Only plain ``CONFLICT`` errors are retried; subclasses carrying another
    code (a claimed name, for instance) are final.
    """
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except ConflictError as exc:
            if exc.code is not ErrorCode.CONFLICT or attempt == attempts:
                raise
            logger.info(
                "Conditional write lost a race, retrying",
                extra={"attempt": attempt, "attempts": attempts},
            )
    raise AssertionError("unreachable")
