"""Event service - event creation, lookup and host settings.

Services:
- Depend only on interfaces (stores)
- Validate domain invariants
- Perform orchestration and error mapping
- Return domain models or domain errors
"""

import logging
import uuid
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime

from planner.domain import (
    AttendeeName,
    AttendeeNameId,
    DateWindow,
    Event,
    EventId,
    Phase,
    Quorum,
    Slug,
)
from planner.domain.dates import utc_now
from planner.domain.errors import ForbiddenError, ValidationError
from planner.services.base import load_event, parse_event_id
from planner.services.notifier import SHOW_RESULTS_CHANGED, Notifier
from planner.stores.interfaces import PlannerStore

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_LABEL_LENGTH = 50
MAX_ATTENDEE_NAMES = 50


def _parse_deadline(value: datetime | str) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError("Invalid vote deadline") from exc
    if not isinstance(value, datetime) or value.tzinfo is None:
        raise ValidationError("Vote deadline must be a timezone-aware instant")
    return value


class EventService:
    """Service for event catalog operations."""

    def __init__(
        self,
        store: PlannerStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock

    def create_event(
        self,
        host_id: str | None,
        title: str,
        start_date: date | datetime | str,
        end_date: date | datetime | str,
        vote_deadline: datetime | str,
        quorum: int,
        attendee_names: Sequence[Mapping[str, str]],
        description: str | None = None,
        require_login_to_attend: bool = False,
        show_results_to_everyone: bool = False,
    ) -> Event:
        """Create an event in the VOTE phase with its invite list.

        Raises:
            ForbiddenError: If there is no logged-in host.
            InvalidRangeError: If the window starts after it ends.
            ValidationError: For any other invalid field.
        """
        if not host_id:
            raise ForbiddenError("Login required to create events")
        title = (title or "").strip()
        if not title or len(title) > MAX_TITLE_LENGTH:
            raise ValidationError("Title must be between 1 and 100 characters")
        if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError("Description too long")

        event_id = EventId(uuid.uuid4())
        now = self._clock()
        event = Event(
            id=event_id,
            host_id=host_id,
            title=title,
            description=description or None,
            window=DateWindow.between(start_date, end_date),
            vote_deadline=_parse_deadline(vote_deadline),
            quorum=Quorum(quorum),
            phase=Phase.VOTE,
            final_date=None,
            require_login_to_attend=bool(require_login_to_attend),
            show_results_to_everyone=bool(show_results_to_everyone),
            created_at=now,
            updated_at=now,
        )
        names = self._build_names(event_id, attendee_names)
        self._store.add_event(event, names)
        logger.info(
            "Event created",
            extra={"event_id": str(event_id), "quorum": event.quorum.value, "invited": len(names)},
        )
        return event

    def get_event(self, event_id: str | EventId) -> Event:
        """Return an event by ID.

        Raises:
            ValidationError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
        """
        return load_event(self._store, parse_event_id(event_id))

    def list_attendee_names(self, event_id: str | EventId) -> list[AttendeeName]:
        eid = parse_event_id(event_id)
        load_event(self._store, eid)
        return self._store.list_attendee_names(eid)

    def set_show_results(self, event_id: str | EventId, user_id: str | None, show: bool) -> Event:
        """Host toggle for sharing results with every attendee."""
        eid = parse_event_id(event_id)
        with self._store.atomic():
            event = load_event(self._store, eid, for_update=True)
            if not event.is_host(user_id):
                raise ForbiddenError("Only the host can change this setting")
            self._store.set_show_results(eid, bool(show))
            event = load_event(self._store, eid)
        self._notifier.emit(eid, SHOW_RESULTS_CHANGED, {"showResultsToEveryone": event.show_results_to_everyone})
        return event

    @staticmethod
    def _build_names(event_id: EventId, attendee_names: Sequence[Mapping[str, str]]) -> list[AttendeeName]:
        if not 1 <= len(attendee_names) <= MAX_ATTENDEE_NAMES:
            raise ValidationError("Invite between 1 and 50 attendees")
        names: list[AttendeeName] = []
        seen: set[str] = set()
        for entry in attendee_names:
            label = (entry.get("label") or "").strip()
            if not label or len(label) > MAX_LABEL_LENGTH:
                raise ValidationError("Attendee names must be between 1 and 50 characters")
            slug = str(Slug(entry.get("slug") or ""))
            if slug in seen:
                raise ValidationError(f"Duplicate attendee slug: {slug}")
            seen.add(slug)
            names.append(AttendeeName(id=AttendeeNameId(uuid.uuid4()), event_id=event_id, label=label, slug=slug))
        return names
