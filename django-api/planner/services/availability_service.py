"""Availability - day-block submission and ranked results."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from planner.domain import AttendeeSession, AttendeeSessionId, Event, EventId, Phase
from planner.domain.availability import AvailabilityDay, AvailabilitySummary, compute_availability
from planner.domain.dates import format_day, parse_day, to_utc_day
from planner.domain.errors import ForbiddenError, ValidationError
from planner.domain.phases import ensure_open
from planner.services.base import load_event, parse_event_id
from planner.services.identity_service import IdentityService
from planner.services.notifier import BLOCKS_UPDATED, Notifier
from planner.services.phase_service import PhaseService
from planner.stores.interfaces import PlannerStore

logger = logging.getLogger(__name__)

BLOCKING_PHASES = frozenset({Phase.PICK_DAYS})


@dataclass(frozen=True)
class EventResults:
    """Availability summary prepared for one viewer."""

    event: Event
    summary: AvailabilitySummary
    viewer: AttendeeSession | None
    viewer_is_host: bool
    attributed_names: dict[AttendeeSessionId, str]

    def blocked_names(self, day: AvailabilityDay) -> list[str]:
        """Display names of attendees blocking ``day`` who chose to be shown."""
        return [self.attributed_names[sid] for sid in day.blocked_by if sid in self.attributed_names]


class AvailabilityService:
    """Service for day blocks and availability results."""

    def __init__(
        self,
        store: PlannerStore,
        identity: IdentityService,
        phases: PhaseService,
        notifier: Notifier,
    ) -> None:
        self._store = store
        self._identity = identity
        self._phases = phases
        self._notifier = notifier

    def summarize(self, event_id: str | EventId) -> AvailabilitySummary:
        """Aggregate availability over eligible (active, voted in) sessions."""
        eid = parse_event_id(event_id)
        with self._store.atomic():
            event = load_event(self._store, eid)
            return self._summarize(event, self._store.list_active_sessions(eid))

    def results(
        self,
        event_id: str | EventId,
        *,
        session_key: str | None = None,
        user_id: str | None = None,
    ) -> EventResults:
        """Return results for the caller.

        The host always sees results; other callers only once the host shares
        them or the event is finalized.

        Raises:
            EventNotFoundError: If the event does not exist.
            ForbiddenError: If results are not visible to the caller.
        """
        eid = parse_event_id(event_id)
        with self._store.atomic():
            event = self.visible_event(eid, user_id)
            is_host = event.is_host(user_id)
            viewer = self._identity.resolve(eid, session_key, user_id)
            sessions = self._store.list_active_sessions(eid)
            summary = self._summarize(event, sessions)

        return EventResults(
            event=event,
            summary=summary,
            viewer=viewer,
            viewer_is_host=is_host,
            attributed_names={s.id: s.display_name for s in sessions if not s.anonymous_blocks},
        )

    def visible_event(self, event_id: str | EventId, user_id: str | None) -> Event:
        """Return the event if its results are visible to ``user_id``.

        Raises:
            EventNotFoundError: If the event does not exist.
            ForbiddenError: If results are not visible to the caller.
        """
        event = load_event(self._store, parse_event_id(event_id))
        if not (event.is_host(user_id) or event.show_results_to_everyone or event.phase == Phase.FINALIZED):
            raise ForbiddenError("Results are only visible to the host")
        return event

    def submit_blocks(
        self,
        event_id: str | EventId,
        dates: Iterable[str | date],
        *,
        session_key: str | None = None,
        user_id: str | None = None,
        anonymous: bool | None = None,
    ) -> AttendeeSession:
        """Replace the caller's blocked days with ``dates``.

        An empty list is a valid submission meaning "no conflicts".

        Raises:
            ValidationError: If a date is malformed or outside the window.
            PhaseClosedError: If the event is not in PICK_DAYS.
            AttendeeSessionNotFoundError: If the caller has not joined.
        """
        eid = parse_event_id(event_id)
        days = sorted({to_utc_day(day) if isinstance(day, date) else parse_day(day) for day in dates})

        with self._store.atomic():
            event = self._phases.lock_event(eid)
            ensure_open(event.phase, BLOCKING_PHASES, "Day blocking")
            session = self._identity.require(eid, session_key, user_id)
            outside = [format_day(day) for day in days if not event.window.contains(day)]
            if outside:
                raise ValidationError(f"Some dates are outside the event range: {', '.join(outside)}")
            self._store.replace_blocks(eid, session.id, days)
            session = self._store.update_session(
                session.id,
                has_saved_availability=True,
                anonymous_blocks=anonymous,
            )

        logger.info(
            "Day blocks saved",
            extra={"event_id": str(eid), "session_id": str(session.id), "blocked_days": len(days)},
        )
        self._notifier.emit(
            eid,
            BLOCKS_UPDATED,
            {
                "attendeeId": str(session.id),
                "dates": [format_day(day) for day in days],
                "anonymous": session.anonymous_blocks,
            },
        )
        return session

    def blocks_of(self, session: AttendeeSession) -> list[date]:
        return self._store.list_session_blocks(session.event_id, session.id)

    def _summarize(self, event: Event, sessions: list[AttendeeSession]) -> AvailabilitySummary:
        eligible = [vote.attendee_session_id for vote in self._store.list_active_votes(event.id) if vote.is_in]
        blocks = [(block.attendee_session_id, block.date) for block in self._store.list_blocks(event.id)]
        submitted = [session.id for session in sessions if session.has_saved_availability]
        return compute_availability(event.window.days(), eligible, blocks, submitted)
