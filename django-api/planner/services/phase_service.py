"""Phase engine - applies automatic and host-initiated transitions.

Every transition is decided and written inside one ``store.atomic()`` block
against a locked event row, and written with a conditional update keyed on
the phase that was read. A lost race raises ConflictError and the whole
operation is retried from a fresh read.
"""

import logging
from collections.abc import Callable
from datetime import date, datetime

from planner.domain import Event, EventId, Phase
from planner.domain.dates import to_utc_day, utc_now
from planner.domain.errors import ConflictError, ForbiddenError, ValidationError
from planner.domain.phases import decide_automatic_transition, ensure_host_transition, ensure_transition
from planner.services.base import DEFAULT_CONFLICT_RETRIES, load_event, parse_event_id, retry_on_conflict
from planner.services.notifier import FINAL_DATE_SET, PHASE_CHANGED, Notifier
from planner.stores.interfaces import PlannerStore

logger = logging.getLogger(__name__)


class PhaseService:
    """Service for the event phase state machine."""

    def __init__(
        self,
        store: PlannerStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = utc_now,
        retries: int = DEFAULT_CONFLICT_RETRIES,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock
        self._retries = retries

    def lock_event(self, event_id: EventId) -> Event:
        """Load and lock an event. Call inside ``store.atomic()``."""
        return load_event(self._store, event_id, for_update=True)

    def apply_automatic(self, event: Event, now: datetime) -> Phase | None:
        """Decide and write the automatic transition for a locked event.

        Runs inside the caller's atomic block so the vote count and the phase
        write see the same state. Returns the applied phase, or None.
        """
        count_in = self._store.count_in(event.id)
        target = decide_automatic_transition(event.phase, count_in, event.quorum, event.vote_deadline, now)
        if target is None:
            return None
        self._write_phase(event, target)
        logger.info(
            "Phase transition applied",
            extra={
                "event_id": str(event.id),
                "from_phase": event.phase.value,
                "to_phase": target.value,
                "count_in": count_in,
                "quorum": event.quorum.value,
            },
        )
        return target

    def evaluate(self, event_id: str | EventId, now: datetime | None = None) -> Phase | None:
        """Re-evaluate the quorum/deadline rule and apply any transition.

        Returns the newly applied phase, or None when nothing changed.

        Raises:
            ValidationError: If the event_id is not a valid UUID.
            EventNotFoundError: If the event does not exist.
            ConflictError: If every retry lost a race.
        """
        eid = parse_event_id(event_id)
        moment = now or self._clock()

        def _evaluate() -> Phase | None:
            with self._store.atomic():
                return self.apply_automatic(self.lock_event(eid), moment)

        target = retry_on_conflict(_evaluate, self._retries)
        if target is not None:
            self.announce_phase(eid, target)
        return target

    def announce_phase(self, event_id: EventId, phase: Phase) -> None:
        self._notifier.emit(event_id, PHASE_CHANGED, {"phase": phase.value})

    def advance_to_results(self, event_id: str | EventId, user_id: str | None) -> Event:
        """Host action: PICK_DAYS -> RESULTS."""
        return self._host_transition(event_id, user_id, Phase.RESULTS)

    def finalize(self, event_id: str | EventId, user_id: str | None, final_date: date | datetime | str) -> Event:
        """Host action: RESULTS -> FINALIZED with the chosen day.

        Raises:
            ForbiddenError: If the caller is not the host.
            PhaseClosedError: If the event already reached a terminal phase.
            IllegalTransitionError: If the event is not in RESULTS.
            ValidationError: If the date is malformed or outside the window.
        """
        return self._host_transition(event_id, user_id, Phase.FINALIZED, final_date)

    def request_transition(
        self,
        event_id: str | EventId,
        user_id: str | None,
        target: Phase | str,
        final_date: date | datetime | str | None = None,
    ) -> Event:
        """Host-requested move to ``target``; used by the HTTP layer."""
        try:
            phase = Phase(target)
        except ValueError as exc:
            raise ValidationError(f"Unknown phase: {target!r}") from exc
        return self._host_transition(event_id, user_id, phase, final_date)

    def _host_transition(
        self,
        event_id: str | EventId,
        user_id: str | None,
        target: Phase,
        final_date: date | datetime | str | None = None,
    ) -> Event:
        eid = parse_event_id(event_id)

        def _apply() -> Event:
            with self._store.atomic():
                event = self.lock_event(eid)
                if not event.is_host(user_id):
                    raise ForbiddenError("Only the host can change the phase")
                ensure_host_transition(event.phase, target)
                day = self._validated_final_date(event, final_date) if target == Phase.FINALIZED else None
                self._write_phase(event, target, day)
                return load_event(self._store, eid)

        updated = retry_on_conflict(_apply, self._retries)
        logger.info(
            "Host transition applied",
            extra={"event_id": str(eid), "to_phase": target.value, "final_date": str(updated.final_date)},
        )
        self.announce_phase(eid, target)
        if updated.final_date is not None and target == Phase.FINALIZED:
            self._notifier.emit(eid, FINAL_DATE_SET, {"date": updated.final_date.isoformat()})
        return updated

    @staticmethod
    def _validated_final_date(event: Event, final_date: date | datetime | str | None) -> date:
        if final_date is None:
            raise ValidationError("A final date is required to finalize")
        day = to_utc_day(final_date)
        if not event.window.contains(day):
            raise ValidationError("Final date must be within the event range")
        return day

    def _write_phase(self, event: Event, target: Phase, final_date: date | None = None) -> None:
        ensure_transition(event.phase, target)
        if not self._store.update_phase(event.id, event.phase, target, final_date):
            raise ConflictError(f"Event phase changed while moving to {target}")
