"""Vote ledger - one boolean vote per attendee session per event."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from planner.domain import AttendeeSession, EventId, Phase, Vote
from planner.domain.dates import utc_now
from planner.domain.phases import VOTING_PHASES, ensure_open
from planner.services.base import DEFAULT_CONFLICT_RETRIES, load_event, parse_event_id, retry_on_conflict
from planner.services.identity_service import IdentityService
from planner.services.notifier import VOTE_UPDATED, Notifier
from planner.services.phase_service import PhaseService
from planner.stores.interfaces import PlannerStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteOutcome:
    """A recorded vote and the phase transition it triggered, if any."""

    vote: Vote
    session: AttendeeSession
    transitioned_to: Phase | None


class VoteService:
    """Service for casting votes and reading quorum counts."""

    def __init__(
        self,
        store: PlannerStore,
        identity: IdentityService,
        phases: PhaseService,
        notifier: Notifier,
        clock: Callable[[], datetime] = utc_now,
        retries: int = DEFAULT_CONFLICT_RETRIES,
    ) -> None:
        self._store = store
        self._identity = identity
        self._phases = phases
        self._notifier = notifier
        self._clock = clock
        self._retries = retries

    def cast_vote(
        self,
        event_id: str | EventId,
        is_in: bool,
        *,
        session_key: str | None = None,
        user_id: str | None = None,
    ) -> VoteOutcome:
        """Record the caller's vote and advance the phase if quorum is reached.

        Votes are accepted in VOTE and PICK_DAYS. A vote arriving after the
        deadline first lets the automatic rule settle the event; if that
        fails the event the vote is rejected.

        Raises:
            EventNotFoundError: If the event does not exist.
            PhaseClosedError: If the event no longer accepts votes.
            AttendeeSessionNotFoundError: If the caller has not joined.
        """
        eid = parse_event_id(event_id)
        now = self._clock()

        event = load_event(self._store, eid)
        if event.phase == Phase.VOTE and event.deadline_passed(now):
            self._phases.evaluate(eid, now)

        def _cast() -> VoteOutcome:
            with self._store.atomic():
                locked = self._phases.lock_event(eid)
                ensure_open(locked.phase, VOTING_PHASES, "Voting")
                session = self._identity.require(eid, session_key, user_id)
                vote = Vote(event_id=eid, attendee_session_id=session.id, is_in=bool(is_in))
                self._store.upsert_vote(vote)
                transitioned = self._phases.apply_automatic(locked, now)
                return VoteOutcome(vote=vote, session=session, transitioned_to=transitioned)

        outcome = retry_on_conflict(_cast, self._retries)
        logger.info(
            "Vote recorded",
            extra={"event_id": str(eid), "session_id": str(outcome.session.id), "is_in": outcome.vote.is_in},
        )
        self._notifier.emit(eid, VOTE_UPDATED, {"attendeeId": str(outcome.session.id)})
        if outcome.transitioned_to is not None:
            self._phases.announce_phase(eid, outcome.transitioned_to)
        return outcome

    def count_in(self, event_id: str | EventId) -> int:
        eid = parse_event_id(event_id)
        load_event(self._store, eid)
        return self._store.count_in(eid)

    def count_total_voters(self, event_id: str | EventId) -> int:
        eid = parse_event_id(event_id)
        load_event(self._store, eid)
        return self._store.count_total_voters(eid)

    def vote_of(self, session: AttendeeSession) -> bool | None:
        """Return the session's current vote, or None if it has not voted."""
        vote = self._store.get_vote(session.event_id, session.id)
        return vote.is_in if vote is not None else None
