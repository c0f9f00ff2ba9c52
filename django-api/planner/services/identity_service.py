"""Identity resolution - maps (session key, user id) to an attendee session.

Resolution order is fixed:

1. an active session holding exactly the session key;
2. the active session of the logged-in user;
3. nothing, the caller must join.

Sessions are never deleted. Switching identity deactivates the previous
session; only active sessions count toward quorum and results.
"""

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from planner.domain import (
    AttendeeName,
    AttendeeNameId,
    AttendeeSession,
    AttendeeSessionId,
    EventId,
    SessionKey,
    Vote,
)
from planner.domain.dates import utc_now
from planner.domain.errors import (
    AttendeeNameNotFoundError,
    AttendeeSessionNotFoundError,
    ForbiddenError,
    NameClaimedError,
    PhaseClosedError,
    ValidationError,
)
from planner.services.base import load_event, parse_event_id
from planner.services.notifier import ATTENDEE_JOINED, ATTENDEE_LEFT, ATTENDEE_NAME_CHANGED, Notifier
from planner.stores.interfaces import PlannerStore

logger = logging.getLogger(__name__)

JoinMode = Literal["created", "merged", "switched", "unchanged"]

DEFAULT_TIME_ZONE = "UTC"


@dataclass(frozen=True)
class JoinResult:
    """Outcome of joining or switching names."""

    session: AttendeeSession
    mode: JoinMode


@dataclass(frozen=True)
class NameClaim:
    """An invited name and who currently holds it."""

    name: AttendeeName
    claimed: bool
    claimed_by_user: bool


class IdentityService:
    """Service for attendee identity: resolve, join, switch name, leave."""

    def __init__(
        self,
        store: PlannerStore,
        notifier: Notifier,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock

    def resolve(
        self,
        event_id: str | EventId,
        session_key: str | None = None,
        user_id: str | None = None,
    ) -> AttendeeSession | None:
        """Return the active session representing the caller, or None."""
        eid = parse_event_id(event_id)
        if session_key:
            key = SessionKey(session_key)
            if key.belongs_to(eid):
                session = self._store.find_active_session_by_key(eid, key)
                if session is not None:
                    self._log_resolution(eid, "session_key", session)
                    return session
            else:
                logger.debug("Ignoring session key issued for another event", extra={"event_id": str(eid)})
        if user_id:
            session = self._store.find_active_session_by_user(eid, user_id)
            if session is not None:
                self._log_resolution(eid, "user_id", session)
                return session
        self._log_resolution(eid, "none", None)
        return None

    def require(
        self,
        event_id: str | EventId,
        session_key: str | None = None,
        user_id: str | None = None,
    ) -> AttendeeSession:
        """Like ``resolve`` but raises when the caller has not joined.

        Raises:
            AttendeeSessionNotFoundError: If no active session matches.
        """
        session = self.resolve(event_id, session_key, user_id)
        if session is None:
            raise AttendeeSessionNotFoundError()
        return session

    def join(
        self,
        event_id: str | EventId,
        *,
        name_id: str | None = None,
        slug: str | None = None,
        session_key: str | None = None,
        user_id: str | None = None,
        display_name: str | None = None,
        time_zone: str | None = None,
    ) -> JoinResult:
        """Claim an invited name for the caller.

        Raises:
            ValidationError: If neither a name id nor a slug is given.
            EventNotFoundError: If the event does not exist.
            AttendeeNameNotFoundError: If the name is not on the invite list.
            PhaseClosedError: If the event reached a terminal phase.
            ForbiddenError: If the event requires login and the caller has none.
            NameClaimedError: If another logged-in user holds the name.
        """
        eid = parse_event_id(event_id)
        with self._store.atomic():
            event = load_event(self._store, eid, for_update=True)
            if event.phase.is_terminal:
                raise PhaseClosedError(event.phase)
            if event.require_login_to_attend and not user_id:
                raise ForbiddenError("Log in to join this event")
            name = self._find_name(eid, name_id, slug)
            current = self.resolve(eid, session_key, user_id)
            if current is not None:
                current = self._adopt(eid, current, user_id)

            if current is not None and current.attendee_name_id == name.id:
                return JoinResult(session=current, mode="unchanged")
            if current is not None:
                result = JoinResult(session=self._switch(current, name, display_name), mode="switched")
            else:
                result = self._create(eid, name, user_id, display_name, time_zone)

        self._announce(eid, result)
        return result

    def switch_name(
        self,
        event_id: str | EventId,
        *,
        name_id: str | None = None,
        slug: str | None = None,
        session_key: str | None = None,
        user_id: str | None = None,
        display_name: str | None = None,
    ) -> JoinResult:
        """Move the caller's session to another invited name.

        The session id is kept, so its vote and blocks follow it.

        Raises:
            AttendeeSessionNotFoundError: If the caller has not joined.
            NameClaimedError: If another logged-in user holds the name.
        """
        eid = parse_event_id(event_id)
        with self._store.atomic():
            event = load_event(self._store, eid, for_update=True)
            if event.phase.is_terminal:
                raise PhaseClosedError(event.phase)
            name = self._find_name(eid, name_id, slug)
            current = self.require(eid, session_key, user_id)
            current = self._adopt(eid, current, user_id)
            if current.attendee_name_id == name.id:
                return JoinResult(session=current, mode="unchanged")
            result = JoinResult(session=self._switch(current, name, display_name), mode="switched")

        self._announce(eid, result)
        return result

    def leave(
        self,
        event_id: str | EventId,
        *,
        session_key: str | None = None,
        user_id: str | None = None,
    ) -> AttendeeSession:
        """Deactivate the caller's session. History is kept.

        Raises:
            AttendeeSessionNotFoundError: If the caller has not joined.
        """
        eid = parse_event_id(event_id)
        with self._store.atomic():
            load_event(self._store, eid, for_update=True)
            session = self.require(eid, session_key, user_id)
            self._store.deactivate_session(session.id)
        logger.info("Attendee left", extra={"event_id": str(eid), "session_id": str(session.id)})
        self._notifier.emit(eid, ATTENDEE_LEFT, {"attendeeId": str(session.id)})
        return session

    def name_claims(self, event_id: str | EventId) -> list[NameClaim]:
        eid = parse_event_id(event_id)
        load_event(self._store, eid)
        holders = {session.attendee_name_id: session for session in self._store.list_active_sessions(eid)}
        return [
            NameClaim(
                name=name,
                claimed=name.id in holders,
                claimed_by_user=name.id in holders and holders[name.id].is_logged_in,
            )
            for name in self._store.list_attendee_names(eid)
        ]

    def _find_name(self, event_id: EventId, name_id: str | None, slug: str | None) -> AttendeeName:
        if name_id:
            name = self._store.get_attendee_name(event_id, AttendeeNameId.from_string(name_id))
        elif slug:
            name = self._store.get_attendee_name_by_slug(event_id, slug)
        else:
            raise ValidationError("Either an attendee name id or a name slug is required")
        if name is None:
            raise AttendeeNameNotFoundError(name_id or slug)
        return name

    def _release_name(self, name: AttendeeName, claimant_user_id: str | None) -> AttendeeSession | None:
        """Deactivate whoever holds ``name`` so the claimant can take it.

        Returns the released session. A name held by a different logged-in
        user cannot be taken.
        """
        holder = self._store.find_active_session_by_name(name.event_id, name.id)
        if holder is None:
            return None
        if holder.user_id and holder.user_id != claimant_user_id:
            raise NameClaimedError(name.label)
        self._store.deactivate_session(holder.id)
        return holder

    def _adopt(self, event_id: EventId, current: AttendeeSession, user_id: str | None) -> AttendeeSession:
        """Attach a logged-in caller to the anonymous session their key resolved.

        The caller's earlier logged-in session, if any, is deactivated first
        so the user keeps a single active session.
        """
        if not user_id or current.user_id is not None:
            return current
        previous = self._store.find_active_session_by_user(event_id, user_id)
        if previous is not None and previous.id != current.id:
            self._store.deactivate_session(previous.id)
            logger.info(
                "Replaced earlier session of logged-in attendee",
                extra={"event_id": str(event_id), "session_id": str(previous.id)},
            )
        return self._store.update_session(current.id, user_id=user_id)

    def _switch(self, current: AttendeeSession, name: AttendeeName, display_name: str | None) -> AttendeeSession:
        self._release_name(name, current.user_id)
        return self._store.update_session(
            current.id,
            attendee_name_id=name.id,
            display_name=display_name or name.label,
        )

    def _create(
        self,
        event_id: EventId,
        name: AttendeeName,
        user_id: str | None,
        display_name: str | None,
        time_zone: str | None,
    ) -> JoinResult:
        previous = self._release_name(name, user_id)
        session = AttendeeSession(
            id=AttendeeSessionId(uuid.uuid4()),
            event_id=event_id,
            attendee_name_id=name.id,
            user_id=user_id or None,
            session_key=SessionKey.generate(event_id, user_id),
            display_name=display_name or name.label,
            time_zone=time_zone or DEFAULT_TIME_ZONE,
            anonymous_blocks=not user_id,
            is_active=True,
            has_saved_availability=previous.has_saved_availability if previous else False,
            created_at=self._clock(),
        )
        self._store.add_session(session)
        if previous is None:
            return JoinResult(session=session, mode="created")
        self._carry_ballot(event_id, previous, session)
        return JoinResult(session=session, mode="merged")

    def _carry_ballot(self, event_id: EventId, source: AttendeeSession, target: AttendeeSession) -> None:
        """Copy the released session's vote and blocks to its successor."""
        vote = self._store.get_vote(event_id, source.id)
        if vote is not None:
            self._store.upsert_vote(Vote(event_id=event_id, attendee_session_id=target.id, is_in=vote.is_in))
        days = self._store.list_session_blocks(event_id, source.id)
        if days:
            self._store.replace_blocks(event_id, target.id, days)

    def _announce(self, event_id: EventId, result: JoinResult) -> None:
        logger.info(
            "Attendee session %s",
            result.mode,
            extra={
                "event_id": str(event_id),
                "session_id": str(result.session.id),
                "attendee_name_id": str(result.session.attendee_name_id),
                "logged_in": result.session.is_logged_in,
            },
        )
        if result.mode == "switched":
            self._notifier.emit(
                event_id,
                ATTENDEE_NAME_CHANGED,
                {"attendeeId": str(result.session.id), "newName": result.session.display_name},
            )
        elif result.mode in ("created", "merged"):
            self._notifier.emit(event_id, ATTENDEE_JOINED, {"attendeeId": str(result.session.id)})

    @staticmethod
    def _log_resolution(event_id: EventId, method: str, session: AttendeeSession | None) -> None:
        logger.debug(
            "Attendee identity resolved",
            extra={
                "event_id": str(event_id),
                "method": method,
                "session_id": str(session.id) if session else None,
            },
        )
