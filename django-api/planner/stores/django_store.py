"""Django ORM implementation of the PlannerStore."""

from collections.abc import Iterable, Sequence
from contextlib import AbstractContextManager
from datetime import date, datetime

from django.db import transaction
from django.utils import timezone

from planner import models
from planner.domain import (
    AttendeeName,
    AttendeeNameId,
    AttendeeSession,
    AttendeeSessionId,
    DateWindow,
    DayBlock,
    Event,
    EventId,
    Phase,
    Quorum,
    SessionKey,
    Vote,
)
from planner.stores.interfaces import PlannerStore


def _to_event(row: models.Event) -> Event:
    return Event(
        id=EventId(row.id),
        host_id=row.host_id,
        title=row.title,
        description=row.description,
        window=DateWindow(start=row.start_date, end=row.end_date),
        vote_deadline=row.vote_deadline,
        quorum=Quorum(row.quorum),
        phase=Phase(row.phase),
        final_date=row.final_date,
        require_login_to_attend=row.require_login_to_attend,
        show_results_to_everyone=row.show_results_to_everyone,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_name(row: models.AttendeeName) -> AttendeeName:
    return AttendeeName(
        id=AttendeeNameId(row.id),
        event_id=EventId(row.event_id),
        label=row.label,
        slug=row.slug,
    )


def _to_session(row: models.AttendeeSession) -> AttendeeSession:
    return AttendeeSession(
        id=AttendeeSessionId(row.id),
        event_id=EventId(row.event_id),
        attendee_name_id=AttendeeNameId(row.attendee_name_id),
        user_id=row.user_id,
        session_key=SessionKey(row.session_key),
        display_name=row.display_name,
        time_zone=row.time_zone,
        anonymous_blocks=row.anonymous_blocks,
        is_active=row.is_active,
        has_saved_availability=row.has_saved_availability,
        created_at=row.created_at,
    )


class DjangoPlannerStore(PlannerStore):
    """PostgreSQL-backed planner store using Django ORM.

    ``get_event_for_update`` takes a row lock with ``SELECT ... FOR UPDATE``;
    backends without row locks (SQLite) serialize writers at the database
    level instead.
    """

    def atomic(self) -> AbstractContextManager[None]:
        return transaction.atomic()

    # Events

    def add_event(self, event: Event, names: Sequence[AttendeeName]) -> None:
        with transaction.atomic():
            row = models.Event.objects.create(
                id=event.id.value,
                host_id=event.host_id,
                title=event.title,
                description=event.description,
                start_date=event.window.start,
                end_date=event.window.end,
                vote_deadline=event.vote_deadline,
                quorum=event.quorum.value,
                phase=event.phase.value,
                final_date=event.final_date,
                require_login_to_attend=event.require_login_to_attend,
                show_results_to_everyone=event.show_results_to_everyone,
            )
            models.AttendeeName.objects.bulk_create(
                [models.AttendeeName(id=name.id.value, event=row, label=name.label, slug=name.slug) for name in names]
            )

    def get_event(self, event_id: EventId) -> Event | None:
        row = models.Event.objects.filter(pk=event_id.value).first()
        return _to_event(row) if row else None

    def get_event_for_update(self, event_id: EventId) -> Event | None:
        row = models.Event.objects.select_for_update().filter(pk=event_id.value).first()
        return _to_event(row) if row else None

    def update_phase(
        self,
        event_id: EventId,
        expected: Phase,
        new: Phase,
        final_date: date | None = None,
    ) -> bool:
        changes = {"phase": new.value, "updated_at": timezone.now()}
        if final_date is not None:
            changes["final_date"] = final_date
        updated = models.Event.objects.filter(pk=event_id.value, phase=expected.value).update(**changes)
        return updated == 1

    def set_show_results(self, event_id: EventId, show: bool) -> None:
        models.Event.objects.filter(pk=event_id.value).update(
            show_results_to_everyone=show,
            updated_at=timezone.now(),
        )

    def list_overdue_vote_events(self, now: datetime) -> list[EventId]:
        ids = (
            models.Event.objects.filter(phase=Phase.VOTE.value, vote_deadline__lt=now)
            .order_by("vote_deadline")
            .values_list("id", flat=True)
        )
        return [EventId(value) for value in ids]

    # Attendees

    def list_attendee_names(self, event_id: EventId) -> list[AttendeeName]:
        return [_to_name(row) for row in models.AttendeeName.objects.filter(event_id=event_id.value)]

    def get_attendee_name(self, event_id: EventId, name_id: AttendeeNameId) -> AttendeeName | None:
        row = models.AttendeeName.objects.filter(event_id=event_id.value, pk=name_id.value).first()
        return _to_name(row) if row else None

    def get_attendee_name_by_slug(self, event_id: EventId, slug: str) -> AttendeeName | None:
        row = models.AttendeeName.objects.filter(event_id=event_id.value, slug=slug).first()
        return _to_name(row) if row else None

    def _active_sessions(self, event_id: EventId):
        return models.AttendeeSession.objects.filter(event_id=event_id.value, is_active=True)

    def find_active_session_by_key(self, event_id: EventId, session_key: SessionKey) -> AttendeeSession | None:
        row = self._active_sessions(event_id).filter(session_key=session_key.value).first()
        return _to_session(row) if row else None

    def find_active_session_by_user(self, event_id: EventId, user_id: str) -> AttendeeSession | None:
        row = self._active_sessions(event_id).filter(user_id=user_id).first()
        return _to_session(row) if row else None

    def find_active_session_by_name(self, event_id: EventId, name_id: AttendeeNameId) -> AttendeeSession | None:
        row = self._active_sessions(event_id).filter(attendee_name_id=name_id.value).first()
        return _to_session(row) if row else None

    def list_active_sessions(self, event_id: EventId) -> list[AttendeeSession]:
        return [_to_session(row) for row in self._active_sessions(event_id)]

    def add_session(self, session: AttendeeSession) -> None:
        models.AttendeeSession.objects.create(
            id=session.id.value,
            event_id=session.event_id.value,
            attendee_name_id=session.attendee_name_id.value,
            user_id=session.user_id,
            session_key=session.session_key.value,
            display_name=session.display_name,
            time_zone=session.time_zone,
            anonymous_blocks=session.anonymous_blocks,
            is_active=session.is_active,
            has_saved_availability=session.has_saved_availability,
        )

    def deactivate_session(self, session_id: AttendeeSessionId) -> None:
        models.AttendeeSession.objects.filter(pk=session_id.value).update(
            is_active=False,
            updated_at=timezone.now(),
        )

    def update_session(
        self,
        session_id: AttendeeSessionId,
        *,
        attendee_name_id: AttendeeNameId | None = None,
        display_name: str | None = None,
        anonymous_blocks: bool | None = None,
        has_saved_availability: bool | None = None,
        user_id: str | None = None,
    ) -> AttendeeSession:
        row = models.AttendeeSession.objects.get(pk=session_id.value)
        if attendee_name_id is not None:
            row.attendee_name_id = attendee_name_id.value
        if display_name is not None:
            row.display_name = display_name
        if anonymous_blocks is not None:
            row.anonymous_blocks = anonymous_blocks
        if has_saved_availability is not None:
            row.has_saved_availability = has_saved_availability
        if user_id is not None:
            row.user_id = user_id
        row.save()
        return _to_session(row)

    # Ballots

    def upsert_vote(self, vote: Vote) -> None:
        models.Vote.objects.update_or_create(
            event_id=vote.event_id.value,
            attendee_session_id=vote.attendee_session_id.value,
            defaults={"is_in": vote.is_in},
        )

    def get_vote(self, event_id: EventId, session_id: AttendeeSessionId) -> Vote | None:
        row = models.Vote.objects.filter(event_id=event_id.value, attendee_session_id=session_id.value).first()
        if row is None:
            return None
        return Vote(event_id=event_id, attendee_session_id=session_id, is_in=row.is_in)

    def _active_votes(self, event_id: EventId):
        return models.Vote.objects.filter(event_id=event_id.value, attendee_session__is_active=True)

    def count_in(self, event_id: EventId) -> int:
        return self._active_votes(event_id).filter(is_in=True).count()

    def count_total_voters(self, event_id: EventId) -> int:
        return self._active_votes(event_id).count()

    def list_active_votes(self, event_id: EventId) -> list[Vote]:
        return [
            Vote(event_id=event_id, attendee_session_id=AttendeeSessionId(session_id), is_in=is_in)
            for session_id, is_in in self._active_votes(event_id).values_list("attendee_session_id", "is_in")
        ]

    def replace_blocks(self, event_id: EventId, session_id: AttendeeSessionId, days: Iterable[date]) -> None:
        with transaction.atomic():
            models.DayBlock.objects.filter(event_id=event_id.value, attendee_session_id=session_id.value).delete()
            models.DayBlock.objects.bulk_create(
                [
                    models.DayBlock(event_id=event_id.value, attendee_session_id=session_id.value, date=day)
                    for day in sorted(set(days))
                ]
            )

    def list_blocks(self, event_id: EventId) -> list[DayBlock]:
        rows = models.DayBlock.objects.filter(
            event_id=event_id.value,
            attendee_session__is_active=True,
        ).values_list("attendee_session_id", "date")
        return [
            DayBlock(event_id=event_id, attendee_session_id=AttendeeSessionId(session_id), date=day)
            for session_id, day in rows
        ]

    def list_session_blocks(self, event_id: EventId, session_id: AttendeeSessionId) -> list[date]:
        return list(
            models.DayBlock.objects.filter(
                event_id=event_id.value,
                attendee_session_id=session_id.value,
            ).values_list("date", flat=True)
        )
