from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from planner.domain.dates import utc_now
from planner.services.availability_service import AvailabilityService, EventResults
from planner.services.base import DEFAULT_CONFLICT_RETRIES
from planner.services.event_service import EventService
from planner.services.identity_service import IdentityService, JoinResult, NameClaim
from planner.services.notifier import Notifier, NullNotifier
from planner.services.phase_service import PhaseService
from planner.services.sweep_service import SweepResult, SweepService
from planner.services.vote_service import VoteOutcome, VoteService
from planner.stores.interfaces import PlannerStore

__all__ = [
    "AvailabilityService",
    "EventResults",
    "EventService",
    "IdentityService",
    "JoinResult",
    "NameClaim",
    "PhaseService",
    "Planner",
    "SweepResult",
    "SweepService",
    "VoteOutcome",
    "VoteService",
    "build_planner",
]


@dataclass(frozen=True)
class Planner:
    """The planner services wired to one store and notifier."""

    events: EventService
    identity: IdentityService
    votes: VoteService
    phases: PhaseService
    availability: AvailabilityService
    sweeper: SweepService


def build_planner(
    store: PlannerStore,
    notifier: Notifier | None = None,
    clock: Callable[[], datetime] = utc_now,
    retries: int = DEFAULT_CONFLICT_RETRIES,
) -> Planner:
    notifier = notifier or NullNotifier()
    identity = IdentityService(store, notifier, clock)
    phases = PhaseService(store, notifier, clock, retries)
    return Planner(
        events=EventService(store, notifier, clock),
        identity=identity,
        votes=VoteService(store, identity, phases, notifier, clock, retries),
        phases=phases,
        availability=AvailabilityService(store, identity, phases, notifier),
        sweeper=SweepService(store, phases, clock),
    )
