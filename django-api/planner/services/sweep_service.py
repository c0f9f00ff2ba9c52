"""Expiry sweep - settles VOTE events whose deadline has passed.

Safe to run concurrently with live votes and safe to re-run: each event is
re-evaluated independently under a row lock, and the phase write is
conditional on the event still being in VOTE.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from planner.domain import EventId, Phase
from planner.domain.dates import utc_now
from planner.domain.errors import DomainError
from planner.services.phase_service import PhaseService
from planner.stores.interfaces import PlannerStore

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Events settled by one sweep run."""

    failed: list[EventId] = field(default_factory=list)
    advanced: list[EventId] = field(default_factory=list)
    errors: list[EventId] = field(default_factory=list)


class SweepService:
    """Service run by the periodic expiry trigger."""

    def __init__(
        self,
        store: PlannerStore,
        phases: PhaseService,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._phases = phases
        self._clock = clock

    def sweep(self, now: datetime | None = None) -> SweepResult:
        moment = now or self._clock()
        result = SweepResult()
        for event_id in self._store.list_overdue_vote_events(moment):
            try:
                phase = self._phases.evaluate(event_id, moment)
            except DomainError:
                logger.exception("Sweep could not settle event", extra={"event_id": str(event_id)})
                result.errors.append(event_id)
                continue
            if phase == Phase.FAILED:
                result.failed.append(event_id)
            elif phase == Phase.PICK_DAYS:
                result.advanced.append(event_id)

        logger.info(
            "Expiry sweep finished",
            extra={
                "now": moment.isoformat(),
                "failed": len(result.failed),
                "advanced": len(result.advanced),
                "errors": len(result.errors),
            },
        )
        return result
