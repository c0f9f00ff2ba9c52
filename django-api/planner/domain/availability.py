"""Availability aggregation over day blocks.

Pure functions: callers pass eligible sessions (active and voted in), the
blocks to consider and the event's ordered day sequence.
"""

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date

TOP_DATES = 3


@dataclass(frozen=True)
class AvailabilityDay:
    """Availability for a single day of the window."""

    date: date
    available: int
    blocked_by: tuple[Hashable, ...] = ()

    @property
    def blocked_count(self) -> int:
        return len(self.blocked_by)


@dataclass(frozen=True)
class AvailabilitySummary:
    """Per-day counts plus ranking and completion report."""

    days: tuple[AvailabilityDay, ...]
    total_eligible: int
    earliest_all: AvailabilityDay | None
    earliest_most: AvailabilityDay | None
    top_dates: tuple[AvailabilityDay, ...]
    completed_availability: int
    not_set_yet: int


def compute_availability(
    days: Sequence[date],
    eligible: Iterable[Hashable],
    blocks: Iterable[tuple[Hashable, date]],
    submitted: Iterable[Hashable] = (),
) -> AvailabilitySummary:
    """Count free attendees per day and rank candidate dates.

    Args:
        days: Ordered UTC days of the event window.
        eligible: Attendee ids that count toward the denominator.
        blocks: ``(attendee id, day)`` pairs; pairs for non-eligible
            attendees or days outside ``days`` are ignored.
        submitted: Attendee ids that have saved a block set, even an empty one.
    """
    eligible_set = set(eligible)
    total = len(eligible_set)

    blocked_on: dict[date, list[Hashable]] = {}
    for attendee_id, day in blocks:
        if attendee_id not in eligible_set:
            continue
        blockers = blocked_on.setdefault(day, [])
        if attendee_id not in blockers:
            blockers.append(attendee_id)

    summary_days = tuple(
        AvailabilityDay(
            date=day,
            available=max(0, total - len(blocked_on.get(day, ()))),
            blocked_by=tuple(blocked_on.get(day, ())),
        )
        for day in days
    )

    earliest_all = next((day for day in summary_days if day.available == total), None)

    earliest_most: AvailabilityDay | None = None
    for day in summary_days:
        if earliest_most is None or day.available > earliest_most.available:
            earliest_most = day

    ranked = sorted(summary_days, key=lambda day: (-day.available, day.date))

    completed = len(eligible_set.intersection(submitted))

    return AvailabilitySummary(
        days=summary_days,
        total_eligible=total,
        earliest_all=earliest_all,
        earliest_most=earliest_most,
        top_dates=tuple(ranked[:TOP_DATES]),
        completed_availability=completed,
        not_set_yet=total - completed,
    )
