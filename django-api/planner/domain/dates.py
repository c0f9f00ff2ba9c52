"""UTC day arithmetic.

All day-granularity comparisons operate on UTC calendar days. Only the vote
deadline is compared as an instant.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

from planner.domain.errors import InvalidRangeError, ValidationError

DAY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_day(text: str) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Raises:
        ValidationError: If the text is not a valid calendar day.
    """
    if not isinstance(text, str) or not DAY_PATTERN.fullmatch(text):
        raise ValidationError(f"Invalid date format: {text!r}, use YYYY-MM-DD")
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {text!r}") from exc


def format_day(day: date) -> str:
    return day.isoformat()


def to_utc_day(value: date | datetime | str) -> date:
    """Normalize a day, an instant or a day/ISO string to a UTC calendar day.

    Naive datetimes are read as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        if DAY_PATTERN.fullmatch(value):
            return parse_day(value)
        try:
            instant = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationError(f"Invalid date: {value!r}") from exc
        return to_utc_day(instant)
    raise ValidationError(f"Unsupported date value: {value!r}")


def each_day_inclusive(start: date | datetime | str, end: date | datetime | str) -> list[date]:
    """Return every UTC day from start to end, both included.

    Raises:
        InvalidRangeError: If start is after end.
    """
    first = to_utc_day(start)
    last = to_utc_day(end)
    if first > last:
        raise InvalidRangeError(first, last)
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


@dataclass(frozen=True)
class DateWindow:
    """Inclusive range of UTC calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidRangeError(self.start, self.end)

    @classmethod
    def between(cls, start: date | datetime | str, end: date | datetime | str) -> "DateWindow":
        return cls(start=to_utc_day(start), end=to_utc_day(end))

    def days(self) -> list[date]:
        return each_day_inclusive(self.start, self.end)

    def contains(self, value: date | datetime | str) -> bool:
        return self.start <= to_utc_day(value) <= self.end

    def __len__(self) -> int:
        return (self.end - self.start).days + 1
