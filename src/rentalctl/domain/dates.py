"""Half-open calendar intervals and UTC instant helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from rentalctl.domain.errors import InvalidDateRangeError, InvalidInputError

_DAY = timedelta(days=1)


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC instant. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_iso(value: datetime) -> str:
    """Fixed-width ISO-8601 UTC text, so stored instants sort lexically."""
    return ensure_utc(value).isoformat(timespec="microseconds")


def from_iso(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))


def parse_instant(value: str) -> datetime:
    """Parse a user-supplied date or datetime (``2026-05-01`` or full ISO)."""
    try:
        return ensure_utc(datetime.fromisoformat(value.strip()))
    except ValueError as exc:
        raise InvalidInputError(f"Not a valid date: {value!r}", value=value) from exc


@dataclass(frozen=True)
class DateRange:
    """The interval ``[start, end)``; ``end`` is exclusive.

    Adjacent ranges (one's ``end`` equal to the other's ``start``) do not
    overlap.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        start = ensure_utc(self.start)
        end = ensure_utc(self.end)
        if start >= end:
            raise InvalidDateRangeError(
                "Start date must be before end date",
                start=start.isoformat(),
                end=end.isoformat(),
            )
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def of_days(cls, start: datetime, days: int) -> DateRange:
        if days <= 0:
            raise InvalidDateRangeError("Duration must be at least one day", days=days)
        return cls(start, ensure_utc(start) + timedelta(days=days))

    @property
    def days(self) -> int:
        """Duration in whole days, rounded up."""
        return math.ceil((self.end - self.start) / _DAY)

    def days_until_end(self, now: datetime) -> int:
        """Days from *now* until ``end``, rounded up; negative once ended."""
        return math.ceil((self.end - ensure_utc(now)) / _DAY)

    def overlaps(self, other: DateRange) -> bool:
        return self.start < other.end and self.end > other.start

    def contains(self, instant: datetime) -> bool:
        return self.start <= ensure_utc(instant) < self.end

    def has_started(self, now: datetime) -> bool:
        return self.start <= ensure_utc(now)

    def has_ended(self, now: datetime) -> bool:
        return self.end <= ensure_utc(now)

    def is_active(self, now: datetime) -> bool:
        return self.has_started(now) and not self.has_ended(now)

    def extend_by(self, days: int) -> DateRange:
        if days <= 0:
            raise InvalidInputError("Extension must be a positive number of days", days=days)
        return DateRange(self.start, self.end + timedelta(days=days))

    def __str__(self) -> str:
        return f"{self.start.date().isoformat()} → {self.end.date().isoformat()}"
