"""Same-day time intervals with minute granularity.

An :class:`Interval` is a civil date plus a half-open ``[start, end)`` range of
minutes since midnight. It never carries a time zone and is never converted to
an absolute instant: stored pattern strings such as ``"2024-12-25 09:00:00"``
are split and read as integers directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from slot_poll.labels.parsing import (
    DateParseResult,
    ParsedDate,
    ParsedTime,
    TimeParseResult,
    parse_date_label,
    parse_time_label,
)

MINUTES_PER_DAY = 24 * 60
# Default spans stop here so the stored end stays a valid time of day.
LAST_MINUTE_OF_DAY = MINUTES_PER_DAY - 1
DEFAULT_SLOT_MINUTES = 60


def to_minutes(hh: int, mm: int) -> int:
    return hh * 60 + mm


def hhmm_to_minutes(value: str) -> int:
    """Convert ``"HH:MM"`` or ``"HH:MM:SS"`` to minutes since midnight."""

    parts = value.split(":")
    if len(parts) < 2:
        raise ValueError(f"Not a time of day: {value!r}")
    return to_minutes(int(parts[0]), int(parts[1]))


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _split_civil_timestamp(value: str) -> tuple[date, int]:
    date_part, _, time_part = value.strip().partition(" ")
    pieces = date_part.split("-")
    if len(pieces) != 3 or not time_part:
        raise ValueError(f"Not a civil timestamp: {value!r}")
    year, month, day = (int(p) for p in pieces)
    return date(year, month, day), hhmm_to_minutes(time_part)


@dataclass(frozen=True, order=True)
class Interval:
    """A time range within a single civil day."""

    date: date
    start_minutes: int
    end_minutes: int

    def __post_init__(self) -> None:
        if not 0 <= self.start_minutes < MINUTES_PER_DAY:
            raise ValueError(f"start_minutes out of range: {self.start_minutes}")
        if not 0 < self.end_minutes <= MINUTES_PER_DAY:
            raise ValueError(f"end_minutes out of range: {self.end_minutes}")
        if self.start_minutes >= self.end_minutes:
            raise ValueError(
                f"Interval must start before it ends: {self.start_minutes} >= {self.end_minutes}"
            )

    @property
    def duration_minutes(self) -> int:
        return self.end_minutes - self.start_minutes

    def overlaps_or_adjacent(self, other: Interval, tolerance_minutes: int = 0) -> bool:
        """Whether two intervals overlap, touch, or sit at most ``tolerance_minutes`` apart.

        Intervals on different dates never qualify. With the default tolerance of
        zero this is the strict "touching" rule used for contiguous merges.
        """

        if self.date != other.date:
            return False
        return (
            self.start_minutes <= other.end_minutes + tolerance_minutes
            and other.start_minutes <= self.end_minutes + tolerance_minutes
        )

    def contains(self, other: Interval) -> bool:
        return (
            self.date == other.date
            and self.start_minutes <= other.start_minutes
            and other.end_minutes <= self.end_minutes
        )

    def union(self, other: Interval) -> Interval:
        """Smallest interval covering both; only defined for the same date."""

        if self.date != other.date:
            raise ValueError(f"Cannot union intervals on {self.date} and {other.date}")
        return Interval(
            self.date,
            min(self.start_minutes, other.start_minutes),
            max(self.end_minutes, other.end_minutes),
        )

    def to_storage(self) -> tuple[str, str]:
        """Render as timezone-free ``("YYYY-MM-DD HH:MM:SS", ...)`` strings."""

        day = self.date.isoformat()
        return (
            f"{day} {minutes_to_hhmm(self.start_minutes)}:00",
            f"{day} {minutes_to_hhmm(self.end_minutes)}:00",
        )

    @classmethod
    def from_storage(cls, start_time: str, end_time: str) -> Interval:
        """Read a stored ``start_time``/``end_time`` pair.

        Raises:
            ValueError: If the strings are malformed or span different dates.
        """

        start_date, start_minutes = _split_civil_timestamp(start_time)
        end_date, end_minutes = _split_civil_timestamp(end_time)
        if start_date != end_date:
            raise ValueError(f"Pattern spans midnight: {start_time!r} - {end_time!r}")
        return cls(start_date, start_minutes, end_minutes)

    def __str__(self) -> str:
        return (
            f"{self.date.isoformat()} "
            f"{minutes_to_hhmm(self.start_minutes)}-{minutes_to_hhmm(self.end_minutes)}"
        )


def from_parsed(
    parsed_date: DateParseResult,
    parsed_time: TimeParseResult,
    default_span_minutes: int = DEFAULT_SLOT_MINUTES,
) -> Interval | None:
    """Combine parsed labels into an interval.

    Returns None when either label is unrecognized or the resulting range is
    empty (e.g. an end time at or before the start time).
    """

    if not isinstance(parsed_date, ParsedDate) or not isinstance(parsed_time, ParsedTime):
        return None

    start = hhmm_to_minutes(parsed_time.start_time)
    if parsed_time.end_time is not None:
        end = hhmm_to_minutes(parsed_time.end_time)
    else:
        end = min(start + default_span_minutes, LAST_MINUTE_OF_DAY)

    if end <= start:
        return None
    return Interval(parsed_date.date, start, end)


def from_label_pair(
    date_label: str,
    time_label: str,
    default_span_minutes: int = DEFAULT_SLOT_MINUTES,
    today: date | None = None,
) -> Interval | None:
    """Resolve a grid cell's (date label, time label) into an interval."""

    return from_parsed(
        parse_date_label(date_label, today=today),
        parse_time_label(time_label),
        default_span_minutes=default_span_minutes,
    )
