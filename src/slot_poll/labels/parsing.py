"""Parsing of free-text grid labels into calendar values.

Date labels name a grid column ("12/25", "2024-12-25", "1225") and time labels
name a row ("18:00", "09:00-17:00", "18:00~Shibuya"). Parsing never raises: a
label that matches no known format yields :class:`UnrecognizedLabel`, which
callers treat as "exclude from pattern learning" or "predict unavailable".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import ClassVar, Union

_MONTH_DAY = re.compile(r"(\d{1,2})[/\-.](\d{1,2})")
_YEAR_MONTH_DAY = re.compile(r"(\d{4})[/\-](\d{1,2})[/\-](\d{1,2})")
_COMPACT_MONTH_DAY = re.compile(r"(\d{2})(\d{2})")

_TIME_WITH_LOCATION = re.compile(r"(\d{1,2}):(\d{2})~(.+)")
_TIME_RANGE = re.compile(r"(\d{1,2}):(\d{2})[-~](\d{1,2}):(\d{2})")
_SINGLE_TIME = re.compile(r"(\d{1,2}):(\d{2})")


@dataclass(frozen=True)
class UnrecognizedLabel:
    """A label that matched none of the supported formats."""

    label: str
    recognized: ClassVar[bool] = False


@dataclass(frozen=True)
class ParsedDate:
    """A civil date (no time zone) read from a date label."""

    date: date
    recognized: ClassVar[bool] = True


@dataclass(frozen=True)
class ParsedTime:
    """Times of day ("HH:MM") and optional location read from a time label."""

    start_time: str
    end_time: str | None = None
    location: str | None = None
    recognized: ClassVar[bool] = True


DateParseResult = Union[ParsedDate, UnrecognizedLabel]
TimeParseResult = Union[ParsedTime, UnrecognizedLabel]


def _valid_month_day(month: int, day: int) -> bool:
    return 1 <= month <= 12 and 1 <= day <= 31


def _valid_time(hour: int, minute: int) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59


def _civil_date(year: int, month: int, day: int) -> date | None:
    # Days past the end of the month roll over (02/30 -> 03/01 or 03/02).
    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except (ValueError, OverflowError):
        return None


def _hhmm(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def parse_date_label(label: str, today: date | None = None) -> DateParseResult:
    """Parse a date label.

    Formats are tried in order: ``MM/DD`` (also ``-`` and ``.``),
    ``YYYY/MM/DD`` (also ``-``), then ``MMDD``. Formats without a year use
    the current year.

    Args:
        label: Free-text column label.
        today: Reference date for the implied year. Defaults to ``date.today()``.

    Returns:
        ParsedDate when recognized, otherwise UnrecognizedLabel.
    """

    text = label.strip()
    current_year = (today or date.today()).year

    m = _MONTH_DAY.fullmatch(text)
    if m:
        month, day = int(m.group(1)), int(m.group(2))
        if _valid_month_day(month, day):
            parsed = _civil_date(current_year, month, day)
            if parsed is not None:
                return ParsedDate(parsed)

    m = _YEAR_MONTH_DAY.fullmatch(text)
    if m:
        year, month, day = int(m.group(1)), int(m.group(2)), int(m.group(3))
        if _valid_month_day(month, day):
            parsed = _civil_date(year, month, day)
            if parsed is not None:
                return ParsedDate(parsed)

    m = _COMPACT_MONTH_DAY.fullmatch(text)
    if m:
        month, day = int(m.group(1)), int(m.group(2))
        if _valid_month_day(month, day):
            parsed = _civil_date(current_year, month, day)
            if parsed is not None:
                return ParsedDate(parsed)

    return UnrecognizedLabel(label)


def parse_time_label(label: str) -> TimeParseResult:
    """Parse a time label.

    Formats are tried in order: ``HH:MM~location``, ``HH:MM-HH:MM`` (also
    ``~`` as separator), then a bare ``HH:MM``. Text after ``~`` that is itself
    a time of day is read as a range end rather than a location.

    Args:
        label: Free-text row label.

    Returns:
        ParsedTime when recognized, otherwise UnrecognizedLabel.
    """

    text = label.strip()

    m = _TIME_WITH_LOCATION.fullmatch(text)
    if m and not _SINGLE_TIME.fullmatch(m.group(3).strip()):
        hour, minute = int(m.group(1)), int(m.group(2))
        if _valid_time(hour, minute):
            return ParsedTime(start_time=_hhmm(hour, minute), location=m.group(3))

    m = _TIME_RANGE.fullmatch(text)
    if m:
        start_hour, start_minute = int(m.group(1)), int(m.group(2))
        end_hour, end_minute = int(m.group(3)), int(m.group(4))
        if _valid_time(start_hour, start_minute) and _valid_time(end_hour, end_minute):
            return ParsedTime(
                start_time=_hhmm(start_hour, start_minute),
                end_time=_hhmm(end_hour, end_minute),
            )

    m = _SINGLE_TIME.fullmatch(text)
    if m:
        hour, minute = int(m.group(1)), int(m.group(2))
        if _valid_time(hour, minute):
            return ParsedTime(start_time=_hhmm(hour, minute))

    return UnrecognizedLabel(label)
