"""Helpers for building and checking an event's date x time grid."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from slot_poll.labels.parsing import ParsedDate, ParsedTime, parse_date_label, parse_time_label


@dataclass(frozen=True)
class GridLabel:
    """A trimmed header label and its position."""

    label: str
    order: int


@dataclass(frozen=True)
class GridDefinition:
    """Normalized column (date) and row (time) headers of a new event."""

    dates: tuple[GridLabel, ...]
    times: tuple[GridLabel, ...]


@dataclass(frozen=True)
class TimeSlot:
    """One grid cell with its parsed interpretation."""

    date_label: str
    time_label: str
    row_order: int
    col_order: int
    parsed_date: date | None = None
    parsed_start_time: str | None = None
    parsed_end_time: str | None = None
    parsed_location: str | None = None
    is_date_recognized: bool = False
    is_time_recognized: bool = False


@dataclass
class GridValidation:
    """Outcome of :func:`validate_grid`."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def build_event_grid(date_labels: Iterable[str], time_labels: Iterable[str]) -> GridDefinition:
    """Trim labels and number them by position."""

    return GridDefinition(
        dates=tuple(GridLabel(label.strip(), i) for i, label in enumerate(date_labels)),
        times=tuple(GridLabel(label.strip(), i) for i, label in enumerate(time_labels)),
    )


def generate_time_slots(
    date_labels: Sequence[str],
    time_labels: Sequence[str],
    today: date | None = None,
) -> list[TimeSlot]:
    """Expand headers into one :class:`TimeSlot` per cell, row by row."""

    parsed_dates = [parse_date_label(label, today=today) for label in date_labels]
    parsed_times = [parse_time_label(label) for label in time_labels]

    slots = []
    for row, (time_label, parsed_time) in enumerate(zip(time_labels, parsed_times)):
        for col, (date_label, parsed_date) in enumerate(zip(date_labels, parsed_dates)):
            time_ok = isinstance(parsed_time, ParsedTime)
            date_ok = isinstance(parsed_date, ParsedDate)
            slots.append(
                TimeSlot(
                    date_label=date_label,
                    time_label=time_label,
                    row_order=row,
                    col_order=col,
                    parsed_date=parsed_date.date if date_ok else None,
                    parsed_start_time=parsed_time.start_time if time_ok else None,
                    parsed_end_time=parsed_time.end_time if time_ok else None,
                    parsed_location=parsed_time.location if time_ok else None,
                    is_date_recognized=date_ok,
                    is_time_recognized=time_ok,
                )
            )
    return slots


def validate_grid(date_labels: Sequence[str], time_labels: Sequence[str]) -> GridValidation:
    """Check grid headers before an event is created.

    Empty labels are errors, as is a grid with no rows or no columns. Cells
    are addressed by position, so repeated label text (two "TBD" columns) is
    allowed and only reported as a warning, as are labels that cannot be
    parsed: such cells can still be voted on but take no part in pattern
    learning.
    """

    result = GridValidation()

    if not date_labels:
        result.errors.append("At least one date label is required")
    if not time_labels:
        result.errors.append("At least one time label is required")

    for kind, labels in (("date", date_labels), ("time", time_labels)):
        seen: set[str] = set()
        for position, label in enumerate(labels, start=1):
            text = label.strip()
            if not text:
                result.errors.append(f"{kind.capitalize()} label {position} is empty")
                continue
            if text in seen:
                result.warnings.append(f"{kind.capitalize()} label {position} repeats {text!r}")
            seen.add(text)

    unrecognized_dates = sum(
        1 for label in date_labels if label.strip() and not parse_date_label(label).recognized
    )
    unrecognized_times = sum(
        1 for label in time_labels if label.strip() and not parse_time_label(label).recognized
    )
    if unrecognized_dates:
        result.warnings.append(f"{unrecognized_dates} date label(s) could not be recognized")
    if unrecognized_times:
        result.warnings.append(f"{unrecognized_times} time label(s) could not be recognized")

    return result


def _slot_sort_key(slot: TimeSlot) -> tuple:
    # Unparsed labels sort after parsed ones and keep their original position.
    date_key = (0, slot.parsed_date) if slot.parsed_date else (1, date.min)
    time_key = (0, slot.parsed_start_time) if slot.parsed_start_time else (1, "")
    return (date_key, time_key, slot.col_order, slot.row_order)


def sort_time_slots(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Order slots chronologically where their labels parse."""

    return sorted(slots, key=_slot_sort_key)


def suggest_time_labels(existing_time_labels: Iterable[str]) -> list[str]:
    """Offer recognized start times (keeping any ``~location``) for reuse in a new grid."""

    suggestions: list[str] = []
    for label in existing_time_labels:
        parsed = parse_time_label(label)
        if not isinstance(parsed, ParsedTime):
            continue
        suggestion = (
            f"{parsed.start_time}~{parsed.location}" if parsed.location else parsed.start_time
        )
        if suggestion not in suggestions:
            suggestions.append(suggestion)
    return suggestions
