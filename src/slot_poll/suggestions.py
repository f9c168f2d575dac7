"""Replaying learned patterns against a new event's grid."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

import structlog

from slot_poll.intervals import DEFAULT_SLOT_MINUTES, from_parsed
from slot_poll.labels.parsing import parse_date_label, parse_time_label
from slot_poll.models import EventGrid, StoredPattern, Suggestion
from slot_poll.patterns.merge import resolve_stored

logger = structlog.get_logger()


def suggest_for_grid(
    patterns: Iterable[StoredPattern],
    grid: EventGrid,
    default_span_minutes: int = DEFAULT_SLOT_MINUTES,
    today: date | None = None,
) -> list[Suggestion]:
    """Predict availability for every cell of ``grid``.

    A cell is predicted available only when one stored pattern on the same
    date fully contains the cell's interval. Cells whose labels cannot be
    resolved are predicted unavailable.

    Args:
        patterns: The user's stored patterns.
        grid: Target event grid.
        default_span_minutes: Span assumed for time labels without an end.
        today: Reference date for labels without a year.

    Returns:
        One suggestion per grid cell, or an empty list when the user has no
        stored patterns at all (no suggestion available).
    """

    patterns = list(patterns)
    if not patterns:
        return []

    known = {day: [interval for _, interval in rows] for day, rows in resolve_stored(patterns).items()}

    # Labels are parsed once per row/column rather than once per cell.
    parsed_dates = {c.id: parse_date_label(c.label, today=today) for c in grid.date_cells}
    parsed_times = {c.id: parse_time_label(c.label) for c in grid.time_cells}

    suggestions: list[Suggestion] = []
    for date_cell in grid.date_cells:
        for time_cell in grid.time_cells:
            cell = from_parsed(
                parsed_dates[date_cell.id],
                parsed_times[time_cell.id],
                default_span_minutes=default_span_minutes,
            )
            available = cell is not None and any(
                pattern.contains(cell) for pattern in known.get(cell.date, [])
            )
            suggestions.append(
                Suggestion(
                    date_cell_id=date_cell.id,
                    time_cell_id=time_cell.id,
                    is_available=available,
                )
            )

    logger.debug(
        "suggestions_computed",
        event_id=grid.event_id,
        cells=len(suggestions),
        available=sum(1 for s in suggestions if s.is_available),
    )
    return suggestions
