"""Free-text grid label parsing.

Date and time headers of a poll grid are typed by organizers. This package
turns them into calendar values where it can, and flags them as unrecognized
where it cannot.
"""

from .grid import (
    GridDefinition,
    GridLabel,
    GridValidation,
    TimeSlot,
    build_event_grid,
    generate_time_slots,
    sort_time_slots,
    suggest_time_labels,
    validate_grid,
)
from .parsing import (
    ParsedDate,
    ParsedTime,
    UnrecognizedLabel,
    parse_date_label,
    parse_time_label,
)

__all__ = [
    "GridDefinition",
    "GridLabel",
    "GridValidation",
    "ParsedDate",
    "ParsedTime",
    "TimeSlot",
    "UnrecognizedLabel",
    "build_event_grid",
    "generate_time_slots",
    "parse_date_label",
    "parse_time_label",
    "sort_time_slots",
    "suggest_time_labels",
    "validate_grid",
]
