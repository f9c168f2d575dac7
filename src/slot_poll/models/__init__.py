"""Data models for Slot Poll.

This module contains Pydantic models for data validation and serialization.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from slot_poll.models.pattern import NewPattern, StoredPattern


class DateCell(BaseModel):
    """A column header of an event grid."""

    id: int = Field(description="Date cell id")
    label: str = Field(description="Free-text date label, e.g. 12/25")
    col_order: int = Field(ge=0, description="Column position in the grid")


class TimeCell(BaseModel):
    """A row header of an event grid."""

    id: int = Field(description="Time cell id")
    label: str = Field(description="Free-text time label, e.g. 09:00-10:00")
    row_order: int = Field(ge=0, description="Row position in the grid")


class EventGrid(BaseModel):
    """The candidate date x time grid of one event."""

    event_id: int = Field(description="Event id")
    title: str = Field(default="", description="Event title")
    date_cells: list[DateCell] = Field(default_factory=list, description="Grid columns")
    time_cells: list[TimeCell] = Field(default_factory=list, description="Grid rows")

    def date_cell(self, cell_id: int) -> Optional[DateCell]:
        return next((c for c in self.date_cells if c.id == cell_id), None)

    def time_cell(self, cell_id: int) -> Optional[TimeCell]:
        return next((c for c in self.time_cells if c.id == cell_id), None)


class VoteInput(BaseModel):
    """One cell of a participant's submission."""

    date_cell_id: int = Field(description="Voted date cell id")
    time_cell_id: int = Field(description="Voted time cell id")
    is_available: bool = Field(description="Whether the participant is available")


class Vote(VoteInput):
    """A persisted vote row, one per (event, user, cell)."""

    event_id: int = Field(description="Event id")
    user_id: str = Field(description="Voting participant")


class Suggestion(BaseModel):
    """Predicted availability for one grid cell."""

    date_cell_id: int = Field(description="Date cell id")
    time_cell_id: int = Field(description="Time cell id")
    is_available: bool = Field(description="Whether the cell is predicted available")


class OperationResult(BaseModel):
    """Result handed back to the UI/API layer."""

    success: bool = Field(default=True, description="Whether the operation succeeded")
    data: Any = Field(default=None, description="Operation payload")
    error: Optional[str] = Field(default=None, description="Error message if failed")


class PatternUpdateSummary(BaseModel):
    """What a pattern-learning pass changed for one user."""

    user_id: str = Field(description="Pattern owner")
    retired: int = Field(default=0, ge=0, description="Pattern rows deleted")
    inserted: int = Field(default=0, ge=0, description="Pattern rows inserted")
    dates: list[str] = Field(default_factory=list, description="ISO dates rewritten")


class VoteSubmissionResult(BaseModel):
    """Payload of a successful vote submission."""

    event_id: int = Field(description="Event id")
    user_id: str = Field(description="Voting participant")
    votes_saved: int = Field(ge=0, description="Vote rows written")
    patterns: Optional[PatternUpdateSummary] = Field(
        default=None,
        description="Pattern changes; None when nothing was learned or learning failed",
    )
    learning_failed: bool = Field(
        default=False, description="Whether best-effort pattern learning raised"
    )


__all__ = [
    "DateCell",
    "EventGrid",
    "NewPattern",
    "OperationResult",
    "PatternUpdateSummary",
    "StoredPattern",
    "Suggestion",
    "TimeCell",
    "Vote",
    "VoteInput",
    "VoteSubmissionResult",
]
