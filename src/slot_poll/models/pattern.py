"""Stored "usual availability" pattern rows.

Pattern times are kept as timezone-free ``"YYYY-MM-DD HH:MM:SS"`` strings,
exactly as they are persisted. They are never routed through ``datetime`` so
that no UTC or daylight-saving conversion can shift a pattern by an hour or a
day; see :mod:`slot_poll.intervals` for the string-to-minutes extraction.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

CIVIL_TIMESTAMP_PATTERN = r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}(:\d{2})?$"


class NewPattern(BaseModel):
    """A pattern row waiting to be inserted (no id yet)."""

    user_id: str = Field(description="Owner of the pattern")
    start_time: str = Field(
        pattern=CIVIL_TIMESTAMP_PATTERN, description="Civil start, e.g. 2024-12-25 09:00:00"
    )
    end_time: str = Field(
        pattern=CIVIL_TIMESTAMP_PATTERN, description="Civil end, e.g. 2024-12-25 12:00:00"
    )


class StoredPattern(BaseModel):
    """A persisted pattern row.

    Times are carried as read. Rows written by other clients may not follow
    the civil format; readers skip those instead of failing the whole load.
    """

    id: int = Field(description="Store-assigned row id")
    user_id: str = Field(description="Owner of the pattern")
    start_time: str = Field(description="Stored start, normally 2024-12-25 09:00:00")
    end_time: str = Field(description="Stored end, normally 2024-12-25 12:00:00")
