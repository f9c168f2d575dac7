"""Interfaces the core expects from its backing store.

The core never talks to a database directly. Anything that offers these
methods can back it, whether a hosted relational table behind a query API or
the bundled SQLite store.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from slot_poll.models import EventGrid, NewPattern, StoredPattern, Vote
from slot_poll.patterns.merge import PatternUpdatePlan


class EventGridStore(Protocol):
    def get_event_grid(self, event_id: int) -> EventGrid:
        """Return the event's grid; raise NotFoundError if there is no such event."""
        ...


class VoteStore(Protocol):
    def delete_votes(self, event_id: int, user_id: str) -> None: ...

    def insert_votes(self, votes: Sequence[Vote]) -> None: ...


class PatternStore(Protocol):
    def get_patterns(self, user_id: str) -> list[StoredPattern]:
        """Return all of a user's patterns ordered by start_time."""
        ...

    def delete_patterns(self, pattern_ids: Sequence[int]) -> None: ...

    def insert_patterns(self, patterns: Sequence[NewPattern]) -> None: ...


@runtime_checkable
class TransactionalVoteStore(Protocol):
    def replace_votes(self, event_id: int, user_id: str, votes: Sequence[Vote]) -> None:
        """Delete a user's votes for an event and insert ``votes`` in one transaction."""
        ...


@runtime_checkable
class TransactionalPatternStore(Protocol):
    def apply_pattern_update(self, plan: PatternUpdatePlan) -> None:
        """Apply all deletes and inserts of ``plan`` in one transaction."""
        ...


class SchedulingStore(EventGridStore, VoteStore, PatternStore, Protocol):
    """Everything :class:`slot_poll.voting.VoteService` needs from a store."""

    def create_event(
        self,
        title: str,
        date_labels: Sequence[str],
        time_labels: Sequence[str],
        description: str | None = None,
    ) -> EventGrid: ...

    def list_votes(self, event_id: int) -> list[Vote]: ...
