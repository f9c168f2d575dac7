"""Persistence for events, votes and learned patterns."""

from .base import (
    EventGridStore,
    PatternStore,
    SchedulingStore,
    TransactionalPatternStore,
    TransactionalVoteStore,
    VoteStore,
)
from .repository import SQLiteSchedulingStore

__all__ = [
    "EventGridStore",
    "PatternStore",
    "SchedulingStore",
    "SQLiteSchedulingStore",
    "TransactionalPatternStore",
    "TransactionalVoteStore",
    "VoteStore",
]
