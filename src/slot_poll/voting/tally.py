"""Aggregation of an event's votes per grid cell."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from slot_poll.models import EventGrid, Vote


@dataclass(frozen=True)
class CellTally:
    """Vote counts for one grid cell."""

    date_cell_id: int
    time_cell_id: int
    date_label: str
    time_label: str
    available: int
    unavailable: int
    available_users: tuple[str, ...]


def tally_votes(grid: EventGrid, votes: Iterable[Vote]) -> list[CellTally]:
    """Count votes for every cell, ordered by column then row."""

    available: dict[tuple[int, int], list[str]] = defaultdict(list)
    unavailable: dict[tuple[int, int], int] = defaultdict(int)
    for vote in votes:
        key = (vote.date_cell_id, vote.time_cell_id)
        if vote.is_available:
            available[key].append(vote.user_id)
        else:
            unavailable[key] += 1

    tallies = []
    for d in sorted(grid.date_cells, key=lambda c: c.col_order):
        for t in sorted(grid.time_cells, key=lambda c: c.row_order):
            users = available.get((d.id, t.id), [])
            tallies.append(
                CellTally(
                    date_cell_id=d.id,
                    time_cell_id=t.id,
                    date_label=d.label,
                    time_label=t.label,
                    available=len(users),
                    unavailable=unavailable.get((d.id, t.id), 0),
                    available_users=tuple(sorted(users)),
                )
            )
    return tallies


def best_cells(tallies: Iterable[CellTally]) -> list[CellTally]:
    """Cells with the highest non-zero number of available participants."""

    tallies = list(tallies)
    top = max((t.available for t in tallies), default=0)
    if top == 0:
        return []
    return [t for t in tallies if t.available == top]
