"""Unit tests for the SQLite scheduling store."""

from __future__ import annotations

import sqlite3
from datetime import date

import pytest

from slot_poll.exceptions import NotFoundError, StoreError
from slot_poll.intervals import Interval
from slot_poll.models import NewPattern, Vote
from slot_poll.patterns import PatternUpdatePlan
from slot_poll.store import (
    SQLiteSchedulingStore,
    TransactionalPatternStore,
    TransactionalVoteStore,
)


def test_store_is_transactional(store) -> None:
    assert isinstance(store, TransactionalVoteStore)
    assert isinstance(store, TransactionalPatternStore)


def test_create_and_load_event(store) -> None:
    created = store.create_event("Dinner", ["12/25", "12/26"], ["18:00~Shibuya", "20:15"])

    grid = store.get_event_grid(created.event_id)

    assert grid == created
    assert grid.title == "Dinner"
    assert [c.label for c in grid.date_cells] == ["12/25", "12/26"]
    assert [c.col_order for c in grid.date_cells] == [0, 1]
    assert [c.label for c in grid.time_cells] == ["18:00~Shibuya", "20:15"]


def test_missing_event(store) -> None:
    with pytest.raises(NotFoundError):
        store.get_event_grid(404)


def test_replace_votes_overwrites(store) -> None:
    grid = store.create_event("Dinner", ["12/25"], ["18:00", "20:00"])
    d = grid.date_cells[0].id
    t1, t2 = (c.id for c in grid.time_cells)

    def vote(time_id: int, available: bool) -> Vote:
        return Vote(
            event_id=grid.event_id,
            user_id="7",
            date_cell_id=d,
            time_cell_id=time_id,
            is_available=available,
        )

    store.replace_votes(grid.event_id, "7", [vote(t1, True), vote(t2, True)])
    store.replace_votes(grid.event_id, "7", [vote(t1, False)])

    votes = store.list_votes(grid.event_id)
    assert len(votes) == 1
    assert votes[0].time_cell_id == t1
    assert votes[0].is_available is False


def test_delete_and_insert_votes(store) -> None:
    grid = store.create_event("Dinner", ["12/25"], ["18:00"])
    row = Vote(
        event_id=grid.event_id,
        user_id="8",
        date_cell_id=grid.date_cells[0].id,
        time_cell_id=grid.time_cells[0].id,
        is_available=True,
    )

    store.insert_votes([row])
    assert store.list_votes(grid.event_id) == [row]

    store.delete_votes(grid.event_id, "8")
    assert store.list_votes(grid.event_id) == []


def test_duplicate_vote_surfaces_as_store_error(store) -> None:
    grid = store.create_event("Dinner", ["12/25"], ["18:00"])
    row = Vote(
        event_id=grid.event_id,
        user_id="8",
        date_cell_id=grid.date_cells[0].id,
        time_cell_id=grid.time_cells[0].id,
        is_available=True,
    )

    with pytest.raises(StoreError):
        store.insert_votes([row, row])

    assert store.list_votes(grid.event_id) == []


def test_patterns_round_trip_as_plain_strings(store) -> None:
    store.insert_patterns(
        [
            NewPattern(user_id="7", start_time="2024-12-26 09:00:00", end_time="2024-12-26 10:00:00"),
            NewPattern(user_id="7", start_time="2024-12-25 23:00:00", end_time="2024-12-25 23:59:00"),
            NewPattern(user_id="8", start_time="2024-12-25 09:00:00", end_time="2024-12-25 10:00:00"),
        ]
    )

    patterns = store.get_patterns("7")

    assert [(p.start_time, p.end_time) for p in patterns] == [
        ("2024-12-25 23:00:00", "2024-12-25 23:59:00"),
        ("2024-12-26 09:00:00", "2024-12-26 10:00:00"),
    ]

    store.delete_patterns([patterns[0].id])
    assert [p.id for p in store.get_patterns("7")] == [patterns[1].id]


def test_apply_pattern_update(store) -> None:
    store.insert_patterns(
        [NewPattern(user_id="7", start_time="2024-12-25 09:00:00", end_time="2024-12-25 12:00:00")]
    )
    (old,) = store.get_patterns("7")
    day = date(2024, 12, 25)

    store.apply_pattern_update(
        PatternUpdatePlan(
            user_id="7",
            retired_ids=(old.id,),
            inserts=(Interval(day, 540, 600), Interval(day, 660, 720)),
            touched_dates=(day,),
        )
    )

    assert [(p.start_time, p.end_time) for p in store.get_patterns("7")] == [
        ("2024-12-25 09:00:00", "2024-12-25 10:00:00"),
        ("2024-12-25 11:00:00", "2024-12-25 12:00:00"),
    ]


def test_apply_pattern_update_deletes_in_batches(mock_settings) -> None:
    repo = SQLiteSchedulingStore(mock_settings.db_path, delete_batch_size=2)
    repo.initialize()
    repo.insert_patterns(
        [
            NewPattern(
                user_id="7",
                start_time=f"2024-12-{day} 09:00:00",
                end_time=f"2024-12-{day} 10:00:00",
            )
            for day in range(20, 25)
        ]
    )
    retired = tuple(p.id for p in repo.get_patterns("7"))
    day = date(2024, 12, 25)

    repo.apply_pattern_update(
        PatternUpdatePlan(
            user_id="7",
            retired_ids=retired,
            inserts=(Interval(day, 540, 720),),
            touched_dates=(day,),
        )
    )

    assert len(retired) == 5
    assert [(p.start_time, p.end_time) for p in repo.get_patterns("7")] == [
        ("2024-12-25 09:00:00", "2024-12-25 12:00:00"),
    ]


def test_delete_batch_size_must_be_positive(mock_settings) -> None:
    with pytest.raises(ValueError):
        SQLiteSchedulingStore(mock_settings.db_path, delete_batch_size=0)


def test_empty_batches_are_noops(store) -> None:
    store.delete_patterns([])
    store.insert_patterns([])
    store.insert_votes([])
    store.apply_pattern_update(PatternUpdatePlan(user_id="7"))

    assert store.get_patterns("7") == []


def test_initialize_is_idempotent(store, mock_settings) -> None:
    again = SQLiteSchedulingStore(mock_settings.db_path)
    again.initialize()

    assert again.get_patterns("7") == []


def test_unsupported_schema_version(mock_settings) -> None:
    repo = SQLiteSchedulingStore(mock_settings.db_path)
    repo.initialize()

    conn = sqlite3.connect(mock_settings.db_path)
    conn.execute("UPDATE _schema_meta SET value = '99' WHERE key = 'schema_version'")
    conn.commit()
    conn.close()

    with pytest.raises(StoreError):
        repo.initialize()
