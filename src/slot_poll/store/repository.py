"""SQLite-backed store for events, votes and availability patterns.

Tables mirror the hosted schema the application was designed against:
``events``, ``event_dates`` (columns), ``event_times`` (rows), ``votes`` and
``user_availability_patterns``. Pattern times are stored as timezone-free
``"YYYY-MM-DD HH:MM:SS"`` text and are returned untouched.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import structlog

from slot_poll.exceptions import NotFoundError, StoreError
from slot_poll.models import DateCell, EventGrid, NewPattern, StoredPattern, TimeCell, Vote
from slot_poll.patterns.merge import PatternUpdatePlan

logger = structlog.get_logger()


_SCHEMA_VERSION = 1


class SQLiteSchedulingStore:
    """Store implementing the event grid, vote and pattern interfaces on SQLite."""

    def __init__(self, db_path: Path, delete_batch_size: int = 100) -> None:
        """Create a store.

        Args:
            db_path: Path to the SQLite database file.
            delete_batch_size: Maximum ids bound into one pattern DELETE.
        """

        if delete_batch_size < 1:
            raise ValueError("delete_batch_size must be >= 1")
        self._db_path = db_path
        self._delete_batch_size = delete_batch_size

    def initialize(self) -> None:
        """Create or verify the schema."""

        self._db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL;")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS _schema_meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );
                """
            )

            current_version = self._get_schema_version(conn)
            if current_version is None:
                self._create_schema_v1(conn)
                self._set_schema_version(conn, _SCHEMA_VERSION)
                conn.commit()
                logger.info("scheduling_schema_created", version=_SCHEMA_VERSION)
                return

            if current_version != _SCHEMA_VERSION:
                raise StoreError(
                    f"Unsupported schema version {current_version}; expected {_SCHEMA_VERSION}"
                )

    # Events

    def create_event(
        self,
        title: str,
        date_labels: Sequence[str],
        time_labels: Sequence[str],
        description: str | None = None,
    ) -> EventGrid:
        """Insert an event with its grid headers (in the given order)."""

        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT INTO events (title, description, created_at_iso) VALUES (?, ?, ?)",
                (title, description, _now_iso()),
            )
            event_id = int(cursor.lastrowid)

            conn.executemany(
                "INSERT INTO event_dates (event_id, date_label, col_order) VALUES (?, ?, ?)",
                [(event_id, label, order) for order, label in enumerate(date_labels)],
            )
            conn.executemany(
                "INSERT INTO event_times (event_id, time_label, row_order) VALUES (?, ?, ?)",
                [(event_id, label, order) for order, label in enumerate(time_labels)],
            )
            conn.commit()

            grid = self._load_grid(conn, event_id)

        logger.info(
            "event_created",
            event_id=event_id,
            dates=len(grid.date_cells),
            times=len(grid.time_cells),
        )
        return grid

    def get_event_grid(self, event_id: int) -> EventGrid:
        """Return an event's grid.

        Raises:
            NotFoundError: If the event does not exist.
        """

        with self._connect() as conn:
            return self._load_grid(conn, event_id)

    # Votes

    def delete_votes(self, event_id: int, user_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM votes WHERE event_id = ? AND user_id = ?",
                (event_id, user_id),
            )
            conn.commit()

    def insert_votes(self, votes: Sequence[Vote]) -> None:
        if not votes:
            return

        with self._connect() as conn:
            self._insert_votes(conn, votes)
            conn.commit()

    def replace_votes(self, event_id: int, user_id: str, votes: Sequence[Vote]) -> None:
        """Overwrite a user's votes for an event in a single transaction."""

        with self._connect() as conn:
            conn.execute(
                "DELETE FROM votes WHERE event_id = ? AND user_id = ?",
                (event_id, user_id),
            )
            self._insert_votes(conn, votes)
            conn.commit()

    def list_votes(self, event_id: int) -> list[Vote]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT event_id, user_id, event_date_id, event_time_id, is_available
                FROM votes
                WHERE event_id = ?
                ORDER BY id;
                """,
                (event_id,),
            ).fetchall()

        return [
            Vote(
                event_id=row["event_id"],
                user_id=row["user_id"],
                date_cell_id=row["event_date_id"],
                time_cell_id=row["event_time_id"],
                is_available=bool(row["is_available"]),
            )
            for row in rows
        ]

    # Patterns

    def get_patterns(self, user_id: str) -> list[StoredPattern]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, user_id, start_time, end_time
                FROM user_availability_patterns
                WHERE user_id = ?
                ORDER BY start_time, id;
                """,
                (user_id,),
            ).fetchall()

        return [
            StoredPattern(
                id=row["id"],
                user_id=row["user_id"],
                start_time=row["start_time"],
                end_time=row["end_time"],
            )
            for row in rows
        ]

    def delete_patterns(self, pattern_ids: Sequence[int]) -> None:
        if not pattern_ids:
            return

        with self._connect() as conn:
            self._delete_patterns(conn, pattern_ids)
            conn.commit()

    def insert_patterns(self, patterns: Sequence[NewPattern]) -> None:
        if not patterns:
            return

        with self._connect() as conn:
            self._insert_patterns(conn, patterns)
            conn.commit()

    def apply_pattern_update(self, plan: PatternUpdatePlan) -> None:
        """Retire and insert the rows of ``plan`` atomically."""

        if plan.is_noop:
            return

        with self._connect() as conn:
            self._delete_patterns(conn, plan.retired_ids)
            self._insert_patterns(conn, plan.new_rows())
            conn.commit()

        logger.debug(
            "pattern_update_applied",
            user_id=plan.user_id,
            retired=len(plan.retired_ids),
            inserted=len(plan.inserts),
        )

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open {self._db_path}: {e}") from e
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys=ON;")
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    def _load_grid(self, conn: sqlite3.Connection, event_id: int) -> EventGrid:
        event = conn.execute("SELECT id, title FROM events WHERE id = ?", (event_id,)).fetchone()
        if event is None:
            raise NotFoundError(f"Event {event_id} not found")

        date_rows = conn.execute(
            "SELECT id, date_label, col_order FROM event_dates WHERE event_id = ? ORDER BY col_order",
            (event_id,),
        ).fetchall()
        time_rows = conn.execute(
            "SELECT id, time_label, row_order FROM event_times WHERE event_id = ? ORDER BY row_order",
            (event_id,),
        ).fetchall()

        return EventGrid(
            event_id=event["id"],
            title=event["title"],
            date_cells=[
                DateCell(id=r["id"], label=r["date_label"], col_order=r["col_order"])
                for r in date_rows
            ],
            time_cells=[
                TimeCell(id=r["id"], label=r["time_label"], row_order=r["row_order"])
                for r in time_rows
            ],
        )

    def _insert_votes(self, conn: sqlite3.Connection, votes: Sequence[Vote]) -> None:
        now_iso = _now_iso()
        conn.executemany(
            """
            INSERT INTO votes (
                event_id, user_id, event_date_id, event_time_id, is_available, created_at_iso
            )
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    v.event_id,
                    v.user_id,
                    v.date_cell_id,
                    v.time_cell_id,
                    1 if v.is_available else 0,
                    now_iso,
                )
                for v in votes
            ],
        )

    def _delete_patterns(self, conn: sqlite3.Connection, pattern_ids: Sequence[int]) -> None:
        # Chunked to stay under SQLite's bound-parameter limit.
        for i in range(0, len(pattern_ids), self._delete_batch_size):
            batch = tuple(pattern_ids[i : i + self._delete_batch_size])
            placeholders = ", ".join("?" for _ in batch)
            conn.execute(
                f"DELETE FROM user_availability_patterns WHERE id IN ({placeholders})",
                batch,
            )

    def _insert_patterns(self, conn: sqlite3.Connection, patterns: Sequence[NewPattern]) -> None:
        now_iso = _now_iso()
        conn.executemany(
            """
            INSERT INTO user_availability_patterns (user_id, start_time, end_time, created_at_iso)
            VALUES (?, ?, ?, ?)
            """,
            [(p.user_id, p.start_time, p.end_time, now_iso) for p in patterns],
        )

    def _get_schema_version(self, conn: sqlite3.Connection) -> int | None:
        row = conn.execute(
            "SELECT value FROM _schema_meta WHERE key = 'schema_version'"
        ).fetchone()
        if row is None:
            return None
        return int(row[0])

    def _set_schema_version(self, conn: sqlite3.Connection, version: int) -> None:
        conn.execute(
            "INSERT OR REPLACE INTO _schema_meta(key, value) VALUES('schema_version', ?) ",
            (str(version),),
        )

    def _create_schema_v1(self, conn: sqlite3.Connection) -> None:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS events (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT,
                created_at_iso TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS event_dates (
                id INTEGER PRIMARY KEY,
                event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
                date_label TEXT NOT NULL,
                col_order INTEGER NOT NULL,
                UNIQUE (event_id, col_order)
            );

            CREATE TABLE IF NOT EXISTS event_times (
                id INTEGER PRIMARY KEY,
                event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
                time_label TEXT NOT NULL,
                row_order INTEGER NOT NULL,
                UNIQUE (event_id, row_order)
            );

            CREATE TABLE IF NOT EXISTS votes (
                id INTEGER PRIMARY KEY,
                event_id INTEGER NOT NULL REFERENCES events(id) ON DELETE CASCADE,
                user_id TEXT NOT NULL,
                event_date_id INTEGER NOT NULL REFERENCES event_dates(id) ON DELETE CASCADE,
                event_time_id INTEGER NOT NULL REFERENCES event_times(id) ON DELETE CASCADE,
                is_available INTEGER NOT NULL,
                created_at_iso TEXT NOT NULL,
                UNIQUE (event_id, user_id, event_date_id, event_time_id)
            );

            CREATE INDEX IF NOT EXISTS idx_votes_event_user
                ON votes(event_id, user_id);

            CREATE TABLE IF NOT EXISTS user_availability_patterns (
                id INTEGER PRIMARY KEY,
                user_id TEXT NOT NULL,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                created_at_iso TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_patterns_user_start
                ON user_availability_patterns(user_id, start_time);
            """
        )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
