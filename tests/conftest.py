"""Pytest configuration and shared fixtures."""

from datetime import date

import pytest


@pytest.fixture
def mock_settings(tmp_path):
    """Provide settings pointing at a temporary database."""
    from slot_poll.config import Settings

    return Settings(
        db_path=tmp_path / "slot_poll.sqlite3",
        log_level="DEBUG",
        debug=True,
    )


@pytest.fixture
def store(mock_settings):
    """Provide an initialized SQLite store."""
    from slot_poll.store import SQLiteSchedulingStore

    repo = SQLiteSchedulingStore(
        mock_settings.db_path, delete_batch_size=mock_settings.pattern_delete_batch_size
    )
    repo.initialize()
    return repo


@pytest.fixture
def service(store, mock_settings):
    """Provide a vote service over the SQLite store."""
    from slot_poll.voting import VoteService

    return VoteService(store, settings=mock_settings, today=date(2024, 6, 1))


@pytest.fixture
def hourly_times() -> list[str]:
    """Three contiguous one-hour rows, 09:00 to 12:00."""
    return ["09:00-10:00", "10:00-11:00", "11:00-12:00"]


@pytest.fixture
def make_pattern():
    """Build StoredPattern rows from "HH:MM" times."""
    from slot_poll.models import StoredPattern

    def _make(pattern_id: int, start: str, end: str, day: str = "2024-12-25", user_id: str = "7"):
        return StoredPattern(
            id=pattern_id,
            user_id=user_id,
            start_time=f"{day} {start}:00",
            end_time=f"{day} {end}:00",
        )

    return _make
