"""Unit tests for the command-line interface."""

import sqlite3

import pytest

from slot_poll.cli import main


@pytest.fixture
def db(tmp_path):
    path = tmp_path / "cli.sqlite3"
    assert main(["init", "--db", str(path)]) == 0
    return str(path)


def create_event(db: str, title: str) -> None:
    assert (
        main(
            [
                "event", "create", "--db", db, "--title", title,
                "--date", "2024-12-25",
                "--time", "09:00-10:00", "--time", "10:00-11:00", "--time", "11:00-12:00",
            ]
        )
        == 0
    )


def test_vote_then_suggest(db, capsys) -> None:
    create_event(db, "Standup")
    create_event(db, "Retro")

    assert main(["vote", "1", "7", "--available", "0:0", "0:1", "0:2", "--db", db]) == 0
    assert main(["patterns", "list", "7", "--db", db]) == 0
    out = capsys.readouterr().out
    assert "Saved 3 votes for 7" in out
    assert "2024-12-25 09:00-12:00" in out

    assert main(["suggest", "7", "2", "--db", db]) == 0
    out = capsys.readouterr().out
    assert out.count("YES") == 3


def test_event_show(db, capsys) -> None:
    create_event(db, "Standup")
    main(["vote", "1", "7", "--available", "0:1", "--db", db])
    capsys.readouterr()

    assert main(["event", "show", "1", "--db", db]) == 0

    out = capsys.readouterr().out
    assert "10:00-11:00\t1 available\t7" in out
    assert "Best slots:" in out


def test_suggest_without_history(db, capsys) -> None:
    create_event(db, "Standup")
    capsys.readouterr()

    assert main(["suggest", "nobody", "1", "--db", db]) == 0
    assert "No suggestion available" in capsys.readouterr().out


def test_unknown_event(db, capsys) -> None:
    assert main(["vote", "42", "7", "--db", db]) == 1
    assert "not found" in capsys.readouterr().err


def test_invalid_grid(db, capsys) -> None:
    code = main(["event", "create", "--db", db, "--title", "Bad", "--date", "12/25", "--date", " ", "--time", "09:00"])

    assert code == 1
    assert "is empty" in capsys.readouterr().err


def test_bad_cell_argument(db) -> None:
    with pytest.raises(SystemExit):
        main(["vote", "1", "7", "--available", "zero", "--db", db])


def test_missing_database_is_reported(tmp_path, capsys) -> None:
    missing = tmp_path / "absent.sqlite3"

    assert main(["suggest", "7", "1", "--db", str(missing)]) == 1
    assert "run 'slot-poll init' first" in capsys.readouterr().err
    assert not missing.exists()


def test_store_failure_is_reported(db, capsys) -> None:
    create_event(db, "Standup")
    conn = sqlite3.connect(db)
    conn.execute("DROP TABLE votes")
    conn.execute("DROP TABLE event_times")
    conn.commit()
    conn.close()
    capsys.readouterr()

    assert main(["vote", "1", "7", "--available", "0:0", "--db", db]) == 1
    assert "no such table" in capsys.readouterr().err
