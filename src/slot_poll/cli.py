"""Command-line interface for Slot Poll.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import structlog

from slot_poll import __version__
from slot_poll.config import get_settings
from slot_poll.exceptions import ConfigurationError, SlotPollError
from slot_poll.intervals import Interval
from slot_poll.models import VoteInput
from slot_poll.store import SQLiteSchedulingStore
from slot_poll.voting import VoteService

logger = structlog.get_logger()


def _add_db_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to the SQLite database (default: settings db_path)",
    )


def _cell(value: str) -> tuple[int, int]:
    col, sep, row = value.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"expected COL:ROW, got {value!r}")
    try:
        return int(col), int(row)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected integers in COL:ROW, got {value!r}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="slot-poll", description="Find a common time slot")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create the database schema")
    _add_db_argument(init_parser)

    # Event commands
    event_parser = subparsers.add_parser("event", help="Create and inspect polls")
    event_sub = event_parser.add_subparsers(dest="event_command", required=True)

    create_parser = event_sub.add_parser("create", help="Create a poll from date and time labels")
    create_parser.add_argument("--title", required=True, help="Event title")
    create_parser.add_argument("--description", default=None, help="Optional description")
    create_parser.add_argument(
        "--date",
        dest="dates",
        action="append",
        required=True,
        help="Date label, e.g. 12/25 (repeat for each column)",
    )
    create_parser.add_argument(
        "--time",
        dest="times",
        action="append",
        required=True,
        help="Time label, e.g. 09:00-10:00 (repeat for each row)",
    )
    _add_db_argument(create_parser)

    show_parser = event_sub.add_parser("show", help="Show a poll's grid and vote tally")
    show_parser.add_argument("event_id", type=int, help="Event id")
    _add_db_argument(show_parser)

    # Voting
    vote_parser = subparsers.add_parser(
        "vote",
        help="Submit a participant's votes; cells not listed are voted unavailable",
    )
    vote_parser.add_argument("event_id", type=int, help="Event id")
    vote_parser.add_argument("user_id", help="Participant id")
    vote_parser.add_argument(
        "--available",
        type=_cell,
        nargs="*",
        default=[],
        metavar="COL:ROW",
        help="Grid positions the participant is available for",
    )
    _add_db_argument(vote_parser)

    suggest_parser = subparsers.add_parser("suggest", help="Suggest votes from learned patterns")
    suggest_parser.add_argument("user_id", help="Participant id")
    suggest_parser.add_argument("event_id", type=int, help="Event id")
    _add_db_argument(suggest_parser)

    # Pattern commands
    patterns_parser = subparsers.add_parser("patterns", help="Inspect learned availability")
    patterns_sub = patterns_parser.add_subparsers(dest="patterns_command", required=True)

    list_parser = patterns_sub.add_parser("list", help="List a participant's stored patterns")
    list_parser.add_argument("user_id", help="Participant id")
    _add_db_argument(list_parser)

    consolidate_parser = patterns_sub.add_parser(
        "consolidate",
        help="Merge a participant's nearby patterns using the fuzzy-union tolerance",
    )
    consolidate_parser.add_argument("user_id", help="Participant id")
    _add_db_argument(consolidate_parser)

    return parser


def _open_store(args: argparse.Namespace, create: bool = False) -> SQLiteSchedulingStore:
    settings = get_settings()
    db_path: Path = args.db or settings.db_path
    if not create and not db_path.exists():
        raise ConfigurationError(f"Database {db_path} does not exist; run 'slot-poll init' first")
    store = SQLiteSchedulingStore(db_path, delete_batch_size=settings.pattern_delete_batch_size)
    store.initialize()
    return store


def _cmd_init(args: argparse.Namespace) -> int:
    _open_store(args, create=True)
    print(f"Initialized {args.db or get_settings().db_path}")
    return 0


def _cmd_event_create(args: argparse.Namespace) -> int:
    service = VoteService(_open_store(args))
    result = service.create_event(args.title, args.dates, args.times, description=args.description)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    grid = result.data["event"]
    print(f"Created event {grid.event_id}: {grid.title}")
    for warning in result.data["warnings"]:
        print(f"Warning: {warning}")
    return 0


def _cmd_event_show(args: argparse.Namespace) -> int:
    service = VoteService(_open_store(args))
    result = service.get_results(args.event_id)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    for cell in result.data["cells"]:
        users = ", ".join(cell.available_users) or "-"
        print(f"{cell.date_label}\t{cell.time_label}\t{cell.available} available\t{users}")

    best = result.data["best"]
    if best:
        print("\nBest slots:")
        for cell in best:
            print(f"- {cell.date_label} {cell.time_label} ({cell.available} available)")
    return 0


def _cmd_vote(args: argparse.Namespace) -> int:
    store = _open_store(args)
    service = VoteService(store)
    grid = store.get_event_grid(args.event_id)

    chosen = set(args.available)
    votes = [
        VoteInput(
            date_cell_id=d.id,
            time_cell_id=t.id,
            is_available=(d.col_order, t.row_order) in chosen,
        )
        for d in grid.date_cells
        for t in grid.time_cells
    ]

    result = service.submit_votes(args.event_id, args.user_id, votes)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    summary = result.data
    print(f"Saved {summary.votes_saved} votes for {summary.user_id}")
    if summary.learning_failed:
        print("Warning: availability patterns could not be updated")
    elif summary.patterns is not None:
        print(
            f"Patterns updated: {summary.patterns.inserted} inserted, "
            f"{summary.patterns.retired} retired"
        )
    return 0


def _cmd_suggest(args: argparse.Namespace) -> int:
    store = _open_store(args)
    service = VoteService(store)
    result = service.get_suggestions(args.user_id, args.event_id)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    if not result.data:
        print("No suggestion available")
        return 0

    grid = store.get_event_grid(args.event_id)
    dates = {c.id: c.label for c in grid.date_cells}
    times = {c.id: c.label for c in grid.time_cells}
    for s in result.data:
        mark = "YES" if s.is_available else "no"
        print(f"{mark}\t{dates[s.date_cell_id]}\t{times[s.time_cell_id]}")
    return 0


def _cmd_patterns_list(args: argparse.Namespace) -> int:
    store = _open_store(args)
    patterns = store.get_patterns(args.user_id)
    if not patterns:
        print("No patterns")
        return 0

    for p in patterns:
        try:
            print(f"{p.id}\t{Interval.from_storage(p.start_time, p.end_time)}")
        except ValueError:
            print(f"{p.id}\t{p.start_time} - {p.end_time} (unreadable)")
    return 0


def _cmd_patterns_consolidate(args: argparse.Namespace) -> int:
    service = VoteService(_open_store(args))
    result = service.consolidate_patterns(args.user_id)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        return 1

    print(f"Consolidated: {result.data.inserted} inserted, {result.data.retired} retired")
    return 0


def _dispatch(parsed: argparse.Namespace) -> int:
    if parsed.command == "init":
        return _cmd_init(parsed)
    if parsed.command == "event":
        if parsed.event_command == "create":
            return _cmd_event_create(parsed)
        if parsed.event_command == "show":
            return _cmd_event_show(parsed)
    if parsed.command == "vote":
        return _cmd_vote(parsed)
    if parsed.command == "suggest":
        return _cmd_suggest(parsed)
    if parsed.command == "patterns":
        if parsed.patterns_command == "list":
            return _cmd_patterns_list(parsed)
        if parsed.patterns_command == "consolidate":
            return _cmd_patterns_consolidate(parsed)

    logger.error("unknown_command", command=parsed.command)
    return 2


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Slot Poll CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    settings = get_settings()

    # Configure logging
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
    )

    logger.debug("slot_poll_started", version=__version__, debug=settings.debug)

    parser = _build_parser()
    parsed = parser.parse_args(args)

    try:
        return _dispatch(parsed)
    except SlotPollError as e:
        logger.error("command_failed", command=parsed.command, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
