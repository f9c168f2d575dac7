"""Merging of vote-derived intervals into a user's stored patterns.

A submission is reduced to maximal runs of strictly contiguous intervals per
date. Those runs then update the user's stored patterns under one of two
policies:

``replace_same_date``
    Every date touched by the submission is rewritten with exactly the new
    runs; older patterns on that date are retired. Deselecting a slot shrinks
    the learned availability. Untouched dates are left alone.

``fuzzy_union``
    New runs are unioned with the date's existing patterns, bridging gaps of
    up to a tolerance. Learned availability never shrinks.

Both planners are pure: they return a :class:`PatternUpdatePlan` and leave
persistence to the caller. A plan is empty when the store already holds the
target rows, which keeps re-applying the same submission a no-op.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

import structlog

from slot_poll.config import MergePolicy
from slot_poll.intervals import Interval
from slot_poll.models import NewPattern, StoredPattern

logger = structlog.get_logger()

DEFAULT_FUZZY_TOLERANCE_MINUTES = 60


@dataclass(frozen=True)
class PatternUpdatePlan:
    """Rows to delete and rows to insert for one user."""

    user_id: str
    retired_ids: tuple[int, ...] = ()
    inserts: tuple[Interval, ...] = ()
    touched_dates: tuple[date, ...] = ()

    @property
    def is_noop(self) -> bool:
        return not self.retired_ids and not self.inserts

    def new_rows(self) -> list[NewPattern]:
        rows = []
        for interval in self.inserts:
            start_time, end_time = interval.to_storage()
            rows.append(NewPattern(user_id=self.user_id, start_time=start_time, end_time=end_time))
        return rows


def group_by_date(intervals: Iterable[Interval]) -> dict[date, list[Interval]]:
    grouped: dict[date, list[Interval]] = defaultdict(list)
    for interval in intervals:
        grouped[interval.date].append(interval)
    return dict(grouped)


def _merge_within_dates(intervals: Iterable[Interval], tolerance_minutes: int) -> list[Interval]:
    merged: list[Interval] = []
    # Sorting by (date, start, end) keeps each date's intervals adjacent.
    for interval in sorted(intervals):
        if merged and merged[-1].overlaps_or_adjacent(interval, tolerance_minutes):
            merged[-1] = merged[-1].union(interval)
        else:
            merged.append(interval)
    return merged


def merge_contiguous(intervals: Iterable[Interval]) -> list[Interval]:
    """Merge intervals whose next start is at or before the current end.

    Intervals are merged within each date only. The result is sorted by
    (date, start) and contains no two touching intervals.
    """

    return _merge_within_dates(intervals, tolerance_minutes=0)


def fuzzy_union(
    intervals: Iterable[Interval],
    tolerance_minutes: int = DEFAULT_FUZZY_TOLERANCE_MINUTES,
) -> list[Interval]:
    """Merge same-date intervals separated by gaps of at most ``tolerance_minutes``."""

    if tolerance_minutes < 0:
        raise ValueError("tolerance_minutes must be >= 0")
    return _merge_within_dates(intervals, tolerance_minutes)


def resolve_stored(
    patterns: Iterable[StoredPattern],
) -> dict[date, list[tuple[StoredPattern, Interval]]]:
    """Group stored rows by civil date, skipping rows whose times cannot be read."""

    by_date: dict[date, list[tuple[StoredPattern, Interval]]] = defaultdict(list)
    for pattern in patterns:
        try:
            interval = Interval.from_storage(pattern.start_time, pattern.end_time)
        except ValueError as e:
            logger.warning(
                "stored_pattern_unreadable",
                pattern_id=pattern.id,
                user_id=pattern.user_id,
                start_time=pattern.start_time,
                end_time=pattern.end_time,
                error=str(e),
            )
            continue
        by_date[interval.date].append((pattern, interval))
    return dict(by_date)


def _rewrite_date(
    existing: list[tuple[StoredPattern, Interval]],
    target: list[Interval],
) -> tuple[list[int], list[Interval]]:
    current = sorted(interval for _, interval in existing)
    if current == sorted(target):
        return [], []
    return [pattern.id for pattern, _ in existing], list(target)


def _build_plan(
    user_id: str,
    targets: dict[date, list[Interval]],
    existing_by_date: dict[date, list[tuple[StoredPattern, Interval]]],
) -> PatternUpdatePlan:
    retired: list[int] = []
    inserts: list[Interval] = []
    touched: list[date] = []

    for day in sorted(targets):
        day_retired, day_inserts = _rewrite_date(existing_by_date.get(day, []), targets[day])
        if day_retired or day_inserts:
            touched.append(day)
        retired.extend(day_retired)
        inserts.extend(day_inserts)

    return PatternUpdatePlan(
        user_id=user_id,
        retired_ids=tuple(retired),
        inserts=tuple(inserts),
        touched_dates=tuple(touched),
    )


def plan_replace_same_date(
    user_id: str,
    submitted: Iterable[Interval],
    existing: Iterable[StoredPattern],
) -> PatternUpdatePlan:
    """Plan an update where the submission is authoritative for each date it touches."""

    targets = group_by_date(merge_contiguous(submitted))
    return _build_plan(user_id, targets, resolve_stored(existing))


def plan_fuzzy_union(
    user_id: str,
    submitted: Iterable[Interval],
    existing: Iterable[StoredPattern],
    tolerance_minutes: int = DEFAULT_FUZZY_TOLERANCE_MINUTES,
) -> PatternUpdatePlan:
    """Plan an update that unions the submission into each touched date's history."""

    existing_by_date = resolve_stored(existing)
    targets: dict[date, list[Interval]] = {}
    for day, runs in group_by_date(merge_contiguous(submitted)).items():
        history = [interval for _, interval in existing_by_date.get(day, [])]
        targets[day] = fuzzy_union(history + runs, tolerance_minutes)
    return _build_plan(user_id, targets, existing_by_date)


def plan_consolidation(
    user_id: str,
    existing: Iterable[StoredPattern],
    tolerance_minutes: int = DEFAULT_FUZZY_TOLERANCE_MINUTES,
) -> PatternUpdatePlan:
    """Plan a compaction of all of a user's stored patterns with :func:`fuzzy_union`."""

    existing_by_date = resolve_stored(existing)
    targets = {
        day: fuzzy_union([interval for _, interval in rows], tolerance_minutes)
        for day, rows in existing_by_date.items()
    }
    return _build_plan(user_id, targets, existing_by_date)


def plan_pattern_update(
    user_id: str,
    submitted: Iterable[Interval],
    existing: Iterable[StoredPattern],
    policy: MergePolicy = "replace_same_date",
    tolerance_minutes: int = DEFAULT_FUZZY_TOLERANCE_MINUTES,
) -> PatternUpdatePlan:
    """Dispatch to the planner for ``policy``."""

    if policy == "replace_same_date":
        return plan_replace_same_date(user_id, submitted, existing)
    if policy == "fuzzy_union":
        return plan_fuzzy_union(user_id, submitted, existing, tolerance_minutes)
    raise ValueError(f"Unknown merge policy: {policy!r}")
