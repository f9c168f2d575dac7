"""Unit tests for the pattern merge engine."""

from datetime import date

import pytest

from slot_poll.intervals import Interval
from slot_poll.models import StoredPattern
from slot_poll.patterns import (
    fuzzy_union,
    merge_contiguous,
    plan_consolidation,
    plan_fuzzy_union,
    plan_pattern_update,
    plan_replace_same_date,
)

D = date(2024, 12, 25)
D2 = date(2024, 12, 26)


def hours(start: int, end: int, day: date = D) -> Interval:
    return Interval(day, start * 60, end * 60)


class TestMergeContiguous:
    """Test suite for merge_contiguous."""

    def test_hourly_slots_merge_into_one_run(self) -> None:
        merged = merge_contiguous([hours(10, 11), hours(9, 10), hours(11, 12)])

        assert merged == [hours(9, 12)]

    def test_gap_is_preserved(self) -> None:
        assert merge_contiguous([hours(9, 10), hours(11, 12)]) == [hours(9, 10), hours(11, 12)]

    def test_overlapping_and_duplicate_slots(self) -> None:
        merged = merge_contiguous([hours(9, 11), hours(10, 12), hours(10, 12)])

        assert merged == [hours(9, 12)]

    def test_dates_never_merge(self) -> None:
        merged = merge_contiguous([hours(9, 10, D2), hours(10, 11, D)])

        assert merged == [hours(10, 11, D), hours(9, 10, D2)]

    def test_empty(self) -> None:
        assert merge_contiguous([]) == []


class TestFuzzyUnion:
    """Test suite for fuzzy_union."""

    def test_bridges_gaps_within_tolerance(self) -> None:
        assert fuzzy_union([hours(9, 10), hours(11, 12)], tolerance_minutes=60) == [hours(9, 12)]

    def test_keeps_gaps_beyond_tolerance(self) -> None:
        merged = fuzzy_union([hours(9, 10), hours(12, 13)], tolerance_minutes=60)

        assert merged == [hours(9, 10), hours(12, 13)]

    def test_negative_tolerance_rejected(self) -> None:
        with pytest.raises(ValueError):
            fuzzy_union([hours(9, 10)], tolerance_minutes=-1)


class TestReplaceSameDate:
    """Test suite for the replace_same_date policy."""

    def test_first_submission_inserts_merged_run(self) -> None:
        plan = plan_replace_same_date("7", [hours(9, 10), hours(10, 11), hours(11, 12)], [])

        assert plan.retired_ids == ()
        assert plan.inserts == (hours(9, 12),)
        assert [(r.start_time, r.end_time) for r in plan.new_rows()] == [
            ("2024-12-25 09:00:00", "2024-12-25 12:00:00")
        ]

    def test_deselected_hour_splits_existing_pattern(self, make_pattern) -> None:
        existing = [make_pattern(1, "09:00", "12:00")]

        plan = plan_replace_same_date("7", [hours(9, 10), hours(11, 12)], existing)

        assert plan.retired_ids == (1,)
        assert plan.inserts == (hours(9, 10), hours(11, 12))
        assert plan.touched_dates == (D,)

    def test_all_patterns_on_touched_date_are_retired(self, make_pattern) -> None:
        existing = [make_pattern(1, "08:00", "09:00"), make_pattern(2, "15:00", "18:00")]

        plan = plan_replace_same_date("7", [hours(10, 11)], existing)

        assert set(plan.retired_ids) == {1, 2}
        assert plan.inserts == (hours(10, 11),)

    def test_untouched_dates_are_kept(self, make_pattern) -> None:
        existing = [
            make_pattern(1, "09:00", "12:00", day="2024-12-25"),
            make_pattern(2, "09:00", "12:00", day="2024-12-26"),
        ]

        plan = plan_replace_same_date("7", [hours(13, 14, D2)], existing)

        assert plan.retired_ids == (2,)
        assert plan.inserts == (hours(13, 14, D2),)

    def test_reapplying_same_submission_is_noop(self, make_pattern) -> None:
        existing = [make_pattern(5, "09:00", "10:00"), make_pattern(6, "11:00", "12:00")]

        plan = plan_replace_same_date("7", [hours(11, 12), hours(9, 10)], existing)

        assert plan.is_noop
        assert plan.touched_dates == ()

    def test_duplicated_rows_are_healed(self, make_pattern) -> None:
        existing = [make_pattern(1, "09:00", "12:00"), make_pattern(2, "09:00", "12:00")]

        plan = plan_replace_same_date("7", [hours(9, 12)], existing)

        assert set(plan.retired_ids) == {1, 2}
        assert plan.inserts == (hours(9, 12),)

    def test_unreadable_rows_are_left_alone(self, make_pattern) -> None:
        broken = StoredPattern(
            id=9, user_id="7", start_time="2024-12-25 09:00:00", end_time="2024-12-26 10:00:00"
        )

        plan = plan_replace_same_date("7", [hours(9, 10)], [broken])

        assert plan.retired_ids == ()
        assert plan.inserts == (hours(9, 10),)


class TestFuzzyUnionPolicy:
    """Test suite for the fuzzy_union policy."""

    def test_never_shrinks(self, make_pattern) -> None:
        plan = plan_fuzzy_union("7", [hours(9, 10)], [make_pattern(1, "09:00", "12:00")])

        assert plan.is_noop

    def test_nearby_history_is_absorbed(self, make_pattern) -> None:
        existing = [make_pattern(1, "09:00", "10:00"), make_pattern(2, "15:00", "16:00")]

        plan = plan_fuzzy_union("7", [hours(11, 12)], existing, tolerance_minutes=60)

        assert set(plan.retired_ids) == {1, 2}
        assert plan.inserts == (hours(9, 12), hours(15, 16))

    def test_dispatch(self, make_pattern) -> None:
        existing = [make_pattern(1, "09:00", "12:00")]

        replace = plan_pattern_update("7", [hours(9, 10)], existing, policy="replace_same_date")
        union = plan_pattern_update("7", [hours(9, 10)], existing, policy="fuzzy_union")

        assert replace.inserts == (hours(9, 10),)
        assert union.is_noop

        with pytest.raises(ValueError):
            plan_pattern_update("7", [], existing, policy="newest")  # type: ignore[arg-type]


class TestConsolidation:
    """Test suite for plan_consolidation."""

    def test_compacts_each_date(self, make_pattern) -> None:
        existing = [
            make_pattern(1, "09:00", "10:00"),
            make_pattern(2, "10:30", "11:00"),
            make_pattern(3, "09:00", "10:00", day="2024-12-26"),
        ]

        plan = plan_consolidation("7", existing, tolerance_minutes=60)

        assert plan.retired_ids == (1, 2)
        assert plan.inserts == (Interval(D, 540, 660),)

    def test_already_compact_is_noop(self, make_pattern) -> None:
        existing = [make_pattern(1, "09:00", "10:00"), make_pattern(2, "13:00", "14:00")]

        assert plan_consolidation("7", existing, tolerance_minutes=60).is_noop
