"""Vote submission and suggestion orchestration.

This module provides the service the UI/API layer calls. It saves votes,
drives pattern learning after each submission, and serves pre-filled
suggestions for a participant opening a new poll.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

import structlog

from slot_poll.config import Settings
from slot_poll.exceptions import NotFoundError, StoreError, ValidationError
from slot_poll.intervals import Interval, from_label_pair
from slot_poll.labels.grid import build_event_grid, validate_grid
from slot_poll.models import (
    EventGrid,
    OperationResult,
    PatternUpdateSummary,
    Vote,
    VoteInput,
    VoteSubmissionResult,
)
from slot_poll.patterns.merge import PatternUpdatePlan, plan_consolidation, plan_pattern_update
from slot_poll.store.base import SchedulingStore, TransactionalPatternStore, TransactionalVoteStore
from slot_poll.suggestions import suggest_for_grid
from slot_poll.voting.tally import best_cells, tally_votes

logger = structlog.get_logger()


def _summarize(plan: PatternUpdatePlan) -> PatternUpdateSummary:
    return PatternUpdateSummary(
        user_id=plan.user_id,
        retired=len(plan.retired_ids),
        inserted=len(plan.inserts),
        dates=[d.isoformat() for d in plan.touched_dates],
    )


class VoteService:
    """Entry point for vote submission, suggestions and event setup.

    Public methods never raise for expected failures; they return an
    :class:`OperationResult` whose ``error`` explains what went wrong.
    """

    def __init__(
        self,
        store: SchedulingStore,
        settings: Settings | None = None,
        today: date | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            store: Backing store for events, votes and patterns.
            settings: Application settings. If None, uses default settings.
            today: Reference date for labels without a year. If None, the
                current date is used on every call.
        """
        from slot_poll.config import get_settings

        self.store = store
        self.settings = settings or get_settings()
        self.today = today
        logger.info("vote_service_initialized", merge_policy=self.settings.merge_policy)

    def create_event(
        self,
        title: str,
        date_labels: Sequence[str],
        time_labels: Sequence[str],
        description: str | None = None,
    ) -> OperationResult:
        """Validate grid headers and create an event."""

        validation = validate_grid(date_labels, time_labels)
        if not validation.is_valid:
            logger.warning("event_grid_invalid", errors=validation.errors)
            return OperationResult(success=False, error="; ".join(validation.errors))

        definition = build_event_grid(date_labels, time_labels)
        try:
            grid = self.store.create_event(
                title,
                [g.label for g in definition.dates],
                [g.label for g in definition.times],
                description=description,
            )
        except StoreError as e:
            logger.error("event_create_failed", title=title, error=str(e))
            return OperationResult(success=False, error="Failed to create event")

        for warning in validation.warnings:
            logger.info("event_grid_warning", event_id=grid.event_id, warning=warning)
        return OperationResult(data={"event": grid, "warnings": validation.warnings})

    def submit_votes(
        self, event_id: int, user_id: str, votes: Sequence[VoteInput]
    ) -> OperationResult:
        """Replace a user's votes for an event and learn from them.

        Pattern learning runs after the votes are saved and is best-effort: a
        failure there is logged and reported in the payload but does not fail
        the submission.
        """

        try:
            grid = self.store.get_event_grid(event_id)
            rows = self._to_vote_rows(grid, user_id, votes)
            self._save_votes(event_id, user_id, rows)
        except NotFoundError:
            logger.warning("vote_event_not_found", event_id=event_id, user_id=user_id)
            return OperationResult(success=False, error="Event not found")
        except ValidationError as e:
            logger.warning("vote_rejected", event_id=event_id, user_id=user_id, error=str(e))
            return OperationResult(success=False, error=str(e))
        except StoreError as e:
            logger.error("vote_save_failed", event_id=event_id, user_id=user_id, error=str(e))
            return OperationResult(success=False, error="Failed to save votes")

        logger.info(
            "votes_submitted",
            event_id=event_id,
            user_id=user_id,
            votes=len(rows),
            available=sum(1 for r in rows if r.is_available),
        )

        result = VoteSubmissionResult(event_id=event_id, user_id=user_id, votes_saved=len(rows))
        try:
            plan = self.learn_patterns(grid, user_id, rows)
        except Exception:
            # Votes are already durable; learning is re-derived on the next submission.
            logger.exception("pattern_learning_failed", event_id=event_id, user_id=user_id)
            result.learning_failed = True
        else:
            if plan is not None:
                result.patterns = _summarize(plan)

        return OperationResult(data=result)

    def learn_patterns(
        self, grid: EventGrid, user_id: str, votes: Sequence[VoteInput]
    ) -> PatternUpdatePlan | None:
        """Fold a submission into the user's stored patterns.

        Returns:
            The applied plan, or None when the submission had no available
            cell with parseable labels (stored patterns are left untouched).

        Raises:
            StoreError: If patterns cannot be read or written.
        """

        available = [v for v in votes if v.is_available]
        if not available:
            logger.info("pattern_learning_skipped", user_id=user_id, reason="no_available_votes")
            return None

        intervals = self._resolve_intervals(grid, available)
        if not intervals:
            logger.info("pattern_learning_skipped", user_id=user_id, reason="no_parseable_cells")
            return None

        existing = self.store.get_patterns(user_id)
        plan = plan_pattern_update(
            user_id,
            intervals,
            existing,
            policy=self.settings.merge_policy,
            tolerance_minutes=self.settings.fuzzy_union_tolerance_minutes,
        )
        self._apply_plan(plan)

        logger.info(
            "patterns_learned",
            user_id=user_id,
            event_id=grid.event_id,
            policy=self.settings.merge_policy,
            existing=len(existing),
            retired=len(plan.retired_ids),
            inserted=len(plan.inserts),
        )
        return plan

    def get_suggestions(self, user_id: str, event_id: int) -> OperationResult:
        """Pre-fill a user's votes for an event from their stored patterns.

        ``data`` is an empty list when the user has no patterns, which means
        "no suggestion available" rather than "suggest nothing selected".
        """

        try:
            patterns = self.store.get_patterns(user_id)
            if not patterns:
                return OperationResult(data=[])
            grid = self.store.get_event_grid(event_id)
        except NotFoundError:
            return OperationResult(success=False, error="Event not found")
        except StoreError as e:
            logger.error("suggestion_load_failed", event_id=event_id, user_id=user_id, error=str(e))
            return OperationResult(success=False, error="Failed to load suggestions")

        suggestions = suggest_for_grid(
            patterns,
            grid,
            default_span_minutes=self.settings.default_slot_minutes,
            today=self.today,
        )
        return OperationResult(data=suggestions)

    def consolidate_patterns(self, user_id: str) -> OperationResult:
        """Compact a user's stored patterns with the fuzzy-union tolerance."""

        try:
            existing = self.store.get_patterns(user_id)
            plan = plan_consolidation(
                user_id,
                existing,
                tolerance_minutes=self.settings.fuzzy_union_tolerance_minutes,
            )
            self._apply_plan(plan)
        except StoreError as e:
            logger.error("pattern_consolidation_failed", user_id=user_id, error=str(e))
            return OperationResult(success=False, error="Failed to consolidate patterns")

        logger.info(
            "patterns_consolidated",
            user_id=user_id,
            retired=len(plan.retired_ids),
            inserted=len(plan.inserts),
        )
        return OperationResult(data=_summarize(plan))

    def get_results(self, event_id: int) -> OperationResult:
        """Tally an event's votes per cell."""

        try:
            grid = self.store.get_event_grid(event_id)
            votes = self.store.list_votes(event_id)
        except NotFoundError:
            return OperationResult(success=False, error="Event not found")
        except StoreError as e:
            logger.error("results_load_failed", event_id=event_id, error=str(e))
            return OperationResult(success=False, error="Failed to load results")

        tallies = tally_votes(grid, votes)
        return OperationResult(data={"cells": tallies, "best": best_cells(tallies)})

    def _to_vote_rows(
        self, grid: EventGrid, user_id: str, votes: Sequence[VoteInput]
    ) -> list[Vote]:
        # Repeated cells collapse to the last vote given for them.
        by_cell: dict[tuple[int, int], Vote] = {}
        for v in votes:
            if grid.date_cell(v.date_cell_id) is None or grid.time_cell(v.time_cell_id) is None:
                raise ValidationError(
                    f"Cell ({v.date_cell_id}, {v.time_cell_id}) is not part of event {grid.event_id}"
                )
            by_cell[(v.date_cell_id, v.time_cell_id)] = Vote(
                event_id=grid.event_id,
                user_id=user_id,
                date_cell_id=v.date_cell_id,
                time_cell_id=v.time_cell_id,
                is_available=v.is_available,
            )
        return list(by_cell.values())

    def _save_votes(self, event_id: int, user_id: str, rows: Sequence[Vote]) -> None:
        if isinstance(self.store, TransactionalVoteStore):
            self.store.replace_votes(event_id, user_id, rows)
            return
        self.store.delete_votes(event_id, user_id)
        self.store.insert_votes(rows)

    def _resolve_intervals(self, grid: EventGrid, votes: Sequence[VoteInput]) -> list[Interval]:
        intervals = []
        for v in votes:
            date_cell = grid.date_cell(v.date_cell_id)
            time_cell = grid.time_cell(v.time_cell_id)
            if date_cell is None or time_cell is None:
                continue
            interval = from_label_pair(
                date_cell.label,
                time_cell.label,
                default_span_minutes=self.settings.default_slot_minutes,
                today=self.today,
            )
            if interval is None:
                logger.debug(
                    "vote_cell_unparseable",
                    date_label=date_cell.label,
                    time_label=time_cell.label,
                )
                continue
            intervals.append(interval)
        return intervals

    def _apply_plan(self, plan: PatternUpdatePlan) -> None:
        if plan.is_noop:
            return
        if isinstance(self.store, TransactionalPatternStore):
            self.store.apply_pattern_update(plan)
            return

        # Without transactions a crash between these calls can briefly leave
        # the user's patterns empty or duplicated until the next submission.
        batch_size = self.settings.pattern_delete_batch_size
        for i in range(0, len(plan.retired_ids), batch_size):
            self.store.delete_patterns(plan.retired_ids[i : i + batch_size])
        self.store.insert_patterns(plan.new_rows())
