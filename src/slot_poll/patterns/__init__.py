"""Learning of per-user "usual availability" patterns from votes."""

from .merge import (
    PatternUpdatePlan,
    fuzzy_union,
    merge_contiguous,
    plan_consolidation,
    plan_fuzzy_union,
    plan_pattern_update,
    plan_replace_same_date,
)

__all__ = [
    "PatternUpdatePlan",
    "fuzzy_union",
    "merge_contiguous",
    "plan_consolidation",
    "plan_fuzzy_union",
    "plan_pattern_update",
    "plan_replace_same_date",
]
