"""Therapeutic targets and meal-plan coverage."""

from therapeutic_nutrition.coverage.deficits import build_weekly_rollup, dedupe_deficit_events
from therapeutic_nutrition.coverage.estimator import estimate_therapeutic_coverage
from therapeutic_nutrition.coverage.suggestions import build_therapeutic_suggestions
from therapeutic_nutrition.coverage.targets import (
    apply_overrides_to_targets,
    build_therapeutic_targets_snapshot,
    choose_adh_reference,
    compute_absolute_from_adh_percent,
    enrich_daily_with_absolute_from_adh,
)

__all__ = [
    "apply_overrides_to_targets",
    "build_therapeutic_suggestions",
    "build_therapeutic_targets_snapshot",
    "build_weekly_rollup",
    "choose_adh_reference",
    "compute_absolute_from_adh_percent",
    "dedupe_deficit_events",
    "enrich_daily_with_absolute_from_adh",
    "estimate_therapeutic_coverage",
]
