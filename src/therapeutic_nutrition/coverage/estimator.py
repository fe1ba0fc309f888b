"""
Therapeutic coverage estimator.

Pure and deterministic: the same plan and request give the same snapshot, apart
from computed_at. Macro keys come from the request's targets, never from a
hardcoded nutrient list.
"""

import logging
from datetime import datetime

from therapeutic_nutrition.coverage.deficits import (
    build_weekly_rollup,
    dedupe_deficit_events,
    format_timestamp,
)
from therapeutic_nutrition.coverage.suggestions import (
    MAX_SUGGESTIONS,
    build_therapeutic_suggestions,
)
from therapeutic_nutrition.models import (
    Meal,
    MealPlanRequest,
    MealPlanResponse,
    TherapeuticCoverageDaily,
    TherapeuticCoverageSnapshot,
    TherapeuticTargetValue,
)
from therapeutic_nutrition.models.coverage import (
    MACRO_DEFICIT_PREFIX,
    VEG_DEFICIT_CODE,
    DailyFoodGroups,
    DeficitEvent,
    QuantityValue,
    TherapeuticDeficitSummary,
)
from therapeutic_nutrition.models.targets import ABSOLUTE_SUFFIX

logger = logging.getLogger(__name__)

DEFICIT_THRESHOLD = 0.8

# Ingredient-ref slots counted as vegetables (second and third ref of each meal).
VEGETABLE_REF_SLOTS = (1, 2)


def _vegetable_grams(meal: Meal) -> float:
    refs = meal.ingredient_refs
    return sum(
        refs[i].quantity_g or 0
        for i in VEGETABLE_REF_SLOTS
        if i < len(refs)
    )


def _absolute_value(target: TherapeuticTargetValue | None) -> float | None:
    if target is not None and target.kind == "absolute":
        return target.value
    return None


def _effective_target(
    target: TherapeuticTargetValue,
    companion: TherapeuticTargetValue | None,
) -> float | None:
    """Absolute target, or the key__absolute companion of an adh_percent target."""
    value = _absolute_value(target)
    return value if value is not None else _absolute_value(companion)


def _actual_unit(
    target: TherapeuticTargetValue,
    companion: TherapeuticTargetValue | None,
) -> str:
    if target.kind == "absolute":
        return target.unit
    if companion is not None and companion.kind == "absolute":
        return companion.unit
    return "g"


def estimate_therapeutic_coverage(
    plan: MealPlanResponse,
    request: MealPlanRequest,
    *,
    now: datetime | None = None,
    deficit_threshold: float = DEFICIT_THRESHOLD,
    max_suggestions: int = MAX_SUGGESTIONS,
) -> TherapeuticCoverageSnapshot | None:
    """
    Coverage of a meal plan against the request's therapeutic targets.

    Returns None when the request carries no targets (coverage is opt-in).
    - Food groups: vegetablesG from ingredient slots 2 and 3; fruitG is not modelled yet (0).
    - Macros: summed only from meals that report the key; unreported keys are left out.
    - Deficits: absolute targets only, when actual < deficit_threshold x target.
    """
    targets = request.therapeutic_targets
    if targets is None:
        return None

    macro_targets = (targets.daily.macros if targets.daily else None) or {}
    food_group_targets = (targets.daily.food_groups if targets.daily else None) or {}

    daily_by_date: dict[str, TherapeuticCoverageDaily] = {}
    events: list[DeficitEvent] = []

    for day in plan.days:
        vegetables_g = sum(_vegetable_grams(meal) for meal in day.meals)

        macros: dict[str, QuantityValue] = {}
        for key, target in macro_targets.items():
            if key.endswith(ABSOLUTE_SUFFIX):
                continue
            companion = macro_targets.get(key + ABSOLUTE_SUFFIX)
            unit = _actual_unit(target, companion)
            reported = [
                v for v in (meal.macro_actual(key) for meal in day.meals) if v is not None
            ]
            day_sum = sum(reported)
            if reported:
                macros[key] = QuantityValue(value=day_sum, unit=unit)

            effective = _effective_target(target, companion)
            if effective is not None and effective > 0 and day_sum < deficit_threshold * effective:
                events.append(
                    DeficitEvent(
                        code=f"{MACRO_DEFICIT_PREFIX}{key}",
                        severity="warn",
                        date=day.date,
                        actual=day_sum,
                        target=effective,
                        unit=unit,
                    )
                )

        daily_by_date[day.date] = TherapeuticCoverageDaily(
            food_groups=DailyFoodGroups(vegetables_g=vegetables_g, fruit_g=0),
            macros=macros or None,
        )

    veg_target = food_group_targets.get("vegetablesG")
    if veg_target is not None and veg_target > 0:
        for day in plan.days:
            vegetables_g = daily_by_date[day.date].food_groups.vegetables_g
            if vegetables_g < deficit_threshold * veg_target:
                events.append(
                    DeficitEvent(
                        code=VEG_DEFICIT_CODE,
                        severity="warn",
                        date=day.date,
                        actual=vegetables_g,
                        target=veg_target,
                        unit="g",
                    )
                )

    alerts, worst_by_code = dedupe_deficit_events(events)
    weekly = build_weekly_rollup(daily_by_date, macro_targets) if daily_by_date else None

    deficits = None
    if alerts:
        suggestions = build_therapeutic_suggestions(alerts, worst_by_code, max_suggestions)
        deficits = TherapeuticDeficitSummary(alerts=alerts, suggestions=suggestions or None)

    logger.debug(
        "Coverage for %d day(s): %d deficit event(s), %d alert(s)",
        len(daily_by_date),
        len(events),
        len(alerts),
    )
    return TherapeuticCoverageSnapshot(
        daily_by_date=daily_by_date,
        weekly=weekly,
        deficits=deficits,
        computed_at=format_timestamp(now),
    )
