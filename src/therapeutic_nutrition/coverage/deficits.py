"""Deficit deduplication (one alert per code, worst day wins) and the weekly rollup."""

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone

from therapeutic_nutrition.models.coverage import (
    MACRO_DEFICIT_PREFIX,
    VEG_DEFICIT_CODE,
    DeficitAlert,
    DeficitEvent,
    QuantityValue,
    TherapeuticCoverageDaily,
    TherapeuticCoverageWeekly,
    TherapeuticWorstContext,
    WeeklyFoodGroups,
)
from therapeutic_nutrition.models.targets import ABSOLUTE_SUFFIX, TherapeuticTargetValue

DUTCH_MONTHS_SHORT = (
    "jan", "feb", "mrt", "apr", "mei", "jun",
    "jul", "aug", "sep", "okt", "nov", "dec",
)


def format_date_short(iso_date: str) -> str:
    """'2026-02-03' -> '3 feb'. Unparseable input is returned unchanged."""
    try:
        d = date.fromisoformat(iso_date)
    except (TypeError, ValueError):
        return iso_date
    return f"{d.day} {DUTCH_MONTHS_SHORT[d.month - 1]}"


def format_timestamp(moment: datetime | None = None) -> str:
    """UTC, millisecond precision, Z suffix: 2026-02-05T12:00:00.000Z. Naive input is taken as UTC."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_number(value: float) -> str:
    """60.0 -> '60', 62.5 -> '62.5'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def _ratio(event: DeficitEvent) -> float | None:
    return event.actual / event.target if event.target > 0 else None


def _is_worse(candidate: DeficitEvent, current: DeficitEvent) -> bool:
    # Strictly lower ratio only: on ties the earlier event stays.
    cand_ratio, cur_ratio = _ratio(candidate), _ratio(current)
    if cand_ratio is None or cur_ratio is None:
        return False
    return cand_ratio < cur_ratio


def _alert_message(worst: DeficitEvent) -> str:
    label = format_date_short(worst.date)
    if worst.code == VEG_DEFICIT_CODE:
        return (
            f"Groente-doel vaak niet gehaald deze week (slechtste dag {label}: "
            f"{round_half_up(worst.actual)}g / {format_number(worst.target)}g)."
        )
    if worst.code.startswith(MACRO_DEFICIT_PREFIX):
        return (
            f"Doel niet structureel gehaald deze week (slechtste dag {label}: "
            f"{round_half_up(worst.actual)}/{format_number(worst.target)}{worst.unit or 'g'})."
        )
    return f"Doel vaak niet gehaald deze week (slechtste dag {label})."


def dedupe_deficit_events(
    events: Iterable[DeficitEvent],
) -> tuple[list[DeficitAlert], dict[str, TherapeuticWorstContext]]:
    """
    Collapse deficit events to one alert per code.

    The representative is the event with the lowest actual/target ratio.
    Alerts keep the order in which codes were first seen.
    """
    by_code: dict[str, list[DeficitEvent]] = {}
    for event in events:
        by_code.setdefault(event.code, []).append(event)

    alerts: list[DeficitAlert] = []
    worst_by_code: dict[str, TherapeuticWorstContext] = {}
    for code, group in by_code.items():
        worst = group[0]
        for event in group[1:]:
            if _is_worse(event, worst):
                worst = event
        worst_by_code[code] = TherapeuticWorstContext(
            date=worst.date,
            actual=worst.actual,
            target=worst.target,
            unit=worst.unit,
            ratio=_ratio(worst),
        )
        alerts.append(
            DeficitAlert(code=worst.code, severity=worst.severity, message_nl=_alert_message(worst))
        )
    return alerts, worst_by_code


def build_weekly_rollup(
    daily_by_date: Mapping[str, TherapeuticCoverageDaily],
    macro_targets: Mapping[str, TherapeuticTargetValue] | None = None,
) -> TherapeuticCoverageWeekly:
    """Sum daily actuals over the plan. Days without a macro value do not contribute to it."""
    target_units = {
        key: target.unit
        for key, target in (macro_targets or {}).items()
        if not key.endswith(ABSOLUTE_SUFFIX)
    }

    veg_sum = 0.0
    fruit_sum = 0.0
    macro_sums: dict[str, float] = {}
    macro_units: dict[str, str] = {}
    for daily in daily_by_date.values():
        veg_sum += daily.food_groups.vegetables_g
        fruit_sum += daily.food_groups.fruit_g
        for key, actual in (daily.macros or {}).items():
            if key not in macro_sums:
                macro_sums[key] = 0.0
                macro_units[key] = actual.unit or target_units.get(key, "g")
            macro_sums[key] += actual.value

    macros = {key: QuantityValue(value=total, unit=macro_units[key]) for key, total in macro_sums.items()}
    return TherapeuticCoverageWeekly(
        food_groups=WeeklyFoodGroups(
            vegetables_g=QuantityValue(value=veg_sum, unit="g"),
            fruit_g=QuantityValue(value=fruit_sum, unit="g"),
        ),
        macros=macros or None,
    )
