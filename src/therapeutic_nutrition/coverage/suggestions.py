"""Action suggestions from deduplicated deficits. Code-driven, no message parsing."""

from collections.abc import Iterable, Mapping

from therapeutic_nutrition.coverage.deficits import round_half_up
from therapeutic_nutrition.models.coverage import (
    MACRO_DEFICIT_PREFIX,
    VEG_DEFICIT_CODE,
    DeficitAlert,
    SuggestionAppliesTo,
    SuggestionMetrics,
    TherapeuticActionSuggestion,
    TherapeuticWorstContext,
)

MAX_SUGGESTIONS = 3
EXTRA_VEGETABLE_SIDE_G = 150


def _metrics(worst: TherapeuticWorstContext | None) -> SuggestionMetrics | None:
    if worst is None:
        return None
    ratio = round_half_up(worst.actual / worst.target * 1000) / 1000 if worst.target > 0 else None
    return SuggestionMetrics(actual=worst.actual, target=worst.target, unit=worst.unit, ratio=ratio)


def _suggestion_for(
    alert: DeficitAlert,
    worst: TherapeuticWorstContext | None,
) -> TherapeuticActionSuggestion | None:
    applies_to = SuggestionAppliesTo(date=worst.date) if worst is not None else None
    metrics = _metrics(worst)

    if alert.code.startswith(VEG_DEFICIT_CODE):
        return TherapeuticActionSuggestion(
            kind="add_side",
            severity="warn",
            title_nl=f"Voeg een extra groente-side toe (±{EXTRA_VEGETABLE_SIDE_G}g)",
            why_nl="Helpt om je groente-doel te halen.",
            applies_to=applies_to,
            metrics=metrics,
            payload={"foodGroup": "vegetables", "grams": EXTRA_VEGETABLE_SIDE_G},
        )
    if alert.code.startswith(MACRO_DEFICIT_PREFIX):
        macro_key = alert.code[len(MACRO_DEFICIT_PREFIX):].strip()
        if not macro_key:
            return None
        return TherapeuticActionSuggestion(
            kind="add_snack",
            severity="warn",
            title_nl=f"Voeg een extra snack toe voor {macro_key}",
            why_nl="Helpt om je macro-doel te halen.",
            applies_to=applies_to,
            metrics=metrics,
            payload={"macroKey": macro_key},
        )
    return None


def build_therapeutic_suggestions(
    alerts: Iterable[DeficitAlert],
    worst_by_code: Mapping[str, TherapeuticWorstContext] | None = None,
    max_suggestions: int = MAX_SUGGESTIONS,
) -> list[TherapeuticActionSuggestion]:
    """
    Map alerts to suggestions in alert order.

    Deduplicated on (kind, title_nl); first seen wins; at most max_suggestions.
    """
    worst_by_code = worst_by_code or {}
    seen: set[tuple[str, str]] = set()
    out: list[TherapeuticActionSuggestion] = []
    for alert in alerts:
        if len(out) >= max_suggestions:
            break
        suggestion = _suggestion_for(alert, worst_by_code.get(alert.code))
        if suggestion is None:
            continue
        dedupe_key = (suggestion.kind, suggestion.title_nl)
        if dedupe_key in seen:
            continue
        seen.add(dedupe_key)
        out.append(suggestion)
    return out
