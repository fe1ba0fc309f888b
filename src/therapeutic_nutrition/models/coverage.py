"""Therapeutic coverage snapshot: per-day and weekly actuals, deficits, suggestions."""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import Field

from therapeutic_nutrition.models.base import CamelModel

Severity = Literal["info", "warn", "error"]
SuggestionKind = Literal["add_side", "add_snack"]

VEG_DEFICIT_CODE = "VEG_TARGET_UNDER_80"
MACRO_DEFICIT_PREFIX = "MACRO_TARGET_UNDER_80:"


@dataclass(frozen=True)
class DeficitEvent:
    """One day's shortfall against one target. Consumed by the deduplicator."""

    code: str
    severity: Severity
    date: str
    actual: float
    target: float
    unit: str | None = None


class QuantityValue(CamelModel):
    value: float
    unit: str


class DailyFoodGroups(CamelModel):
    vegetables_g: float = 0
    fruit_g: float = 0


class TherapeuticCoverageDaily(CamelModel):
    food_groups: DailyFoodGroups
    macros: dict[str, QuantityValue] | None = None


class WeeklyFoodGroups(CamelModel):
    vegetables_g: QuantityValue
    fruit_g: QuantityValue


class TherapeuticCoverageWeekly(CamelModel):
    food_groups: WeeklyFoodGroups
    macros: dict[str, QuantityValue] | None = None


class DeficitAlert(CamelModel):
    code: str
    severity: Severity
    message_nl: str


class TherapeuticWorstContext(CamelModel):
    """The worst day for one deficit code."""

    date: str
    actual: float
    target: float
    unit: str | None = None
    ratio: float | None = None


class SuggestionAppliesTo(CamelModel):
    date: str


class SuggestionMetrics(CamelModel):
    actual: float
    target: float
    unit: str | None = None
    ratio: float | None = None


class TherapeuticActionSuggestion(CamelModel):
    kind: SuggestionKind
    severity: Severity
    title_nl: str
    why_nl: str
    applies_to: SuggestionAppliesTo | None = None
    metrics: SuggestionMetrics | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


class TherapeuticDeficitSummary(CamelModel):
    alerts: list[DeficitAlert]
    suggestions: list[TherapeuticActionSuggestion] | None = None


class TherapeuticCoverageSnapshot(CamelModel):
    """Full output of one estimation run."""

    daily_by_date: dict[str, TherapeuticCoverageDaily]
    weekly: TherapeuticCoverageWeekly | None = None
    deficits: TherapeuticDeficitSummary | None = None
    computed_at: str
