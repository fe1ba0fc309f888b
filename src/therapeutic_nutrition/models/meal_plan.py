"""Meal plan data model, as produced by the upstream planner."""

from typing import Any, Literal

from pydantic import Field

from therapeutic_nutrition.models.base import CamelModel
from therapeutic_nutrition.models.targets import TherapeuticTargetsSnapshot

MealSlot = Literal["breakfast", "lunch", "dinner", "snack"]


class MealIngredientRef(CamelModel):
    """Ingredient reference with NEVO code; order is significant."""

    nevo_code: str | None = Field(default=None)
    quantity_g: float | None = Field(default=None, description="Amount in grams")
    display_name: str | None = Field(default=None)
    tags: list[str] = Field(default_factory=list)


class Meal(CamelModel):
    """Single meal in a plan."""

    id: str | None = None
    name: str | None = None
    slot: MealSlot | None = None
    date: str | None = None
    ingredient_refs: list[MealIngredientRef] = Field(default_factory=list)
    estimated_macros: dict[str, Any] | None = Field(
        default=None,
        description="Sparse map, e.g. calories, protein, carbs, fat, saturatedFat",
    )
    prep_time: int | None = Field(default=None, description="Minutes")
    servings: int | None = None

    def macro_actual(self, macro_key: str) -> float | None:
        """Reported value for a target key; the 'energy' target reads 'calories'."""
        macros = self.estimated_macros or {}
        raw = macros.get("calories" if macro_key == "energy" else macro_key)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return None
        return raw


class MealPlanDay(CamelModel):
    """One day of a plan, keyed by ISO date."""

    date: str
    meals: list[Meal] = Field(default_factory=list)


class MealPlanResponse(CamelModel):
    """Generated meal plan."""

    request_id: str | None = None
    days: list[MealPlanDay] = Field(default_factory=list)


class MealPlanRequest(CamelModel):
    """The part of a plan request the coverage estimator reads."""

    therapeutic_targets: TherapeuticTargetsSnapshot | None = Field(
        default=None,
        description="Present only when therapeutic coverage is requested",
    )
