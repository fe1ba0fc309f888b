"""Data models."""

from therapeutic_nutrition.models.conditions import (
    Condition,
    FieldCondition,
    MatchedCondition,
    OverrideCondition,
    WhenExpression,
)
from therapeutic_nutrition.models.context import HealthProfile, Sex, UserRuleContext
from therapeutic_nutrition.models.coverage import (
    DeficitAlert,
    DeficitEvent,
    TherapeuticActionSuggestion,
    TherapeuticCoverageDaily,
    TherapeuticCoverageSnapshot,
    TherapeuticCoverageWeekly,
    TherapeuticWorstContext,
)
from therapeutic_nutrition.models.meal_plan import (
    Meal,
    MealIngredientRef,
    MealPlanDay,
    MealPlanRequest,
    MealPlanResponse,
)
from therapeutic_nutrition.models.protocol import (
    AdhReferenceRow,
    ProtocolCatalog,
    ProtocolDefinition,
    ProtocolSupplement,
    ProtocolTargetRow,
)
from therapeutic_nutrition.models.supplement import (
    RuleExplanation,
    RuleFilterMeta,
    RuleFilterResult,
    SupplementRule,
)
from therapeutic_nutrition.models.targets import (
    TherapeuticProtocolRef,
    TherapeuticTargetsDaily,
    TherapeuticTargetsSnapshot,
    TherapeuticTargetsWeekly,
    TherapeuticTargetValue,
)

__all__ = [
    "AdhReferenceRow",
    "Condition",
    "DeficitAlert",
    "DeficitEvent",
    "FieldCondition",
    "HealthProfile",
    "MatchedCondition",
    "Meal",
    "MealIngredientRef",
    "MealPlanDay",
    "MealPlanRequest",
    "MealPlanResponse",
    "OverrideCondition",
    "ProtocolCatalog",
    "ProtocolDefinition",
    "ProtocolSupplement",
    "ProtocolTargetRow",
    "RuleExplanation",
    "RuleFilterMeta",
    "RuleFilterResult",
    "Sex",
    "SupplementRule",
    "TherapeuticActionSuggestion",
    "TherapeuticCoverageDaily",
    "TherapeuticCoverageSnapshot",
    "TherapeuticCoverageWeekly",
    "TherapeuticProtocolRef",
    "TherapeuticTargetValue",
    "TherapeuticTargetsDaily",
    "TherapeuticTargetsSnapshot",
    "TherapeuticTargetsWeekly",
    "TherapeuticWorstContext",
    "UserRuleContext",
    "WhenExpression",
]
