"""when_json DSL validation, evaluation and supplement rule filtering."""

from therapeutic_nutrition.rules.engine import RuleEngine, filter_supplement_rules_for_user
from therapeutic_nutrition.rules.evaluator import (
    ConditionResult,
    RuleEvaluation,
    evaluate_condition,
    evaluate_when_json,
)
from therapeutic_nutrition.rules.schema import (
    WhenJsonError,
    is_valid_when_json,
    parse_when_json_text,
    validate_when_json,
)

__all__ = [
    "ConditionResult",
    "RuleEngine",
    "RuleEvaluation",
    "WhenJsonError",
    "evaluate_condition",
    "evaluate_when_json",
    "filter_supplement_rules_for_user",
    "is_valid_when_json",
    "parse_when_json_text",
    "validate_when_json",
]
