"""
when_json evaluator. Fail-closed: anything that cannot be evaluated safely is
reported as invalid, never as merely false or true.
"""

import logging
from dataclasses import dataclass
from typing import Any

from therapeutic_nutrition.models import (
    Condition,
    FieldCondition,
    MatchedCondition,
    OverrideCondition,
    UserRuleContext,
    WhenExpression,
)
from therapeutic_nutrition.models.conditions import MAX_MATCHED_CONDITIONS_PER_RULE
from therapeutic_nutrition.rules.schema import WhenJsonError, validate_when_json

logger = logging.getLogger(__name__)

# Context attribute per DSL field name
FIELD_ATTRIBUTES = {
    "sex": "sex",
    "ageYears": "age_years",
    "heightCm": "height_cm",
    "weightKg": "weight_kg",
    "dietKey": "diet_key",
    "protocolKey": "protocol_key",
    "protocolVersion": "protocol_version",
}
STRING_FIELDS = {"sex", "dietKey", "protocolKey"}

# Distinguishes "not set" from an explicit None override.
_MISSING = object()


@dataclass(frozen=True)
class ConditionResult:
    result: bool
    invalid: bool = False
    matched: MatchedCondition | None = None


@dataclass(frozen=True)
class RuleEvaluation:
    applicable: bool
    invalid: bool = False
    matched: list[MatchedCondition] | None = None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _values_equal(left: Any, right: Any) -> bool:
    """Equality with numeric tolerance (5 == 5.0); booleans only equal booleans."""
    if _is_number(left) and _is_number(right):
        return left == right
    if isinstance(left, bool) and isinstance(right, bool):
        return left is right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    return False


def _compare(op: str, left: Any, expected: Any) -> tuple[bool, bool]:
    """Returns (result, invalid)."""
    if op == "in":
        if left is _MISSING:
            return False, False
        options = expected if isinstance(expected, list) else [expected]
        return any(_values_equal(left, o) for o in options), False

    if isinstance(expected, list):
        if not expected:
            return False, True
        right = expected[0]
    else:
        right = expected
    if left is _MISSING:
        return False, False

    if op in ("gte", "lte"):
        if not (_is_number(left) and _is_number(right)):
            return False, True
        return (left >= right if op == "gte" else left <= right), False
    if op == "eq":
        return _values_equal(left, right), False
    if op == "neq":
        return not _values_equal(left, right), False
    return False, False


def _context_value(ctx: UserRuleContext, field: str) -> Any:
    """Context value for a DSL field; a value of the wrong type counts as absent."""
    value = getattr(ctx, FIELD_ATTRIBUTES[field], None)
    if value is None:
        return _MISSING
    if field in STRING_FIELDS:
        return value if isinstance(value, str) else _MISSING
    return value if _is_number(value) else _MISSING


def _primitive_or_none(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)):
        return value
    return None


def _evaluate_override(cond: OverrideCondition, ctx: UserRuleContext) -> ConditionResult:
    value = (ctx.overrides or {}).get(cond.key, _MISSING)
    if cond.op == "exists":
        result = value is not _MISSING and value is not None
        matched = (
            MatchedCondition(type="override", op="exists", key=cond.key, expected=True, actual=True)
            if result
            else None
        )
        return ConditionResult(result=result, matched=matched)

    result, invalid = _compare(cond.op, value, cond.value)
    if invalid:
        return ConditionResult(result=False, invalid=True)
    if not result:
        return ConditionResult(result=False)
    return ConditionResult(
        result=True,
        matched=MatchedCondition(
            type="override",
            op=cond.op,
            key=cond.key,
            expected=cond.value,
            actual=_primitive_or_none(value),
        ),
    )


def _evaluate_field(cond: FieldCondition, ctx: UserRuleContext) -> ConditionResult:
    value = _context_value(ctx, cond.field)
    result, invalid = _compare(cond.op, value, cond.value)
    if invalid:
        return ConditionResult(result=False, invalid=True)
    if not result:
        return ConditionResult(result=False)
    return ConditionResult(
        result=True,
        matched=MatchedCondition(
            type="field",
            field=cond.field,
            op=cond.op,
            expected=cond.value,
            actual=None if value is _MISSING else value,
        ),
    )


def evaluate_condition(cond: Condition, ctx: UserRuleContext) -> ConditionResult:
    """Evaluate one condition; on success the result carries a MatchedCondition."""
    if isinstance(cond, OverrideCondition):
        return _evaluate_override(cond, ctx)
    return _evaluate_field(cond, ctx)


def evaluate_when_json(when: Any, ctx: UserRuleContext) -> RuleEvaluation:
    """
    Evaluate a rule expression (raw when_json or a validated WhenExpression).

    - None: always applicable.
    - all: AND; first invalid or false condition short-circuits.
    - any: OR; empty list is not applicable, one invalid alternative invalidates all.
    - not: negation of one condition; invalid is never negated.
    """
    if when is None:
        return RuleEvaluation(applicable=True)
    try:
        expr: WhenExpression = validate_when_json(when)
    except WhenJsonError as e:
        logger.debug("when_json rejected by schema: %s", e)
        return RuleEvaluation(applicable=False, invalid=True)

    if expr.all_ is not None:
        matched: list[MatchedCondition] = []
        for cond in expr.all_:
            r = evaluate_condition(cond, ctx)
            if r.invalid:
                return RuleEvaluation(applicable=False, invalid=True)
            if not r.result:
                return RuleEvaluation(applicable=False)
            if r.matched is not None:
                matched.append(r.matched)
        return RuleEvaluation(applicable=True, matched=matched[:MAX_MATCHED_CONDITIONS_PER_RULE])

    if expr.any_ is not None:
        if not expr.any_:
            return RuleEvaluation(applicable=False)
        matched = []
        for cond in expr.any_:
            r = evaluate_condition(cond, ctx)
            if r.invalid:
                return RuleEvaluation(applicable=False, invalid=True)
            if r.result and r.matched is not None:
                matched.append(r.matched)
        if not matched:
            return RuleEvaluation(applicable=False)
        return RuleEvaluation(applicable=True, matched=matched[:MAX_MATCHED_CONDITIONS_PER_RULE])

    if expr.not_ is not None:
        r = evaluate_condition(expr.not_, ctx)
        if r.invalid:
            return RuleEvaluation(applicable=False, invalid=True)
        return RuleEvaluation(applicable=not r.result)

    return RuleEvaluation(applicable=True)
