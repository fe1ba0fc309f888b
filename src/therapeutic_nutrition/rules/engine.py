"""Rule engine for supplement guidance. Rules decide; malformed rules are excluded, never shown."""

import logging
from collections.abc import Iterable

from therapeutic_nutrition.catalog import get_protocol_catalog, require_protocol
from therapeutic_nutrition.models import (
    ProtocolCatalog,
    RuleExplanation,
    RuleFilterMeta,
    RuleFilterResult,
    SupplementRule,
    UserRuleContext,
)
from therapeutic_nutrition.rules.evaluator import evaluate_when_json

logger = logging.getLogger(__name__)


def filter_supplement_rules_for_user(
    rules: Iterable[SupplementRule],
    ctx: UserRuleContext,
) -> RuleFilterResult:
    """
    Keep the rules that apply to this user.

    meta always reconciles: total == applicable + skipped + invalid_when_json.
    rule_meta_by_id holds the matched conditions ("why") per applicable rule.
    """
    rules = list(rules)
    applicable_rules: list[SupplementRule] = []
    rule_meta_by_id: dict[str, RuleExplanation] = {}
    invalid_when_json = 0

    for rule in rules:
        if rule.when_json is None:
            applicable_rules.append(rule)
            continue

        evaluation = evaluate_when_json(rule.when_json, ctx)
        if evaluation.invalid:
            invalid_when_json += 1
            logger.warning(
                "Excluded rule with invalid when_json: id=%s rule_key=%s supplement=%s",
                rule.id,
                rule.rule_key,
                rule.supplement_key,
            )
            continue
        if not evaluation.applicable:
            logger.debug("Rule not applicable: id=%s rule_key=%s", rule.id, rule.rule_key)
            continue

        applicable_rules.append(rule)
        if evaluation.matched:
            rule_meta_by_id[rule.id] = RuleExplanation(matched=evaluation.matched)

    total = len(rules)
    applicable = len(applicable_rules)
    return RuleFilterResult(
        applicable_rules=applicable_rules,
        meta=RuleFilterMeta(
            total=total,
            applicable=applicable,
            skipped=total - applicable - invalid_when_json,
            invalid_when_json=invalid_when_json,
        ),
        rule_meta_by_id=rule_meta_by_id,
    )


class RuleEngine:
    """Supplement rules per protocol from the catalog, filtered per user context."""

    def __init__(self, catalog: ProtocolCatalog | None = None) -> None:
        self._catalog = catalog if catalog is not None else get_protocol_catalog()

    def protocol_rules(self, protocol_key: str) -> list[SupplementRule]:
        """Active rules of a protocol. Raises ProtocolNotFoundError for unknown keys."""
        return require_protocol(self._catalog, protocol_key).active_rules()

    def applicable_rules(self, protocol_key: str, ctx: UserRuleContext) -> RuleFilterResult:
        result = filter_supplement_rules_for_user(self.protocol_rules(protocol_key), ctx)
        if result.meta.invalid_when_json:
            logger.warning(
                "Protocol %s has %d rule(s) with invalid when_json",
                protocol_key,
                result.meta.invalid_when_json,
            )
        return result
