"""Supplement rules and the result of filtering them for one user."""

from typing import Any

from pydantic import Field

from therapeutic_nutrition.models.base import CamelModel
from therapeutic_nutrition.models.conditions import MatchedCondition


class SupplementRule(CamelModel):
    """A guidance rule attached to a protocol supplement."""

    id: str
    protocol_id: str
    supplement_key: str
    rule_key: str
    kind: str = Field(..., description="e.g. warning, info")
    severity: str = Field(..., description="info, warn or error")
    when_json: Any = Field(
        default=None,
        description="Raw, untrusted DSL expression; None means always applicable",
    )
    message_nl: str
    is_active: bool = True
    updated_at: str | None = None


class RuleFilterMeta(CamelModel):
    """Counters for rule-table health. total == applicable + skipped + invalid_when_json."""

    total: int = 0
    applicable: int = 0
    skipped: int = 0
    invalid_when_json: int = 0


class RuleExplanation(CamelModel):
    matched: list[MatchedCondition] | None = None


class RuleFilterResult(CamelModel):
    applicable_rules: list[SupplementRule] = Field(default_factory=list)
    meta: RuleFilterMeta = Field(default_factory=RuleFilterMeta)
    rule_meta_by_id: dict[str, RuleExplanation] = Field(default_factory=dict)
