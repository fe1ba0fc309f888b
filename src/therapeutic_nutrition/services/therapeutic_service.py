"""Therapeutic service - business logic layer over the rule engine and coverage estimator."""

import logging
from datetime import date, datetime
from typing import Any

from therapeutic_nutrition.catalog import get_protocol_catalog, require_protocol
from therapeutic_nutrition.config import Settings, get_settings
from therapeutic_nutrition.coverage import (
    build_therapeutic_targets_snapshot,
    estimate_therapeutic_coverage,
)
from therapeutic_nutrition.models import (
    HealthProfile,
    MealPlanRequest,
    MealPlanResponse,
    ProtocolCatalog,
    RuleFilterResult,
    TherapeuticCoverageSnapshot,
    TherapeuticTargetsSnapshot,
    UserRuleContext,
)
from therapeutic_nutrition.rules import RuleEngine

logger = logging.getLogger(__name__)


class TherapeuticService:
    """Supplement guidance and diet review for one protocol catalog. Separates callers from the pure core."""

    def __init__(
        self,
        catalog: ProtocolCatalog | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._catalog = catalog if catalog is not None else get_protocol_catalog()
        self._settings = settings or get_settings()
        self._rules = RuleEngine(self._catalog)

    def build_rule_context(
        self,
        protocol_key: str,
        health: HealthProfile | None = None,
        overrides: dict[str, Any] | None = None,
        diet_key: str | None = None,
        reference_date: date | None = None,
    ) -> UserRuleContext:
        """Context for one user on one protocol. The protocol version is taken from the catalog."""
        protocol = require_protocol(self._catalog, protocol_key)
        version = _numeric_version(protocol.version)
        return (health or HealthProfile()).to_rule_context(
            protocol_key=protocol.protocol_key,
            protocol_version=version,
            diet_key=diet_key,
            overrides=overrides,
            reference_date=reference_date,
        )

    def get_applicable_supplement_rules(
        self,
        protocol_key: str,
        ctx: UserRuleContext,
    ) -> RuleFilterResult:
        result = self._rules.applicable_rules(protocol_key, ctx)
        logger.info(
            "Supplement rules for %s: %d total, %d applicable, %d skipped, %d invalid",
            protocol_key,
            result.meta.total,
            result.meta.applicable,
            result.meta.skipped,
            result.meta.invalid_when_json,
        )
        return result

    def build_targets_snapshot(
        self,
        protocol_key: str,
        health: HealthProfile | None = None,
        overrides: dict[str, Any] | None = None,
        now: datetime | None = None,
        reference_date: date | None = None,
    ) -> TherapeuticTargetsSnapshot:
        protocol = require_protocol(self._catalog, protocol_key)
        return build_therapeutic_targets_snapshot(
            protocol,
            health=health,
            overrides=overrides,
            adh_reference_rows=self._catalog.adh_reference_values,
            now=now,
            reference_date=reference_date,
        )

    def review_meal_plan(
        self,
        plan: MealPlanResponse,
        request: MealPlanRequest,
        now: datetime | None = None,
    ) -> TherapeuticCoverageSnapshot | None:
        """Coverage snapshot for a generated plan, or None when no targets were requested."""
        snapshot = estimate_therapeutic_coverage(
            plan,
            request,
            now=now,
            deficit_threshold=self._settings.deficit_threshold,
            max_suggestions=self._settings.max_suggestions,
        )
        if snapshot is None:
            logger.info("No therapeutic targets on request %s; coverage skipped", plan.request_id)
            return None
        alerts = snapshot.deficits.alerts if snapshot.deficits else []
        logger.info(
            "Coverage for plan %s: %d day(s), %d alert(s)",
            plan.request_id,
            len(snapshot.daily_by_date),
            len(alerts),
        )
        return snapshot


def _numeric_version(version: str | None) -> int | float | None:
    """Protocol versions are compared numerically in rules; non-numeric versions are left out."""
    if not version:
        return None
    try:
        return int(version)
    except ValueError:
        pass
    try:
        return float(version)
    except ValueError:
        logger.debug("Non-numeric protocol version %r not exposed to rules", version)
        return None
