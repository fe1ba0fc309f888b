"""Command line entry point: supplement rules, targets and coverage over JSON/YAML files."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import TypeAdapter, ValidationError

from therapeutic_nutrition.catalog import ProtocolNotFoundError, get_protocol_catalog
from therapeutic_nutrition.config import get_settings
from therapeutic_nutrition.models import (
    HealthProfile,
    MealPlanRequest,
    MealPlanResponse,
    TherapeuticTargetsSnapshot,
)
from therapeutic_nutrition.rules import WhenJsonError, parse_when_json_text
from therapeutic_nutrition.services import TherapeuticService

logger = logging.getLogger(__name__)

_OVERRIDES = TypeAdapter(dict[str, Any])


def _load_document(path: str | None) -> Any:
    """JSON or YAML file (YAML is a superset); None when no path given."""
    if path is None:
        return None
    with Path(path).open(encoding="utf-8") as f:
        return yaml.safe_load(f)


def _emit(payload: Any) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _profile_args(args: argparse.Namespace) -> tuple[HealthProfile | None, dict[str, Any] | None]:
    raw_health = _load_document(args.health)
    health = HealthProfile.model_validate(raw_health) if raw_health else None
    raw_overrides = _load_document(args.overrides)
    overrides = _OVERRIDES.validate_python(raw_overrides) if raw_overrides is not None else None
    return health, overrides


def cmd_supplements(service: TherapeuticService, args: argparse.Namespace) -> int:
    health, overrides = _profile_args(args)
    ctx = service.build_rule_context(args.protocol, health, overrides, diet_key=args.diet)
    result = service.get_applicable_supplement_rules(args.protocol, ctx)
    _emit(result.to_json_dict())
    return 0


def cmd_targets(service: TherapeuticService, args: argparse.Namespace) -> int:
    health, overrides = _profile_args(args)
    _emit(service.build_targets_snapshot(args.protocol, health, overrides).to_json_dict())
    return 0


def cmd_coverage(service: TherapeuticService, args: argparse.Namespace) -> int:
    plan = MealPlanResponse.model_validate(_load_document(args.plan))
    if args.targets:
        targets = TherapeuticTargetsSnapshot.model_validate(_load_document(args.targets))
    else:
        health, overrides = _profile_args(args)
        targets = service.build_targets_snapshot(args.protocol, health, overrides)
    snapshot = service.review_meal_plan(plan, MealPlanRequest(therapeutic_targets=targets))
    _emit(snapshot.to_json_dict() if snapshot else None)
    return 0


def cmd_validate(_service: TherapeuticService, args: argparse.Namespace) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    try:
        expression = parse_when_json_text(text)
    except WhenJsonError as e:
        print(f"{args.file}: {e}", file=sys.stderr)
        for err in e.errors:
            loc = ".".join(str(p) for p in err.get("loc", ()))
            print(f"  {loc}: {err.get('msg')}", file=sys.stderr)
        return 1
    _emit(expression.model_dump(mode="json", by_alias=True, exclude_none=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="therapeutic-nutrition",
        description="Therapeutic protocol supplement rules and meal-plan coverage",
    )
    parser.add_argument("--config-dir", help="Directory with therapeutic_protocols.yaml")
    parser.add_argument("--log-level", help="Overrides LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    def profile_options(p: argparse.ArgumentParser) -> None:
        p.add_argument("--health", help="Health profile (birthDate, sex, heightCm, weightKg)")
        p.add_argument("--overrides", help="Per-user overrides map")

    p = sub.add_parser("supplements", help="Applicable supplement rules for a user")
    p.add_argument("--protocol", required=True, help="Protocol key")
    p.add_argument("--diet", help="Diet key of the user")
    profile_options(p)
    p.set_defaults(handler=cmd_supplements)

    p = sub.add_parser("targets", help="Therapeutic targets snapshot for a user")
    p.add_argument("--protocol", required=True, help="Protocol key")
    profile_options(p)
    p.set_defaults(handler=cmd_targets)

    p = sub.add_parser("coverage", help="Coverage of a meal plan against targets")
    p.add_argument("--plan", required=True, help="Meal plan (days -> meals)")
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--targets", help="Targets snapshot file")
    source.add_argument("--protocol", help="Build targets from this protocol")
    profile_options(p)
    p.set_defaults(handler=cmd_coverage)

    p = sub.add_parser("validate", help="Validate a when_json template")
    p.add_argument("file", help="File containing the when_json object")
    p.set_defaults(handler=cmd_validate)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        service = TherapeuticService(get_protocol_catalog(args.config_dir or ""), settings)
        return args.handler(service, args)
    except ProtocolNotFoundError as e:
        logger.error("%s", e)
        return 2
    except ValidationError as e:
        logger.error("Invalid input: %s", e)
        return 2
    except (OSError, yaml.YAMLError) as e:
        logger.error("Could not read input: %s", e)
        return 2
