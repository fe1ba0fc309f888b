"""Structural validation of when_json rule expressions."""

import json
from typing import Any

from pydantic import ValidationError

from therapeutic_nutrition.models.conditions import WhenExpression

INVALID_JSON_MESSAGE = "template_json is geen geldige JSON."
INVALID_DSL_MESSAGE = "template_json heeft een ongeldige DSL-structuur."


class WhenJsonError(ValueError):
    """when_json does not match the condition DSL."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


def validate_when_json(raw: Any) -> WhenExpression:
    """
    Parse an untrusted value into a WhenExpression.

    Purely structural: unknown fields, operators, keys, a missing value or a
    non-object root all raise WhenJsonError.
    """
    if isinstance(raw, WhenExpression):
        return raw
    if not isinstance(raw, dict):
        raise WhenJsonError(f"when_json must be an object, got {type(raw).__name__}")
    try:
        return WhenExpression.model_validate(raw)
    except ValidationError as e:
        raise WhenJsonError(INVALID_DSL_MESSAGE, errors=e.errors()) from e


def is_valid_when_json(raw: Any) -> bool:
    try:
        validate_when_json(raw)
    except WhenJsonError:
        return False
    return True


def parse_when_json_text(text: str) -> WhenExpression:
    """Validate a when_json template as typed by an admin (JSON text)."""
    trimmed = text.strip()
    if len(trimmed) < 2:
        raise WhenJsonError(INVALID_JSON_MESSAGE)
    try:
        parsed = json.loads(trimmed)
    except json.JSONDecodeError as e:
        raise WhenJsonError(INVALID_JSON_MESSAGE) from e
    if not isinstance(parsed, dict):
        raise WhenJsonError(INVALID_JSON_MESSAGE)
    return validate_when_json(parsed)
