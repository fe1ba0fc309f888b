"""when_json condition DSL: conditions, expressions and match explanations."""

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    Tag,
    model_validator,
)

from therapeutic_nutrition.models.base import CamelModel

# No coercion between scalar kinds: "5" stays a string, True stays a bool.
Scalar = Union[StrictBool, StrictInt, StrictFloat, StrictStr]
ConditionValue = Union[Scalar, list[Scalar]]

ContextField = Literal[
    "sex",
    "ageYears",
    "heightCm",
    "weightKg",
    "dietKey",
    "protocolKey",
    "protocolVersion",
]
FieldOp = Literal["eq", "neq", "gte", "lte", "in"]
OverrideOp = Literal["eq", "neq", "gte", "lte", "in", "exists"]

# Cap on "why" records per rule; display aid only.
MAX_MATCHED_CONDITIONS_PER_RULE = 6


class FieldCondition(BaseModel):
    """Comparison against a profile/protocol field of the user context."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: ContextField
    op: FieldOp
    value: ConditionValue


class OverrideCondition(BaseModel):
    """Comparison against a user override, e.g. supplements.vitamin_d.intended_amount."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    field: Literal["override"]
    key: StrictStr = Field(..., min_length=1)
    op: OverrideOp
    value: ConditionValue | None = None

    @model_validator(mode="after")
    def _value_required_unless_exists(self) -> "OverrideCondition":
        if self.op != "exists" and self.value is None:
            raise ValueError(f"value is required for op '{self.op}'")
        return self


def _condition_tag(value: Any) -> str | None:
    field = value.get("field") if isinstance(value, dict) else getattr(value, "field", None)
    if field is None:
        return None
    return "override" if field == "override" else "field"


Condition = Annotated[
    Union[
        Annotated[FieldCondition, Tag("field")],
        Annotated[OverrideCondition, Tag("override")],
    ],
    Discriminator(_condition_tag),
]


class WhenExpression(BaseModel):
    """
    Root of a when_json rule expression.

    At most one of ``all`` (AND), ``any`` (OR) or ``not`` (single condition).
    None of them means the rule always applies.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    all_: list[Condition] | None = Field(default=None, alias="all")
    any_: list[Condition] | None = Field(default=None, alias="any")
    not_: Condition | None = Field(default=None, alias="not")

    @model_validator(mode="after")
    def _single_combinator(self) -> "WhenExpression":
        present = [name for name in self.model_fields_set]
        for name in present:
            if getattr(self, name) is None:
                raise ValueError(f"'{name.rstrip('_')}' must not be null")
        if len(present) > 1:
            raise ValueError("use only one of 'all', 'any' or 'not'")
        return self


class MatchedCondition(CamelModel):
    """One condition that held during evaluation; the 'why' behind an applicable rule."""

    type: Literal["field", "override"]
    field: ContextField | None = None
    op: OverrideOp
    key: str | None = None
    expected: ConditionValue | None = None
    actual: Scalar | None = None
