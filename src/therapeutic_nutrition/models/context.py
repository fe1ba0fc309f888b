"""Health profile and the rule evaluation context derived from it."""

from datetime import date
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from therapeutic_nutrition.models.base import CamelModel


class Sex(str, Enum):
    """Sex as recorded on the health profile."""

    FEMALE = "female"
    MALE = "male"
    OTHER = "other"
    UNKNOWN = "unknown"


class HealthProfile(CamelModel):
    """Physiology fields of a user or family member."""

    birth_date: date | None = Field(default=None, description="Date of birth")
    sex: Sex | None = Field(default=None)
    height_cm: float | None = Field(default=None, description="Height in cm")
    weight_kg: float | None = Field(default=None, description="Weight in kg")

    @field_validator("sex", mode="before")
    @classmethod
    def _drop_unknown_sex(cls, value: Any) -> Any:
        # Values outside the enum are treated as not recorded.
        if isinstance(value, str) and value not in {s.value for s in Sex}:
            return None
        return value

    def age_years(self, reference_date: date | None = None) -> int | None:
        """Whole years of age, or None when unknown or the birth date is in the future."""
        if self.birth_date is None:
            return None
        ref = reference_date or date.today()
        years = ref.year - self.birth_date.year
        if (ref.month, ref.day) < (self.birth_date.month, self.birth_date.day):
            years -= 1
        return years if years >= 0 else None

    def to_rule_context(
        self,
        *,
        protocol_key: str | None = None,
        protocol_version: int | float | None = None,
        diet_key: str | None = None,
        overrides: dict[str, Any] | None = None,
        reference_date: date | None = None,
    ) -> "UserRuleContext":
        """Context for when_json evaluation: physiology + protocol + per-user overrides."""
        return UserRuleContext(
            sex=self.sex.value if self.sex is not None else None,
            age_years=self.age_years(reference_date),
            height_cm=self.height_cm,
            weight_kg=self.weight_kg,
            diet_key=diet_key,
            protocol_key=protocol_key,
            protocol_version=protocol_version,
            overrides=dict(overrides or {}),
        )


class UserRuleContext(CamelModel):
    """Evaluation environment for supplement rules. Never mutated during evaluation."""

    model_config = ConfigDict(frozen=True)

    sex: str | None = None
    age_years: int | float | None = None
    height_cm: int | float | None = None
    weight_kg: int | float | None = None
    diet_key: str | None = None
    protocol_key: str | None = None
    protocol_version: int | float | None = None
    overrides: dict[str, Any] = Field(
        default_factory=dict,
        description="User-specific exceptions layered on top of protocol defaults",
    )

    # No coercion: a value outside the field's domain is treated as not recorded.
    @field_validator("sex", "diet_key", "protocol_key", mode="before")
    @classmethod
    def _string_or_absent(cls, value: Any) -> Any:
        return value if isinstance(value, str) else None

    @field_validator("age_years", "height_cm", "weight_kg", "protocol_version", mode="before")
    @classmethod
    def _number_or_absent(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value
