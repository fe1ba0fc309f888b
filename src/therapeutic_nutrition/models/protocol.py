"""Protocol catalog: protocols with their targets, supplements and rules."""

from typing import Any, Literal

from pydantic import Field, model_validator

from therapeutic_nutrition.models.base import CamelModel
from therapeutic_nutrition.models.supplement import SupplementRule
from therapeutic_nutrition.models.targets import SourceRef


class ProtocolTargetRow(CamelModel):
    """One target definition, e.g. daily/macro/protein = 60 g."""

    period: Literal["daily", "weekly"]
    target_kind: str = Field(..., description="macro, micro, food_group, variety, frequency")
    target_key: str
    value_num: float
    unit: str | None = None
    value_type: str = Field(default="absolute", description="absolute, adh_percent or count")


class ProtocolSupplement(CamelModel):
    supplement_key: str
    label_nl: str
    dosage_text: str | None = None
    notes_nl: str | None = None


class AdhReferenceRow(CamelModel):
    """ADH (recommended daily intake) reference value; null sex/age bounds are open."""

    key: str
    sex: str | None = None
    age_min_years: float | None = None
    age_max_years: float | None = None
    unit: str = "g"
    value_num: float


class ProtocolDefinition(CamelModel):
    id: str
    protocol_key: str
    name_nl: str
    version: str | None = None
    source_refs: list[SourceRef] = Field(default_factory=list)
    supplements: list[ProtocolSupplement] = Field(default_factory=list)
    targets: list[ProtocolTargetRow] = Field(default_factory=list)
    rules: list[SupplementRule] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _attach_protocol_id(cls, data: Any) -> Any:
        # Rules in config omit protocol_id; they belong to the enclosing protocol.
        if isinstance(data, dict) and isinstance(data.get("rules"), list):
            protocol_id = data.get("id")
            data = dict(data)
            data["rules"] = [
                {"protocol_id": protocol_id, **r} if isinstance(r, dict) else r
                for r in data["rules"]
            ]
        return data

    def active_rules(self) -> list[SupplementRule]:
        return [r for r in self.rules if r.is_active]


class ProtocolCatalog(CamelModel):
    protocols: list[ProtocolDefinition] = Field(default_factory=list)
    adh_reference_values: list[AdhReferenceRow] = Field(default_factory=list)

    def get(self, protocol_key: str) -> ProtocolDefinition | None:
        for p in self.protocols:
            if p.protocol_key == protocol_key:
                return p
        return None
