"""Therapeutic targets snapshot: per-protocol daily and weekly targets."""

from typing import Literal

from pydantic import Field

from therapeutic_nutrition.models.base import CamelModel

TargetKind = Literal["absolute", "adh_percent"]

# Suffix for the absolute companion of an adh_percent target, e.g. protein__absolute.
ABSOLUTE_SUFFIX = "__absolute"
ADH_PERCENT_UNIT = "%_adh"


class TherapeuticTargetValue(CamelModel):
    """A target as an absolute amount or as a percentage of the ADH reference."""

    kind: TargetKind
    value: float
    unit: str = "g"


class TherapeuticTargetsDaily(CamelModel):
    macros: dict[str, TherapeuticTargetValue] | None = None
    micros: dict[str, TherapeuticTargetValue] | None = None
    food_groups: dict[str, float] | None = Field(
        default=None,
        description="Grams per day, e.g. vegetablesG, fruitG",
    )


class TherapeuticTargetsWeekly(CamelModel):
    variety: dict[str, float] | None = None
    frequency: dict[str, float] | None = None


class SourceRef(CamelModel):
    title: str
    url: str | None = None


class TherapeuticProtocolRef(CamelModel):
    """Protocol identity carried inside a snapshot."""

    protocol_key: str
    version: str | None = None
    label_nl: str | None = None
    source_refs: list[SourceRef] | None = None


class UserPhysiologySnapshot(CamelModel):
    birth_date: str | None = None
    sex: str | None = None
    height_cm: float | None = None
    weight_kg: float | None = None


class SupplementSummary(CamelModel):
    key: str
    label_nl: str
    dosage_text: str | None = None
    notes_nl: str | None = None


class TherapeuticTargetsSnapshot(CamelModel):
    """Targets for one user and protocol at a point in time. Read-only input downstream."""

    protocol: TherapeuticProtocolRef
    physiology: UserPhysiologySnapshot | None = None
    daily: TherapeuticTargetsDaily | None = None
    weekly: TherapeuticTargetsWeekly | None = None
    supplements: list[SupplementSummary] | None = None
    computed_at: str | None = None
