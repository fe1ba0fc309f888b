"""
Build a TherapeuticTargetsSnapshot from protocol target rows, user overrides
and ADH reference values. Pure: all inputs are passed in.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from therapeutic_nutrition.coverage.deficits import format_timestamp, round_half_up
from therapeutic_nutrition.models import (
    AdhReferenceRow,
    HealthProfile,
    ProtocolDefinition,
    ProtocolTargetRow,
    TherapeuticProtocolRef,
    TherapeuticTargetsDaily,
    TherapeuticTargetsSnapshot,
    TherapeuticTargetsWeekly,
    TherapeuticTargetValue,
)
from therapeutic_nutrition.models.targets import (
    ABSOLUTE_SUFFIX,
    ADH_PERCENT_UNIT,
    SupplementSummary,
    UserPhysiologySnapshot,
)

logger = logging.getLogger(__name__)

FOOD_GROUP_KEYS = {
    "vegetables_g": "vegetablesG",
    "vegetablesG": "vegetablesG",
    "fruit_g": "fruitG",
    "fruitG": "fruitG",
}


class OverrideEntry(BaseModel):
    """A user's per-target override, keyed 'period:kind:key' (e.g. daily:macro:protein)."""

    model_config = ConfigDict(populate_by_name=True)

    value_num: float = Field(..., alias="valueNum", ge=0, allow_inf_nan=False, strict=True)
    value_type: str | None = Field(default=None, alias="valueType")
    unit: str | None = None


def map_target_value(row: ProtocolTargetRow) -> TherapeuticTargetValue | float:
    if row.value_type == "adh_percent":
        return TherapeuticTargetValue(kind="adh_percent", value=row.value_num, unit=ADH_PERCENT_UNIT)
    if row.value_type == "count":
        return row.value_num
    return TherapeuticTargetValue(kind="absolute", value=row.value_num, unit=row.unit or "g")


def map_daily_targets(rows: Iterable[ProtocolTargetRow]) -> TherapeuticTargetsDaily | None:
    macros: dict[str, TherapeuticTargetValue] = {}
    micros: dict[str, TherapeuticTargetValue] = {}
    food_groups: dict[str, float] = {}

    for row in rows:
        if row.period != "daily":
            continue
        value = map_target_value(row)
        if not isinstance(value, TherapeuticTargetValue):
            continue
        if row.target_kind == "macro":
            macros[row.target_key] = value
        elif row.target_kind == "food_group":
            food_groups[FOOD_GROUP_KEYS.get(row.target_key, row.target_key)] = value.value
        else:
            micros[row.target_key] = value

    if not (macros or micros or food_groups):
        return None
    return TherapeuticTargetsDaily(
        macros=macros or None,
        micros=micros or None,
        food_groups=food_groups or None,
    )


def map_weekly_targets(rows: Iterable[ProtocolTargetRow]) -> TherapeuticTargetsWeekly | None:
    variety: dict[str, float] = {}
    frequency: dict[str, float] = {}
    for row in rows:
        if row.period != "weekly":
            continue
        if row.target_kind == "variety":
            variety[row.target_key] = row.value_num
        else:
            frequency[row.target_key] = row.value_num

    if not (variety or frequency):
        return None
    return TherapeuticTargetsWeekly(variety=variety or None, frequency=frequency or None)


def normalise_overrides(raw: Any) -> dict[str, OverrideEntry] | None:
    """Keep only well-formed target overrides. Scalar rule overrides are skipped."""
    if not isinstance(raw, Mapping):
        return None
    out: dict[str, OverrideEntry] = {}
    for key, value in raw.items():
        if not isinstance(key, str) or not isinstance(value, Mapping):
            continue
        try:
            out[key] = OverrideEntry.model_validate(value)
        except ValidationError as e:
            logger.warning("Ignoring unusable target override %s: %s", key, e.errors()[0]["msg"])
    return out or None


def _override_target(
    entry: OverrideEntry,
    existing: TherapeuticTargetValue | None,
) -> TherapeuticTargetValue:
    if entry.value_type == "adh_percent":
        return TherapeuticTargetValue(kind="adh_percent", value=entry.value_num, unit=ADH_PERCENT_UNIT)
    unit = entry.unit or (existing.unit if existing is not None else None) or "g"
    return TherapeuticTargetValue(kind="absolute", value=entry.value_num, unit=unit)


def apply_overrides_to_targets(
    daily: TherapeuticTargetsDaily | None,
    weekly: TherapeuticTargetsWeekly | None,
    overrides: Mapping[str, OverrideEntry],
) -> tuple[TherapeuticTargetsDaily | None, TherapeuticTargetsWeekly | None]:
    """
    Layer user overrides over protocol targets. Inputs are not modified.

    A key__absolute override set here wins over later ADH enrichment.
    """
    macros = dict(daily.macros or {}) if daily else {}
    micros = dict(daily.micros or {}) if daily else {}
    food_groups = dict(daily.food_groups or {}) if daily else {}
    variety = dict(weekly.variety or {}) if weekly else {}
    frequency = dict(weekly.frequency or {}) if weekly else {}

    for key, entry in overrides.items():
        parts = key.split(":")
        if len(parts) != 3:
            continue
        period, target_kind, target_key = parts

        if period == "daily" and daily is not None:
            if target_kind == "macro":
                macros[target_key] = _override_target(entry, macros.get(target_key))
            elif target_kind == "micro":
                micros[target_key] = _override_target(entry, micros.get(target_key))
            elif target_kind == "food_group" and target_key in FOOD_GROUP_KEYS:
                food_groups[FOOD_GROUP_KEYS[target_key]] = round_half_up(entry.value_num)
        elif period == "weekly" and weekly is not None:
            count = max(0, round_half_up(entry.value_num))
            if target_kind == "variety":
                variety[target_key] = count
            elif target_kind == "frequency":
                frequency[target_key] = count

    daily_out = (
        TherapeuticTargetsDaily(
            macros=macros or None,
            micros=micros or None,
            food_groups=food_groups or None,
        )
        if daily is not None
        else None
    )
    weekly_out = (
        TherapeuticTargetsWeekly(variety=variety or None, frequency=frequency or None)
        if weekly is not None
        else None
    )
    return daily_out, weekly_out


def choose_adh_reference(
    rows: Iterable[AdhReferenceRow],
    key: str,
    sex: str | None = None,
    age_years: float | None = None,
) -> AdhReferenceRow | None:
    """
    Most specific ADH reference for a key.

    Rows must match sex (null = any) and age bounds (null = open). Preference:
    exact sex over sex-neutral, then the narrowest age range.
    """
    candidates = [r for r in rows if r.key == key]
    if sex is not None or age_years is not None:
        candidates = [
            r
            for r in candidates
            if (r.sex is None or r.sex == sex)
            and (r.age_min_years is None or (age_years is not None and age_years >= r.age_min_years))
            and (r.age_max_years is None or (age_years is not None and age_years <= r.age_max_years))
        ]
    if not candidates:
        return None

    def specificity(r: AdhReferenceRow) -> tuple[int, float]:
        sex_score = 2 if r.sex is not None and r.sex == sex else 1 if r.sex is None else 0
        width = (r.age_max_years if r.age_max_years is not None else 999) - (r.age_min_years or 0)
        return -sex_score, width

    return sorted(candidates, key=specificity)[0]


def compute_absolute_from_adh_percent(
    target_percent: float,
    ref_value_num: float,
    ref_unit: str,
) -> TherapeuticTargetValue:
    """(percent / 100) x reference, rounded to 3 decimals; unit from the reference."""
    value = (target_percent / 100) * ref_value_num
    return TherapeuticTargetValue(
        kind="absolute",
        value=round_half_up(value * 1000) / 1000,
        unit=ref_unit,
    )


def adh_percent_keys(daily: TherapeuticTargetsDaily) -> list[str]:
    keys: list[str] = []
    for targets in (daily.macros, daily.micros):
        for key, target in (targets or {}).items():
            if target.kind == "adh_percent":
                keys.append(key)
    return keys


def enrich_daily_with_absolute_from_adh(
    daily: TherapeuticTargetsDaily,
    ref_by_key: Mapping[str, AdhReferenceRow],
) -> TherapeuticTargetsDaily:
    """Add key__absolute for each adh_percent target with a reference; existing companions stay."""

    def add_absolute(
        targets: dict[str, TherapeuticTargetValue] | None,
    ) -> dict[str, TherapeuticTargetValue] | None:
        if not targets:
            return targets
        out = dict(targets)
        for key, target in targets.items():
            if target.kind != "adh_percent":
                continue
            abs_key = key + ABSOLUTE_SUFFIX
            ref = ref_by_key.get(key)
            if abs_key in out or ref is None:
                continue
            out[abs_key] = compute_absolute_from_adh_percent(target.value, ref.value_num, ref.unit or "g")
        return out

    return daily.model_copy(
        update={
            "macros": add_absolute(daily.macros),
            "micros": add_absolute(daily.micros),
        }
    )


def protocol_ref(protocol: ProtocolDefinition) -> TherapeuticProtocolRef:
    source_refs = [r for r in protocol.source_refs if r.title]
    return TherapeuticProtocolRef(
        protocol_key=protocol.protocol_key,
        version=protocol.version or None,
        label_nl=protocol.name_nl,
        source_refs=source_refs or None,
    )


def physiology_snapshot(health: HealthProfile | None) -> UserPhysiologySnapshot | None:
    if health is None:
        return None
    physiology = UserPhysiologySnapshot(
        birth_date=health.birth_date.isoformat() if health.birth_date else None,
        sex=health.sex.value if health.sex else None,
        height_cm=health.height_cm,
        weight_kg=health.weight_kg,
    )
    return physiology if physiology.model_dump(exclude_none=True) else None


def build_therapeutic_targets_snapshot(
    protocol: ProtocolDefinition,
    *,
    health: HealthProfile | None = None,
    overrides: Mapping[str, Any] | None = None,
    adh_reference_rows: Iterable[AdhReferenceRow] = (),
    now: datetime | None = None,
    reference_date: date | None = None,
) -> TherapeuticTargetsSnapshot:
    """
    Targets for one user on one protocol.

    Order: protocol targets, then user overrides, then ADH enrichment of the
    remaining adh_percent targets. Empty sections are left out.
    """
    daily = map_daily_targets(protocol.targets)
    weekly = map_weekly_targets(protocol.targets)

    entries = normalise_overrides(overrides)
    if entries:
        daily, weekly = apply_overrides_to_targets(daily, weekly, entries)

    if daily is not None:
        keys = adh_percent_keys(daily)
        if keys:
            rows = list(adh_reference_rows)
            sex = health.sex.value if health and health.sex else None
            age = health.age_years(reference_date) if health else None
            ref_by_key = {}
            for key in keys:
                ref = choose_adh_reference(rows, key, sex, age)
                if ref is not None:
                    ref_by_key[key] = ref
                else:
                    logger.info("No ADH reference for %s (sex=%s, age=%s)", key, sex, age)
            daily = enrich_daily_with_absolute_from_adh(daily, ref_by_key)

    supplements = [
        SupplementSummary(
            key=s.supplement_key,
            label_nl=s.label_nl,
            dosage_text=s.dosage_text or None,
            notes_nl=s.notes_nl or None,
        )
        for s in protocol.supplements
    ]

    has_daily = daily is not None and bool(daily.macros or daily.micros or daily.food_groups)
    has_weekly = weekly is not None and bool(weekly.variety or weekly.frequency)
    return TherapeuticTargetsSnapshot(
        protocol=protocol_ref(protocol),
        physiology=physiology_snapshot(health),
        daily=daily if has_daily else None,
        weekly=weekly if has_weekly else None,
        supplements=supplements or None,
        computed_at=format_timestamp(now),
    )
