"""Shared fixtures: the bundled protocol catalog, rule contexts and meal plan builders."""

from pathlib import Path

import pytest

from therapeutic_nutrition.catalog import reload_protocol_catalog
from therapeutic_nutrition.config import get_settings, load_yaml_config
from therapeutic_nutrition.models import (
    Meal,
    MealIngredientRef,
    MealPlanDay,
    MealPlanRequest,
    MealPlanResponse,
    ProtocolCatalog,
    TherapeuticProtocolRef,
    TherapeuticTargetsDaily,
    TherapeuticTargetsSnapshot,
    TherapeuticTargetValue,
    UserRuleContext,
)

CONFIG_DIR = Path(__file__).parent.parent / "config"
WAHLS = "wahls_mitochondria_v1"


@pytest.fixture(autouse=True)
def _fresh_caches():
    reload_protocol_catalog()
    get_settings.cache_clear()
    yield
    reload_protocol_catalog()
    get_settings.cache_clear()


@pytest.fixture
def config_dir() -> Path:
    return CONFIG_DIR


@pytest.fixture
def catalog() -> ProtocolCatalog:
    return ProtocolCatalog.model_validate(load_yaml_config(CONFIG_DIR / "therapeutic_protocols.yaml"))


@pytest.fixture
def wahls(catalog):
    return catalog.get(WAHLS)


@pytest.fixture
def ctx() -> UserRuleContext:
    return UserRuleContext(
        sex="female",
        age_years=40,
        height_cm=168,
        weight_kg=64.5,
        diet_key="wahls_paleo",
        protocol_key=WAHLS,
        protocol_version=1,
        overrides={
            "supplements.vitamin_d.intended_amount": 3000,
            "meds.aspirin": True,
            "meds.blood_thinner": None,
            "diet.label": "strict",
        },
    )


@pytest.fixture
def make_meal():
    def _make(macros=None, veg=(), date="2026-02-02", slot="dinner"):
        # Slot 0 is the main ingredient; vegetables fill the following slots.
        refs = [MealIngredientRef(nevo_code="1", quantity_g=150)]
        refs += [MealIngredientRef(nevo_code=str(i + 2), quantity_g=g) for i, g in enumerate(veg)]
        return Meal(name="Maaltijd", slot=slot, date=date, ingredient_refs=refs, estimated_macros=macros)

    return _make


@pytest.fixture
def make_plan():
    def _make(days):
        """days: mapping of ISO date to list of meals."""
        return MealPlanResponse(
            request_id="req-1",
            days=[MealPlanDay(date=d, meals=list(meals)) for d, meals in days.items()],
        )

    return _make


@pytest.fixture
def make_request():
    def _make(macros=None, food_groups=None):
        daily = TherapeuticTargetsDaily(macros=macros, food_groups=food_groups)
        return MealPlanRequest(
            therapeutic_targets=TherapeuticTargetsSnapshot(
                protocol=TherapeuticProtocolRef(protocol_key=WAHLS, version="1"),
                daily=daily,
            )
        )

    return _make


def absolute_target(value, unit="g") -> TherapeuticTargetValue:
    return TherapeuticTargetValue(kind="absolute", value=value, unit=unit)


def adh_target(value) -> TherapeuticTargetValue:
    return TherapeuticTargetValue(kind="adh_percent", value=value, unit="%_adh")


@pytest.fixture
def absolute():
    return absolute_target


@pytest.fixture
def adh_percent():
    return adh_target


@pytest.fixture
def protein_request(make_request):
    return make_request(macros={"protein": absolute_target(60)})
