from datetime import date

import pytest

from therapeutic_nutrition.models import HealthProfile, Sex, UserRuleContext


class TestHealthProfile:
    def test_age_before_and_after_birthday(self):
        health = HealthProfile(birth_date=date(1985, 6, 1))
        assert health.age_years(date(2026, 5, 31)) == 40
        assert health.age_years(date(2026, 6, 1)) == 41

    def test_age_unknown(self):
        assert HealthProfile().age_years(date(2026, 1, 1)) is None
        assert HealthProfile(birth_date=date(2030, 1, 1)).age_years(date(2026, 1, 1)) is None

    def test_accepts_camel_case(self):
        health = HealthProfile.model_validate(
            {"birthDate": "1990-03-15", "sex": "male", "heightCm": 181, "weightKg": 80.2}
        )
        assert health.sex is Sex.MALE
        assert health.height_cm == 181

    def test_unknown_sex_is_dropped(self):
        assert HealthProfile.model_validate({"sex": "x"}).sex is None

    def test_to_rule_context(self):
        health = HealthProfile(birth_date=date(1985, 6, 1), sex="female", weight_kg=64)
        ctx = health.to_rule_context(
            protocol_key="wahls_mitochondria_v1",
            protocol_version=1,
            diet_key="wahls_paleo",
            overrides={"meds.aspirin": True},
            reference_date=date(2026, 2, 1),
        )
        assert ctx.sex == "female"
        assert ctx.age_years == 40
        assert ctx.height_cm is None
        assert ctx.weight_kg == 64
        assert ctx.diet_key == "wahls_paleo"
        assert ctx.protocol_version == 1
        assert ctx.overrides == {"meds.aspirin": True}

    def test_rule_context_keeps_types_it_was_given(self):
        ctx = UserRuleContext(sex="female", age_years=40, weight_kg=64.5, protocol_version=1)
        assert ctx.age_years == 40 and isinstance(ctx.age_years, int)
        assert ctx.weight_kg == 64.5
        assert ctx.protocol_version == 1

    @pytest.mark.parametrize(
        "field,value",
        [
            ("age_years", "40"),
            ("height_cm", "170"),
            ("weight_kg", True),
            ("protocol_version", True),
            ("sex", 5),
            ("diet_key", ["wahls_paleo"]),
            ("protocol_key", 1),
        ],
    )
    def test_rule_context_wrong_type_is_absent(self, field, value):
        assert getattr(UserRuleContext(**{field: value}), field) is None

    def test_rule_context_copies_overrides(self):
        overrides = {"meds.aspirin": True}
        ctx = HealthProfile().to_rule_context(overrides=overrides)
        overrides["meds.statin"] = True
        assert "meds.statin" not in ctx.overrides
