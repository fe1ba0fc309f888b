"""Deficit deduplication, Dutch alert messages and the weekly rollup."""

from datetime import datetime, timedelta, timezone

import pytest

from therapeutic_nutrition.coverage import build_weekly_rollup, dedupe_deficit_events
from therapeutic_nutrition.coverage.deficits import (
    format_date_short,
    format_number,
    format_timestamp,
    round_half_up,
)
from therapeutic_nutrition.models import DeficitEvent, TherapeuticCoverageDaily
from therapeutic_nutrition.models.coverage import DailyFoodGroups, QuantityValue

PROTEIN = "MACRO_TARGET_UNDER_80:protein"
VEG = "VEG_TARGET_UNDER_80"


def event(code, day, actual, target, unit="g"):
    return DeficitEvent(code=code, severity="warn", date=day, actual=actual, target=target, unit=unit)


class TestFormatting:
    @pytest.mark.parametrize(
        "iso,label",
        [("2026-02-03", "3 feb"), ("2026-03-10", "10 mrt"), ("2026-05-01", "1 mei"), ("2026-10-31", "31 okt")],
    )
    def test_date_short(self, iso, label):
        assert format_date_short(iso) == label

    def test_unparseable_date_is_kept(self):
        assert format_date_short("maandag") == "maandag"

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.4) == 2

    def test_format_number(self):
        assert format_number(60.0) == "60"
        assert format_number(62.5) == "62.5"

    def test_timestamp_is_utc_millis_with_z(self):
        assert format_timestamp(datetime(2026, 2, 5, 12, 0, tzinfo=timezone.utc)) == "2026-02-05T12:00:00.000Z"
        assert format_timestamp(datetime(2026, 2, 5, 12, 0, 0, 123456, tzinfo=timezone.utc)) == (
            "2026-02-05T12:00:00.123Z"
        )

    def test_timestamp_naive_is_utc(self):
        assert format_timestamp(datetime(2026, 2, 5, 12, 0)) == "2026-02-05T12:00:00.000Z"

    def test_timestamp_converts_offset(self):
        cet = timezone(timedelta(hours=1))
        assert format_timestamp(datetime(2026, 2, 5, 13, 0, tzinfo=cet)) == "2026-02-05T12:00:00.000Z"

    def test_timestamp_defaults_to_now(self):
        assert format_timestamp().endswith("Z")


class TestDedupe:
    def test_one_alert_per_code_worst_day_wins(self):
        alerts, worst = dedupe_deficit_events(
            [event(PROTEIN, "2026-02-02", 10, 60), event(PROTEIN, "2026-02-03", 5, 60)]
        )
        assert len(alerts) == 1
        assert alerts[0].code == PROTEIN
        assert worst[PROTEIN].date == "2026-02-03"
        assert worst[PROTEIN].ratio == pytest.approx(5 / 60)
        assert alerts[0].message_nl == (
            "Doel niet structureel gehaald deze week (slechtste dag 3 feb: 5/60g)."
        )

    def test_tie_keeps_first_event(self):
        _, worst = dedupe_deficit_events(
            [event(PROTEIN, "2026-02-02", 30, 60), event(PROTEIN, "2026-02-03", 30, 60)]
        )
        assert worst[PROTEIN].date == "2026-02-02"

    def test_codes_keep_first_seen_order(self):
        alerts, _ = dedupe_deficit_events(
            [
                event(PROTEIN, "2026-02-02", 10, 60),
                event("MACRO_TARGET_UNDER_80:energy", "2026-02-02", 900, 2000, "kcal"),
                event(VEG, "2026-02-02", 100, 600),
                event(PROTEIN, "2026-02-03", 5, 60),
            ]
        )
        assert [a.code for a in alerts] == [PROTEIN, "MACRO_TARGET_UNDER_80:energy", VEG]
        assert alerts[1].message_nl.endswith("900/2000kcal).")

    def test_vegetable_message(self):
        alerts, _ = dedupe_deficit_events([event(VEG, "2026-02-04", 349.6, 600)])
        assert alerts[0].message_nl == (
            "Groente-doel vaak niet gehaald deze week (slechtste dag 4 feb: 350g / 600g)."
        )

    def test_unknown_code_gets_generic_message(self):
        alerts, _ = dedupe_deficit_events([event("OTHER", "2026-02-04", 1, 2)])
        assert alerts[0].message_nl == "Doel vaak niet gehaald deze week (slechtste dag 4 feb)."

    def test_no_events(self):
        assert dedupe_deficit_events([]) == ([], {})


class TestWeeklyRollup:
    def daily(self, veg, macros=None):
        return TherapeuticCoverageDaily(
            food_groups=DailyFoodGroups(vegetables_g=veg, fruit_g=0),
            macros={k: QuantityValue(value=v, unit="g") for k, v in macros.items()} if macros else None,
        )

    def test_sums_days(self):
        weekly = build_weekly_rollup(
            {
                "2026-02-02": self.daily(200, {"protein": 40}),
                "2026-02-03": self.daily(350.5),
                "2026-02-04": self.daily(100, {"protein": 22.5}),
            }
        )
        assert weekly.food_groups.vegetables_g.value == 650.5
        assert weekly.food_groups.vegetables_g.unit == "g"
        assert weekly.food_groups.fruit_g.value == 0
        assert weekly.macros["protein"].value == 62.5

    def test_no_macros_reported(self):
        weekly = build_weekly_rollup({"2026-02-02": self.daily(200)})
        assert weekly.food_groups is not None
        assert weekly.macros is None
        assert "macros" not in weekly.to_json_dict()
