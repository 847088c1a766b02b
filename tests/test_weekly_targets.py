from __future__ import annotations

from macrocoach.schemas import NutritionPlan, SessionSpec
from macrocoach.services.weekly_targets import distribute_weekly_targets, weekly_targets_for_sessions

BASELINE = NutritionPlan(
    calorie_target=2200,
    protein_target_g=160,
    carb_target_g=220,
    fat_target_g=76,
    adjusted_tdee=2500,
    weekly_weight_change_kg=-0.3,
)


def test_rest_week_is_flat():
    weekly = distribute_weekly_targets(BASELINE, {})
    assert [d.day for d in weekly.days][0] == "monday"
    assert [d.day for d in weekly.days][-1] == "sunday"
    assert all(d.calories == 2200 for d in weekly.days)
    assert weekly.weekly_total == 2200 * 7
    assert weekly.training_days == 0
    assert weekly.rest_days == 7


def test_addends_shift_calories_only():
    addends = {"monday": 350, "wednesday": 412, "saturday": 784}
    weekly = distribute_weekly_targets(BASELINE, addends)

    monday = weekly.days[0]
    assert monday.day_label == "Monday"
    assert monday.calories == 2550
    assert monday.is_training_day
    assert (monday.protein_g, monday.carb_g, monday.fat_g) == (160, 220, 76)
    assert not weekly.days[1].is_training_day

    assert weekly.weekly_total == 2200 * 7 + 350 + 412 + 784
    assert weekly.weekly_training_calories == 1546
    assert weekly.daily_training_calories == 221
    assert weekly.training_days == 3
    assert weekly.average.calories == round(weekly.weekly_total / 7)
    assert weekly.average.protein_g == 160


def test_sessions_feed_the_distribution():
    sessions = [
        SessionSpec(name="Push", day_of_week="monday", estimated_calories=300),
        SessionSpec(name="Running", day_of_week="monday", session_type="external_activity", estimated_calories=500),
        SessionSpec(name="Mobility", day_of_week="friday", estimated_calories=0),
    ]
    weekly = weekly_targets_for_sessions(BASELINE, sessions)
    assert weekly.days[0].training_calories == 800
    assert weekly.days[4].is_training_day
    assert weekly.days[4].calories == 2200
    assert weekly.training_days == 2
    assert [s.name for s in weekly.days[0].sessions] == ["Push", "Running"]
    assert weekly.days[1].sessions == []
