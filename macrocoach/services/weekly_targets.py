# macrocoach/services/weekly_targets.py
"""
Seven-day target table: each day is the baseline (rest-day) plan plus that
day's training/activity calories. Only calories move day to day; protein,
carbs and fat stay at the baseline values.
"""

from __future__ import annotations

from typing import Iterable

from macrocoach.schemas import AverageTargets, DayTarget, NutritionPlan, SessionSpec, WeeklyNutritionTarget
from macrocoach.services.session_calories import DAYS, calories_by_day, sessions_by_day, training_days

DAY_LABELS = {d: d.capitalize() for d in DAYS}


def distribute_weekly_targets(
    baseline: NutritionPlan,
    addends: dict[str, int],
    training_day_names: Iterable[str] | None = None,
) -> WeeklyNutritionTarget:
    if training_day_names is None:
        active = {d for d in DAYS if addends.get(d, 0) > 0}
    else:
        active = set(training_day_names)

    days = []
    for day in DAYS:
        extra = int(addends.get(day, 0))
        days.append(
            DayTarget(
                day=day,
                day_label=DAY_LABELS[day],
                is_training_day=day in active,
                training_calories=extra,
                calories=baseline.calorie_target + extra,
                protein_g=baseline.protein_target_g,
                carb_g=baseline.carb_target_g,
                fat_g=baseline.fat_target_g,
            )
        )

    weekly_training = sum(d.training_calories for d in days)
    weekly_total = sum(d.calories for d in days)
    n_training = sum(1 for d in days if d.is_training_day)

    return WeeklyNutritionTarget(
        days=days,
        weekly_total=weekly_total,
        weekly_training_calories=weekly_training,
        daily_training_calories=round(weekly_training / 7),
        training_days=n_training,
        rest_days=7 - n_training,
        average=AverageTargets(
            calories=round(weekly_total / 7),
            protein_g=baseline.protein_target_g,
            carb_g=baseline.carb_target_g,
            fat_g=baseline.fat_target_g,
        ),
    )


def weekly_targets_for_sessions(baseline: NutritionPlan, sessions: list[SessionSpec]) -> WeeklyNutritionTarget:
    weekly = distribute_weekly_targets(baseline, calories_by_day(sessions), training_days(sessions))
    per_day = sessions_by_day(sessions)
    for day in weekly.days:
        day.sessions = per_day[day.day]
    return weekly
