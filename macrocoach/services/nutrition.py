# macrocoach/services/nutrition.py
"""
Daily calorie and macro targets.

- Adjusted TDEE = BMR * work-activity multiplier + training-volume addend
- Target calories = adjusted TDEE + weekly goal rate * 7700 / 7, with the rate
  capped per gender and the result raised to a per-gender floor
- Macros are protein-first: protein from g/kg, the remainder split into
  carbs/fat by diet type, then fat raised to a per-gender minimum

Everything here is a pure function of its arguments; `today` is injectable.
"""

from __future__ import annotations

from datetime import date

from macrocoach.errors import ConstraintViolationError
from macrocoach.schemas import CalorieTarget, CustomMacroOverride, MacroSplit, NutritionPlan, NutritionPlanRequest

KCAL_PER_KG = 7700
CUSTOM_CALORIE_TOLERANCE = 50

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "lightly_active": 1.375,
    "moderately_active": 1.55,
    "very_active": 1.725,
    "extremely_active": 1.9,
}

# hours of training per week -> extra kcal/day
TRAINING_VOLUME_ADDEND = {
    "0-1": 0,
    "2-3": 250,
    "4-5": 400,
    "6-7": 550,
    "8+": 700,
}

# (carb share, fat share) of the calories left after protein
DIET_SPLITS = {
    "balanced": (0.50, 0.50),
    "high_carb": (0.65, 0.35),
    "low_carb": (0.25, 0.75),
    "keto": (0.10, 0.90),
    "custom": (0.50, 0.50),
}

# kg/week
MAX_DEFICIT = {"female": 0.75}
MAX_SURPLUS = {"female": 0.35}
DEFAULT_MAX_DEFICIT = 1.0
DEFAULT_MAX_SURPLUS = 0.5

MIN_CALORIES = {"female": 1200}
DEFAULT_MIN_CALORIES = 1500

MIN_FAT_SHARE = {"female": 0.25}
DEFAULT_MIN_FAT_SHARE = 0.20

PROTEIN_RECOMMENDED_MIN = 1.6
PROTEIN_RECOMMENDED_MAX = 2.5


def activity_multiplier(level: str | None) -> float:
    return ACTIVITY_MULTIPLIERS.get(level or "sedentary", 1.2)


def training_calorie_addend(volume: str | None) -> int:
    return TRAINING_VOLUME_ADDEND.get(volume or "0-1", 0)


def adjusted_tdee(bmr: float, work_activity_level: str | None, training_volume_hours: str | None = None) -> int:
    return round(bmr * activity_multiplier(work_activity_level) + training_calorie_addend(training_volume_hours))


def minimum_calories(gender: str | None) -> int:
    return MIN_CALORIES.get(gender, DEFAULT_MIN_CALORIES)


def calculate_target_calories(
    tdee: int,
    current_weight_kg: float,
    goal_weight_kg: float | None,
    goal_deadline: date | None,
    gender: str | None,
    today: date | None = None,
) -> CalorieTarget:
    if goal_weight_kg is None or goal_deadline is None:
        return CalorieTarget(calories=tdee, weekly_rate=0.0)

    today = today or date.today()
    days_to_goal = (goal_deadline - today).days
    if days_to_goal <= 0:
        return CalorieTarget(
            calories=tdee,
            weekly_rate=0.0,
            warnings=["Goal deadline has passed. Using maintenance calories."],
        )

    warnings: list[str] = []
    weekly_rate = (goal_weight_kg - current_weight_kg) / (days_to_goal / 7)

    max_deficit = MAX_DEFICIT.get(gender, DEFAULT_MAX_DEFICIT)
    max_surplus = MAX_SURPLUS.get(gender, DEFAULT_MAX_SURPLUS)
    if weekly_rate < -max_deficit:
        weekly_rate = -max_deficit
        warnings.append(
            f"Weekly deficit capped at {max_deficit:g}kg/week for safety. Goal timeline may need adjustment."
        )
    elif weekly_rate > max_surplus:
        weekly_rate = max_surplus
        warnings.append(
            f"Weekly surplus capped at {max_surplus:g}kg/week for optimal muscle gain. "
            "Goal timeline may need adjustment."
        )

    daily_adjustment = weekly_rate * KCAL_PER_KG / 7
    calories = round(tdee + daily_adjustment)

    floor = minimum_calories(gender)
    if calories < floor:
        calories = floor
        warnings.append(
            f"Calorie target raised to minimum safe level ({floor} cal/day). Consider adjusting goal timeline."
        )

    return CalorieTarget(calories=calories, weekly_rate=round(weekly_rate, 3), warnings=warnings)


def allocate_macros(
    calories: int,
    weight_kg: float,
    protein_per_kg: float,
    diet_type: str | None,
    gender: str | None,
) -> MacroSplit:
    warnings: list[str] = []

    if protein_per_kg < PROTEIN_RECOMMENDED_MIN:
        warnings.append(
            "Protein target is below recommended minimum (1.6g/kg). Consider increasing for better results."
        )
    elif protein_per_kg > PROTEIN_RECOMMENDED_MAX:
        warnings.append(
            "Protein target is higher than necessary (>2.5g/kg). Excess protein provides no additional benefit."
        )

    protein_g = round(weight_kg * protein_per_kg)
    remaining = calories - protein_g * 4
    if remaining < 0:
        warnings.append("Protein alone exceeds calorie target. Adjusting protein down to fit.")
        protein_g = round(calories * 0.4 / 4)
        remaining = max(0, calories - protein_g * 4)

    _, fat_share = DIET_SPLITS.get(diet_type or "balanced", DIET_SPLITS["balanced"])
    fat_kcal = remaining * fat_share

    min_fat_share = MIN_FAT_SHARE.get(gender, DEFAULT_MIN_FAT_SHARE)
    min_fat_kcal = calories * min_fat_share
    if fat_kcal < min_fat_kcal:
        fat_kcal = min(min_fat_kcal, remaining)
        warnings.append(f"Fat intake increased to meet {round(min_fat_share * 100)}% minimum for hormonal health.")

    # fat is rounded first and carbs take whatever is left, so the total stays within a few kcal
    fat_g = min(round(fat_kcal / 9), remaining // 9)
    carb_g = max(0, round((remaining - fat_g * 9) / 4))

    return MacroSplit(protein_g=protein_g, carb_g=carb_g, fat_g=fat_g, warnings=warnings)


def validate_custom_macros(override: CustomMacroOverride) -> None:
    diff = abs(override.computed_calories - override.calories)
    if diff > CUSTOM_CALORIE_TOLERANCE:
        raise ConstraintViolationError(
            f"Custom macros add up to {override.computed_calories} kcal, "
            f"which is {diff} kcal away from the declared {override.calories} kcal "
            f"(allowed: ±{CUSTOM_CALORIE_TOLERANCE})",
            details=[f"computed_calories={override.computed_calories}", f"declared_calories={override.calories}"],
        )


def generate_nutrition_plan(
    *,
    bmr: int,
    weight_kg: float,
    goal_weight_kg: float | None,
    gender: str,
    request: NutritionPlanRequest,
    today: date | None = None,
    include_volume_addend: bool = True,
) -> NutritionPlan:
    """
    Baseline (rest-day) plan. A custom override replaces the computed
    calories/macros wholesale; the goal rate is still reported.

    With include_volume_addend=False the coarse training-volume bucket is
    left out of the TDEE, for clients whose training plan supplies per-day
    session calories.
    """
    volume = request.training_volume_hours if include_volume_addend else None
    tdee = adjusted_tdee(bmr, request.work_activity_level, volume)
    target = calculate_target_calories(tdee, weight_kg, goal_weight_kg, request.goal_deadline, gender, today=today)

    override = request.custom_override()
    if override is not None:
        validate_custom_macros(override)
        return NutritionPlan(
            calorie_target=override.calories,
            protein_target_g=override.protein_g,
            carb_target_g=override.carb_g,
            fat_target_g=override.fat_g,
            adjusted_tdee=tdee,
            weekly_weight_change_kg=target.weekly_rate,
            warnings=[],
        )

    macros = allocate_macros(target.calories, weight_kg, request.protein_target_g_per_kg, request.diet_type, gender)
    return NutritionPlan(
        calorie_target=target.calories,
        protein_target_g=macros.protein_g,
        carb_target_g=macros.carb_g,
        fat_target_g=macros.fat_g,
        adjusted_tdee=tdee,
        weekly_weight_change_kg=target.weekly_rate,
        warnings=target.warnings + macros.warnings,
    )
