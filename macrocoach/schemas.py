# macrocoach/schemas.py
from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator

from macrocoach.services.units import height_to_cm, weight_to_kg

Gender = Literal["male", "female", "other"]
WeightUnit = Literal["kg", "lbs"]
HeightUnit = Literal["cm", "in"]
UnitPreference = Literal["metric", "imperial"]
IntensityLevel = Literal["low", "moderate", "vigorous"]
SessionIntensity = Literal["light", "moderate", "hard", "very_intense"]
MuscleGroup = Literal["legs", "back", "chest", "shoulders", "arms", "core", "cardio", "grip", "full_body"]
ActivityLevel = Literal["sedentary", "lightly_active", "moderately_active", "very_active", "extremely_active"]
TrainingVolume = Literal["0-1", "2-3", "4-5", "6-7", "8+"]
DietType = Literal["balanced", "high_carb", "low_carb", "keto", "custom"]
DayOfWeek = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
SessionType = Literal["training", "external_activity"]
RegenerationReason = Literal["initial", "regenerated", "custom_macros"]


def _lower(v: Any) -> Any:
    return v.strip().lower() if isinstance(v, str) else v


LooseGender = Annotated[Gender, BeforeValidator(_lower)]
LooseDayOfWeek = Annotated[DayOfWeek, BeforeValidator(_lower)]


# ---------- engine value objects ----------------------------------------------


class BiometricProfile(BaseModel):
    """Read-only biometrics for a single calculation, in the client's units."""

    model_config = ConfigDict(frozen=True)

    weight: float = Field(gt=0)
    weight_unit: WeightUnit = "kg"
    height: float = Field(gt=0)
    height_unit: HeightUnit = "cm"
    gender: Gender
    age: int | None = Field(default=None, ge=1, le=120)
    body_fat_percentage: float | None = Field(default=None, gt=0, lt=100)

    @property
    def weight_kg(self) -> float:
        return weight_to_kg(self.weight, self.weight_unit)

    @property
    def height_cm(self) -> float:
        return height_to_cm(self.height, self.height_unit)


class BMRResult(BaseModel):
    bmr: int
    tdee: int
    method: str
    explanation: str


class ActivityAnalysis(BaseModel):
    estimated_calories: int = Field(ge=0)
    met_value: float = Field(ge=1.5, le=15)
    recovery_impact: str
    recovery_hours: int = Field(ge=12, le=72)
    muscle_groups_impacted: list[MuscleGroup] = Field(min_length=1)
    training_recommendations: list[str]


class ActivityMetadata(BaseModel):
    """Stored on an external-activity session once the analysis is attached."""

    activity_name: str
    intensity_level: IntensityLevel
    duration_minutes: int
    estimated_calories: int
    met_value: float
    recovery_impact: str
    recovery_hours: int
    muscle_groups_impacted: list[MuscleGroup]


class SessionCalorieEstimate(BaseModel):
    estimated_calories: int = Field(ge=0)
    intensity: SessionIntensity
    reasoning: str


class ExerciseSpec(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    sets: int
    reps_min: int | None = None
    reps_max: int | None = None
    reps_target: str | None = None
    rpe_target: float | None = None
    rest_seconds: int | None = None


class SessionSpec(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    focus: str | None = None
    day_of_week: str | None = None
    session_type: SessionType = "training"
    exercises: list[ExerciseSpec] = Field(default_factory=list)
    activity_metadata: ActivityMetadata | None = None
    estimated_calories: int | None = None


class CalorieTarget(BaseModel):
    calories: int
    weekly_rate: float
    warnings: list[str] = Field(default_factory=list)


class MacroSplit(BaseModel):
    protein_g: int = Field(ge=0)
    carb_g: int = Field(ge=0)
    fat_g: int = Field(ge=0)
    warnings: list[str] = Field(default_factory=list)


class NutritionPlan(BaseModel):
    calorie_target: int
    protein_target_g: int = Field(ge=0)
    carb_target_g: int = Field(ge=0)
    fat_target_g: int = Field(ge=0)
    adjusted_tdee: int
    weekly_weight_change_kg: float
    warnings: list[str] = Field(default_factory=list)


class CustomMacroOverride(BaseModel):
    protein_g: int = Field(gt=0)
    carb_g: int = Field(gt=0)
    fat_g: int = Field(gt=0)
    calories: int = Field(gt=0)

    @property
    def computed_calories(self) -> int:
        return self.protein_g * 4 + self.carb_g * 4 + self.fat_g * 9


class DaySession(BaseModel):
    name: str
    session_type: SessionType
    calories: int


class DayTarget(BaseModel):
    day: DayOfWeek
    day_label: str
    is_training_day: bool
    training_calories: int
    calories: int
    protein_g: int
    carb_g: int
    fat_g: int
    sessions: list[DaySession] = Field(default_factory=list)


class AverageTargets(BaseModel):
    calories: int
    protein_g: int
    carb_g: int
    fat_g: int


class WeeklyNutritionTarget(BaseModel):
    days: list[DayTarget]
    weekly_total: int
    weekly_training_calories: int
    daily_training_calories: int
    training_days: int
    rest_days: int
    average: AverageTargets


class WeightChange(BaseModel):
    value: float
    unit: str
    is_loss: bool


class RegenerationStatus(BaseModel):
    show_banner: bool
    threshold_kg: float
    current_weight_kg: float | None = None
    base_weight_kg: float | None = None
    change: WeightChange | None = None


# ---------- request bodies ----------------------------------------------------


class NutritionPlanRequest(BaseModel):
    work_activity_level: ActivityLevel
    training_volume_hours: TrainingVolume | None = None
    protein_target_g_per_kg: float = Field(ge=1.0, le=3.0)
    diet_type: DietType
    goal_deadline: date | None = None
    custom_macros_enabled: bool = False
    custom_protein_g: int | None = Field(default=None, gt=0)
    custom_carb_g: int | None = Field(default=None, gt=0)
    custom_fat_g: int | None = Field(default=None, gt=0)
    custom_calories: int | None = Field(default=None, gt=0)

    @field_validator("goal_deadline", mode="before")
    @classmethod
    def _blank_deadline(cls, v: Any) -> Any:
        if v in ("", "null"):
            return None
        return v

    @model_validator(mode="after")
    def _custom_values_present(self) -> "NutritionPlanRequest":
        if self.custom_macros_enabled and not (self.custom_protein_g and self.custom_carb_g and self.custom_fat_g):
            raise ValueError("Custom macros enabled but values not provided")
        return self

    def custom_override(self) -> CustomMacroOverride | None:
        if not self.custom_macros_enabled:
            return None
        computed = self.custom_protein_g * 4 + self.custom_carb_g * 4 + self.custom_fat_g * 9
        return CustomMacroOverride(
            protein_g=self.custom_protein_g,
            carb_g=self.custom_carb_g,
            fat_g=self.custom_fat_g,
            calories=self.custom_calories if self.custom_calories is not None else computed,
        )


class AnalyzeActivityRequest(BaseModel):
    activity_name: str = Field(min_length=2, max_length=100)
    intensity_level: IntensityLevel
    duration_minutes: int = Field(ge=10, le=480)
    client_weight_kg: float = Field(ge=30, le=300)


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str | None = None
    gender: LooseGender | None = None
    date_of_birth: date | None = None
    height: float | None = Field(default=None, gt=0)
    height_unit: HeightUnit | None = None
    current_weight: float | None = Field(default=None, gt=0)
    goal_weight: float | None = Field(default=None, gt=0)
    weight_unit: WeightUnit | None = None
    body_fat_percentage: float | None = Field(default=None, gt=0, lt=100)
    unit_preference: UnitPreference = "imperial"


class ClientUpdate(BaseModel):
    # all optional; only provided fields are updated
    name: str | None = Field(default=None, min_length=1, max_length=120)
    email: str | None = None
    gender: LooseGender | None = None
    date_of_birth: date | None = None
    height: float | None = Field(default=None, gt=0)
    height_unit: HeightUnit | None = None
    current_weight: float | None = Field(default=None, gt=0)
    goal_weight: float | None = Field(default=None, gt=0)
    weight_unit: WeightUnit | None = None
    body_fat_percentage: float | None = Field(default=None, gt=0, lt=100)
    unit_preference: UnitPreference | None = None


class TrainingPlanCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class SessionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    day_of_week: LooseDayOfWeek | None = None
    focus: str | None = None
    notes: str | None = Field(default=None, max_length=500)
    estimated_duration_minutes: int | None = Field(default=None, ge=1, le=480)


class SessionUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    day_of_week: LooseDayOfWeek | None = None
    focus: str | None = None
    notes: str | None = Field(default=None, max_length=500)
    estimated_duration_minutes: int | None = Field(default=None, ge=1, le=480)


class ExerciseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    sets: int = Field(ge=1, le=20)
    reps_min: int | None = Field(default=None, ge=1, le=100)
    reps_max: int | None = Field(default=None, ge=1, le=100)
    reps_target: str | None = Field(default=None, max_length=32)
    rpe_target: float | None = Field(default=None, ge=1, le=10)
    rest_seconds: int | None = Field(default=None, ge=0, le=900)
    notes: str | None = Field(default=None, max_length=500)
    is_warmup: bool = False


class ExerciseUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    sets: int | None = Field(default=None, ge=1, le=20)
    reps_min: int | None = Field(default=None, ge=1, le=100)
    reps_max: int | None = Field(default=None, ge=1, le=100)
    reps_target: str | None = Field(default=None, max_length=32)
    rpe_target: float | None = Field(default=None, ge=1, le=10)
    rest_seconds: int | None = Field(default=None, ge=0, le=900)
    notes: str | None = Field(default=None, max_length=500)
    is_warmup: bool | None = None


class ExternalActivityCreate(BaseModel):
    activity_name: str = Field(min_length=2, max_length=100)
    day_of_week: LooseDayOfWeek
    intensity_level: IntensityLevel
    duration_minutes: int = Field(ge=10, le=480)
    notes: str | None = Field(default=None, max_length=500)


class ExternalActivityUpdate(BaseModel):
    activity_name: str | None = Field(default=None, min_length=2, max_length=100)
    day_of_week: LooseDayOfWeek | None = None
    intensity_level: IntensityLevel | None = None
    duration_minutes: int | None = Field(default=None, ge=10, le=480)
    notes: str | None = Field(default=None, max_length=500)


# ---------- responses ---------------------------------------------------------


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    coach_id: int
    name: str
    email: str | None = None
    gender: str | None = None
    date_of_birth: date | None = None
    height: float | None = None
    height_unit: str | None = None
    current_weight: float | None = None
    goal_weight: float | None = None
    weight_unit: str | None = None
    body_fat_percentage: float | None = None
    unit_preference: str
    bmr: int | None = None
    tdee: int | None = None
    diet_type: str | None = None
    calorie_target: int | None = None
    protein_target_g: int | None = None
    carb_target_g: int | None = None
    fat_target_g: int | None = None
    adjusted_tdee: int | None = None
    nutrition_plan_created_at: datetime | None = None
    nutrition_plan_base_weight_kg: float | None = None


class ActivitySuggestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    activity_name: str
    category: str
    met_low: float
    met_moderate: float
    met_vigorous: float
    muscle_groups: list[str]
    recovery_notes: str | None = None
    popularity_score: int


class ExerciseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_id: int
    name: str
    order_index: int
    sets: int
    reps_min: int | None = None
    reps_max: int | None = None
    reps_target: str | None = None
    rpe_target: float | None = None
    rest_seconds: int | None = None
    notes: str | None = None
    is_warmup: bool


class SessionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    plan_id: int
    name: str
    day_of_week: str | None = None
    order_index: int
    focus: str | None = None
    notes: str | None = None
    estimated_duration_minutes: int | None = None
    session_type: str
    activity_metadata: dict[str, Any] | None = None
    estimated_calories: int | None = None
    calories_calculated_at: datetime | None = None
    exercises: list[ExerciseOut] = Field(default_factory=list)


class TrainingPlanOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    name: str
    status: str
    sessions: list[SessionOut] = Field(default_factory=list)


class NutritionHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    created_at: datetime
    created_by_coach_id: int | None = None
    regeneration_reason: RegenerationReason
    inputs: dict[str, Any]
    biometric_snapshot: dict[str, Any]
    base_weight_kg: float
    goal_weight_kg: float | None = None
    bmr: int | None = None
    tdee: int | None = None
    calorie_target: int
    protein_target_g: int
    carb_target_g: int
    fat_target_g: int
    adjusted_tdee: int | None = None
    weekly_weight_change_kg: float
    warnings: list[str]
