# macrocoach/services/activity_energy.py
"""
Calories burned for a discrete activity.

    calories = round(MET * weight_kg * duration_minutes / 60)

Known activities take MET, muscle groups and recovery notes from the catalog.
Unknown activities ask the estimation oracle for the MET value and the
qualitative fields only; the oracle never computes calories. Oracle answers
are clamped (MET 1.5-15, recovery 12-72h) before use, and any failure falls
back to a fixed MET per intensity.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from macrocoach.errors import EstimationError
from macrocoach.models import ActivityCatalogEntry
from macrocoach.schemas import ActivityAnalysis, ActivityMetadata
from macrocoach.services import activity_catalog
from macrocoach.services.estimation_client import EstimationOracle

log = logging.getLogger(__name__)

MUSCLE_GROUPS = ("legs", "back", "chest", "shoulders", "arms", "core", "cardio", "grip", "full_body")

MET_MIN, MET_MAX = 1.5, 15.0
RECOVERY_MIN_H, RECOVERY_MAX_H = 12, 72

BASE_RECOVERY_HOURS = {"low": 12, "moderate": 18, "vigorous": 24}
FALLBACK_MET = {"low": 4.0, "moderate": 6.0, "vigorous": 8.0}

ACTIVITY_ANALYSIS_SYSTEM_PROMPT = """You are a sports science expert analyzing physical activities for calorie burn and recovery impact.

Given an activity name and intensity level, provide:
1. MET value (metabolic equivalent) for the activity at that intensity
2. Primary muscle groups used
3. Estimated recovery time in hours
4. Brief recovery impact description
5. Training recommendations for the next 24-48 hours

IMPORTANT: Always respond with valid JSON only - no markdown, no code blocks.

The JSON must follow this exact structure:
{
  "metValue": number (typically 3-15 for most activities),
  "muscleGroupsImpacted": ["legs", "back", "chest", "shoulders", "arms", "core", "cardio", "grip", "full_body"],
  "recoveryHours": number (typically 12-48),
  "recoveryImpact": "Brief description of how this activity affects training recovery",
  "trainingRecommendations": ["Array of specific recommendations for training around this activity"]
}

MET Reference Values:
- Light activities (walking, stretching): 2-4 MET
- Moderate activities (brisk walking, cycling): 4-6 MET
- Vigorous activities (running, sports): 6-10 MET
- Very vigorous (sprinting, HIIT): 10-15 MET

Intensity adjustments:
- "low" intensity: Use base/lower MET value
- "moderate" intensity: Use typical MET value
- "vigorous" intensity: Use higher MET value (add 2-4 to base)"""


class _OracleActivity(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    met_value: float
    muscle_groups_impacted: list[str]
    recovery_hours: float
    recovery_impact: str
    training_recommendations: list[str]


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def calories_from_met(met_value: float, weight_kg: float, duration_minutes: float) -> int:
    return round(met_value * weight_kg * (duration_minutes / 60))


def met_for_intensity(entry: ActivityCatalogEntry, intensity: str) -> float:
    if intensity == "low":
        return entry.met_low
    if intensity == "vigorous":
        return entry.met_vigorous
    return entry.met_moderate


def recovery_hours_for(intensity: str, duration_minutes: float) -> int:
    base = BASE_RECOVERY_HOURS.get(intensity, 18)
    duration_factor = min(duration_minutes / 60, 2)
    return round(base * (0.8 + duration_factor * 0.2))


def training_recommendations(muscle_groups: list[str], intensity: str) -> list[str]:
    recs: list[str] = []
    groups = set(muscle_groups)

    if intensity == "vigorous":
        recs.append("Allow adequate recovery before next intense session")
    if "legs" in groups:
        recs.append(
            "Consider reducing leg volume or moving leg day"
            if intensity == "vigorous"
            else "Monitor leg fatigue during lower body training"
        )
    if groups & {"shoulders", "arms"}:
        recs.append("Watch for upper body fatigue in push/pull sessions")
    if "cardio" in groups:
        recs.append("Factor cardio work into overall training volume")
    if groups & {"back", "grip"}:
        recs.append("May impact pulling exercises and grip strength")

    if not recs:
        recs.append("This activity should have minimal impact on training")
    return recs


def _known_muscle_groups(groups: list[str] | None) -> list[str]:
    out = []
    for g in groups or []:
        g = (g or "").strip().lower()
        if g in MUSCLE_GROUPS and g not in out:
            out.append(g)
    return out or ["full_body"]


def analyze_known_activity(
    entry: ActivityCatalogEntry, intensity: str, duration_minutes: int, weight_kg: float
) -> ActivityAnalysis:
    met_value = _clamp(met_for_intensity(entry, intensity), MET_MIN, MET_MAX)
    muscle_groups = _known_muscle_groups(entry.muscle_groups)

    recovery_impact = entry.recovery_notes
    if not recovery_impact:
        intensity_text = {"low": "Light", "moderate": "Moderate"}.get(intensity, "High")
        recovery_impact = f"{intensity_text} impact on {', '.join(muscle_groups[:3])}. Plan training accordingly."

    return ActivityAnalysis(
        estimated_calories=calories_from_met(met_value, weight_kg, duration_minutes),
        met_value=met_value,
        recovery_impact=recovery_impact,
        recovery_hours=round(_clamp(recovery_hours_for(intensity, duration_minutes), RECOVERY_MIN_H, RECOVERY_MAX_H)),
        muscle_groups_impacted=muscle_groups,
        training_recommendations=training_recommendations(muscle_groups, intensity),
    )


def _unknown_prompt(activity_name: str, intensity: str, duration_minutes: int, weight_kg: float) -> str:
    return (
        "Analyze this physical activity:\n"
        f"- Activity: {activity_name}\n"
        f"- Intensity: {intensity}\n"
        f"- Duration: {duration_minutes} minutes\n"
        f"- Client weight: {weight_kg} kg\n\n"
        "Provide MET value, muscle groups, recovery impact, and training recommendations."
    )


def analyze_unknown_activity(
    activity_name: str,
    intensity: str,
    duration_minutes: int,
    weight_kg: float,
    oracle: EstimationOracle,
) -> ActivityAnalysis:
    try:
        answer = oracle.estimate(
            _unknown_prompt(activity_name, intensity, duration_minutes, weight_kg),
            _OracleActivity,
            system=ACTIVITY_ANALYSIS_SYSTEM_PROMPT,
            max_tokens=500,
        )
    except EstimationError as e:
        log.warning("activity oracle unavailable for %r, using %s-intensity defaults: %s", activity_name, intensity, e)
        met_value = FALLBACK_MET.get(intensity, 6.0)
        return ActivityAnalysis(
            estimated_calories=calories_from_met(met_value, weight_kg, duration_minutes),
            met_value=met_value,
            recovery_impact=f"{activity_name} at {intensity} intensity. Monitor recovery.",
            recovery_hours=24 if intensity == "vigorous" else 18,
            muscle_groups_impacted=["full_body", "cardio"],
            training_recommendations=["Monitor fatigue and adjust training as needed"],
        )

    met_value = _clamp(answer.met_value, MET_MIN, MET_MAX)
    recovery_hours = round(_clamp(answer.recovery_hours, RECOVERY_MIN_H, RECOVERY_MAX_H))
    recs = [r for r in answer.training_recommendations if r and r.strip()]

    return ActivityAnalysis(
        estimated_calories=calories_from_met(met_value, weight_kg, duration_minutes),
        met_value=met_value,
        recovery_impact=answer.recovery_impact or "Activity analyzed. Plan recovery accordingly.",
        recovery_hours=recovery_hours,
        muscle_groups_impacted=_known_muscle_groups(answer.muscle_groups_impacted),
        training_recommendations=recs or ["Monitor fatigue levels in subsequent training"],
    )


def analyze_activity(
    db: Session,
    activity_name: str,
    intensity: str,
    duration_minutes: int,
    weight_kg: float,
    oracle: EstimationOracle,
    schedule: Callable[..., Any] | None = None,
) -> ActivityAnalysis:
    """
    Pick the known or unknown path by catalog lookup.

    `schedule` is a fire-and-forget dispatcher (e.g. BackgroundTasks.add_task);
    when given, a catalog hit bumps that entry's popularity through it.
    """
    entry = activity_catalog.find_activity(db, activity_name)
    if entry is None:
        return analyze_unknown_activity(activity_name, intensity, duration_minutes, weight_kg, oracle)

    analysis = analyze_known_activity(entry, intensity, duration_minutes, weight_kg)
    if schedule is not None:
        try:
            schedule(activity_catalog.increment_popularity, entry.id)
        except Exception as e:
            log.warning("could not schedule popularity tracking for %r: %s", entry.activity_name, e)
    return analysis


def to_metadata(
    analysis: ActivityAnalysis, activity_name: str, intensity: str, duration_minutes: int
) -> ActivityMetadata:
    return ActivityMetadata(
        activity_name=activity_name,
        intensity_level=intensity,
        duration_minutes=duration_minutes,
        estimated_calories=analysis.estimated_calories,
        met_value=analysis.met_value,
        recovery_impact=analysis.recovery_impact,
        recovery_hours=analysis.recovery_hours,
        muscle_groups_impacted=analysis.muscle_groups_impacted,
    )
