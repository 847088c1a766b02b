# macrocoach/services/session_calories.py
"""
Calorie estimates for training sessions and their weekly aggregation.

Resistance work has no closed-form energy model, so the whole estimate for a
training session comes from the oracle and is clamped to 100-800 kcal.
External activities reuse the calories from their stored activity analysis.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from macrocoach.errors import EstimationError
from macrocoach.models import TrainingSession
from macrocoach.schemas import DaySession, ExerciseSpec, SessionCalorieEstimate, SessionIntensity, SessionSpec
from macrocoach.services.estimation_client import EstimationOracle

log = logging.getLogger(__name__)

SESSION_MIN_KCAL, SESSION_MAX_KCAL = 100, 800
DAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

EXTERNAL_REASONING = "External activity - using MET-based calculation"
FALLBACK_REASONING = "Default estimate based on exercise count"
EMPTY_REASONING = "No exercises in session"

SESSION_CALORIE_SYSTEM_PROMPT = """You are an exercise physiologist estimating energy expenditure for resistance training sessions.

Given a list of exercises with sets, reps, RPE and rest periods, estimate the total calories burned for the whole session,
including rest periods between sets.

IMPORTANT: Always respond with valid JSON only - no markdown, no code blocks.

The JSON must follow this exact structure:
{
  "estimatedCalories": number,
  "intensity": "light" | "moderate" | "hard" | "very_intense",
  "reasoning": "One or two sentences explaining the estimate"
}

Calorie reference for a 60-minute session (80 kg lifter):
- Light accessory / machine work, long rests: 150-250 kcal
- Moderate hypertrophy work (8-12 reps, RPE 7-8): 250-400 kcal
- Hard compound lifting (squat, deadlift, RPE 8-9): 350-500 kcal
- Circuits / supersets with short rests: 450-700 kcal

Scale the estimate with body weight and total working sets."""


class _OracleSession(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    estimated_calories: float
    intensity: SessionIntensity
    reasoning: str


def _reps_text(ex: ExerciseSpec) -> str:
    if ex.reps_target:
        return ex.reps_target
    if ex.reps_min and ex.reps_max:
        return f"{ex.reps_min}-{ex.reps_max}"
    if ex.reps_min or ex.reps_max:
        return str(ex.reps_min or ex.reps_max)
    return "8-12"


def exercise_summary(exercises: list[ExerciseSpec]) -> str:
    lines = []
    for ex in exercises:
        line = f"- {ex.name}: {ex.sets} sets × {_reps_text(ex)} reps"
        if ex.rpe_target is not None:
            line += f" RPE {ex.rpe_target:g}"
        if ex.rest_seconds is not None:
            line += f" {ex.rest_seconds}s rest"
        lines.append(line)
    return "\n".join(lines)


def fallback_estimate(exercise_count: int) -> SessionCalorieEstimate:
    return SessionCalorieEstimate(
        estimated_calories=min(150 + exercise_count * 40, 500),
        intensity="hard" if exercise_count > 6 else "moderate",
        reasoning=FALLBACK_REASONING,
    )


def _prompt(session: SessionSpec, weight_kg: float | None) -> str:
    lines = [f"Session: {session.name}"]
    if session.focus:
        lines.append(f"Focus: {session.focus}")
    if weight_kg:
        lines.append(f"Client weight: {weight_kg:.1f} kg")
    lines += ["", "Exercises:", exercise_summary(session.exercises), "", "Estimate the total calories burned."]
    return "\n".join(lines)


def estimate_session_calories(
    session: SessionSpec, weight_kg: float | None, oracle: EstimationOracle
) -> SessionCalorieEstimate:
    if session.session_type == "external_activity":
        calories = session.activity_metadata.estimated_calories if session.activity_metadata else None
        if calories is None:
            calories = session.estimated_calories or 0
        return SessionCalorieEstimate(estimated_calories=calories, intensity="moderate", reasoning=EXTERNAL_REASONING)

    if not session.exercises:
        return SessionCalorieEstimate(estimated_calories=0, intensity="light", reasoning=EMPTY_REASONING)

    try:
        answer = oracle.estimate(
            _prompt(session, weight_kg), _OracleSession, system=SESSION_CALORIE_SYSTEM_PROMPT, max_tokens=300
        )
    except EstimationError as e:
        log.warning("session oracle unavailable for %r, using exercise-count estimate: %s", session.name, e)
        return fallback_estimate(len(session.exercises))

    calories = round(max(SESSION_MIN_KCAL, min(SESSION_MAX_KCAL, answer.estimated_calories)))
    return SessionCalorieEstimate(estimated_calories=calories, intensity=answer.intensity, reasoning=answer.reasoning)


def recalculate_session_calories(
    db: Session, session: TrainingSession, weight_kg: float | None, oracle: EstimationOracle
) -> SessionCalorieEstimate:
    """Re-estimate from the session's current exercises and store the result (caller commits)."""
    db.flush()
    db.refresh(session)
    estimate = estimate_session_calories(SessionSpec.model_validate(session), weight_kg, oracle)
    session.estimated_calories = estimate.estimated_calories
    session.calories_calculated_at = datetime.utcnow()
    log.info("session %s calories recalculated: %s kcal", session.id, estimate.estimated_calories)
    return estimate


# ---------- weekly aggregation ------------------------------------------------


def calories_by_day(sessions: list[SessionSpec]) -> dict[str, int]:
    """Sum stored session calories per weekday; unscheduled sessions are ignored."""
    totals = {day: 0 for day in DAYS}
    for s in sessions:
        if s.day_of_week in totals:
            totals[s.day_of_week] += s.estimated_calories or 0
    return totals


def training_days(sessions: list[SessionSpec]) -> set[str]:
    return {s.day_of_week for s in sessions if s.day_of_week in DAYS}


def sessions_by_day(sessions: list[SessionSpec]) -> dict[str, list[DaySession]]:
    out: dict[str, list[DaySession]] = defaultdict(list)
    for s in sessions:
        if s.day_of_week in DAYS:
            out[s.day_of_week].append(
                DaySession(name=s.name, session_type=s.session_type, calories=s.estimated_calories or 0)
            )
    return {day: out.get(day, []) for day in DAYS}
