# macrocoach/services/nutrition_plans.py
"""
Client-level plan generation: check the client has what the engine needs,
run targeting + allocation, store the plan on the client, then record history.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

from macrocoach.errors import InputIncompleteError
from macrocoach.models import Client, TrainingPlan
from macrocoach.schemas import NutritionPlan, NutritionPlanRequest, SessionSpec, WeeklyNutritionTarget
from macrocoach.services import plan_history
from macrocoach.services.nutrition import generate_nutrition_plan
from macrocoach.services.units import weight_to_kg
from macrocoach.services.weekly_targets import weekly_targets_for_sessions

log = logging.getLogger(__name__)


def validate_client_for_nutrition(client: Client) -> list[str]:
    missing = []
    if not client.current_weight:
        missing.append("Client must have a current weight recorded")
    if not client.bmr:
        missing.append("Client must have BMR calculated (use Calculate BMR button)")
    if not client.tdee:
        missing.append("Client must have TDEE calculated (use Calculate BMR button)")
    if not client.gender:
        missing.append("Client must have gender specified in profile")
    if not client.weight_unit:
        missing.append("Client must have weight unit set")
    return missing


def _apply_plan(client: Client, plan: NutritionPlan, request: NutritionPlanRequest, base_weight_kg: float) -> None:
    client.work_activity_level = request.work_activity_level
    client.training_volume_hours = request.training_volume_hours
    client.protein_target_g_per_kg = request.protein_target_g_per_kg
    client.diet_type = request.diet_type
    client.goal_deadline = request.goal_deadline
    client.custom_macros_enabled = request.custom_macros_enabled
    client.custom_protein_g = request.custom_protein_g if request.custom_macros_enabled else None
    client.custom_carb_g = request.custom_carb_g if request.custom_macros_enabled else None
    client.custom_fat_g = request.custom_fat_g if request.custom_macros_enabled else None

    client.calorie_target = plan.calorie_target
    client.protein_target_g = plan.protein_target_g
    client.carb_target_g = plan.carb_target_g
    client.fat_target_g = plan.fat_target_g
    client.adjusted_tdee = plan.adjusted_tdee
    client.weekly_weight_change_kg = plan.weekly_weight_change_kg
    client.nutrition_plan_created_at = datetime.utcnow()
    client.nutrition_plan_base_weight_kg = round(base_weight_kg, 2)


def generate_plan_for_client(
    db: Session,
    client: Client,
    request: NutritionPlanRequest,
    coach_id: int | None,
    today: date | None = None,
) -> NutritionPlan:
    missing = validate_client_for_nutrition(client)
    if missing:
        raise InputIncompleteError(missing)

    weight_kg = weight_to_kg(client.current_weight, client.weight_unit)
    goal_kg = weight_to_kg(client.goal_weight, client.weight_unit) if client.goal_weight else None

    # an active training plan adds its session calories per day, so the volume bucket stays out of the baseline
    training = active_training_plan(db, client.id)
    plan = generate_nutrition_plan(
        bmr=client.bmr,
        weight_kg=weight_kg,
        goal_weight_kg=goal_kg,
        gender=client.gender,
        request=request,
        today=today,
        include_volume_addend=training is None,
    )

    if request.custom_macros_enabled:
        reason = "custom_macros"
    elif client.nutrition_plan_created_at is not None:
        reason = "regenerated"
    else:
        reason = "initial"

    _apply_plan(client, plan, request, weight_kg)
    db.commit()
    db.refresh(client)
    log.info("nutrition plan (%s) stored for client %s: %s kcal", reason, client.id, plan.calorie_target)

    plan_history.record_history(
        db,
        client,
        plan,
        inputs=request.model_dump(mode="json"),
        reason=reason,
        base_weight_kg=round(weight_kg, 2),
        goal_weight_kg=round(goal_kg, 2) if goal_kg is not None else None,
        coach_id=coach_id,
    )
    return plan


def current_plan(client: Client) -> NutritionPlan | None:
    if client.calorie_target is None:
        return None
    return NutritionPlan(
        calorie_target=client.calorie_target,
        protein_target_g=client.protein_target_g or 0,
        carb_target_g=client.carb_target_g or 0,
        fat_target_g=client.fat_target_g or 0,
        adjusted_tdee=client.adjusted_tdee or client.calorie_target,
        weekly_weight_change_kg=client.weekly_weight_change_kg or 0.0,
    )


def active_training_plan(db: Session, client_id: int) -> TrainingPlan | None:
    return (
        db.query(TrainingPlan)
        .filter(TrainingPlan.client_id == client_id, TrainingPlan.status == "active")
        .order_by(TrainingPlan.created_at.desc(), TrainingPlan.id.desc())
        .first()
    )


def weekly_targets_for_client(db: Session, client: Client) -> WeeklyNutritionTarget | None:
    """None until the client has a plan; without an active training plan every day is a rest day."""
    plan = current_plan(client)
    if plan is None:
        return None
    training = active_training_plan(db, client.id)
    sessions = [SessionSpec.model_validate(s) for s in training.sessions] if training else []
    return weekly_targets_for_sessions(plan, sessions)
