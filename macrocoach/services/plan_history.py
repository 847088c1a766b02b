# macrocoach/services/plan_history.py
"""
Append-only audit of generated nutrition plans, plus the regeneration banner
predicate (live weight has drifted from the weight the plan was built on).
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from macrocoach.config import settings
from macrocoach.models import Client, NutritionPlanHistory
from macrocoach.schemas import NutritionPlan, RegenerationStatus, WeightChange
from macrocoach.services.units import weight_from_kg, weight_to_kg

log = logging.getLogger(__name__)


def should_show_regeneration_banner(
    current_weight_kg: float | None,
    base_weight_kg: float | None,
    threshold_kg: float | None = None,
) -> bool:
    if current_weight_kg is None or base_weight_kg is None:
        return False
    threshold = settings.REGENERATION_THRESHOLD_KG if threshold_kg is None else threshold_kg
    return abs(current_weight_kg - base_weight_kg) >= threshold


def weight_change(current_weight_kg: float, base_weight_kg: float, unit: str | None) -> WeightChange:
    """Signed change since the plan was built, in the client's display unit."""
    diff_kg = current_weight_kg - base_weight_kg
    unit = unit or "lbs"
    return WeightChange(value=round(weight_from_kg(abs(diff_kg), unit), 1), unit=unit, is_loss=diff_kg < 0)


def regeneration_status(client: Client, threshold_kg: float | None = None) -> RegenerationStatus:
    threshold = settings.REGENERATION_THRESHOLD_KG if threshold_kg is None else threshold_kg
    current_kg = weight_to_kg(client.current_weight, client.weight_unit) if client.current_weight else None
    base_kg = client.nutrition_plan_base_weight_kg

    change = None
    if current_kg is not None and base_kg is not None:
        change = weight_change(current_kg, base_kg, client.weight_unit)

    return RegenerationStatus(
        show_banner=should_show_regeneration_banner(current_kg, base_kg, threshold),
        threshold_kg=threshold,
        current_weight_kg=round(current_kg, 2) if current_kg is not None else None,
        base_weight_kg=base_kg,
        change=change,
    )


def biometric_snapshot(client: Client) -> dict:
    return {
        "current_weight": client.current_weight,
        "goal_weight": client.goal_weight,
        "weight_unit": client.weight_unit,
        "height": client.height,
        "height_unit": client.height_unit,
        "gender": client.gender,
        "date_of_birth": client.date_of_birth.isoformat() if client.date_of_birth else None,
        "body_fat_percentage": client.body_fat_percentage,
    }


def record_history(
    db: Session,
    client: Client,
    plan: NutritionPlan,
    inputs: dict,
    reason: str,
    base_weight_kg: float,
    goal_weight_kg: float | None,
    coach_id: int | None,
) -> NutritionPlanHistory | None:
    """
    Write one history row for a plan that is already committed. A failure here
    is logged and rolled back; the plan itself stays in place.
    """
    row = NutritionPlanHistory(
        client_id=client.id,
        created_by_coach_id=coach_id,
        regeneration_reason=reason,
        inputs=inputs,
        biometric_snapshot=biometric_snapshot(client),
        base_weight_kg=base_weight_kg,
        goal_weight_kg=goal_weight_kg,
        bmr=client.bmr,
        tdee=client.tdee,
        calorie_target=plan.calorie_target,
        protein_target_g=plan.protein_target_g,
        carb_target_g=plan.carb_target_g,
        fat_target_g=plan.fat_target_g,
        adjusted_tdee=plan.adjusted_tdee,
        weekly_weight_change_kg=plan.weekly_weight_change_kg,
        warnings=list(plan.warnings),
    )
    try:
        db.add(row)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("failed to record nutrition plan history for client %s", client.id)
        return None
    db.refresh(row)
    return row


def list_history(db: Session, client_id: int, limit: int = 50) -> list[NutritionPlanHistory]:
    return (
        db.query(NutritionPlanHistory)
        .filter(NutritionPlanHistory.client_id == client_id)
        .order_by(NutritionPlanHistory.created_at.desc(), NutritionPlanHistory.id.desc())
        .limit(limit)
        .all()
    )
