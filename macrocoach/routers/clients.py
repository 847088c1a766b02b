# macrocoach/routers/clients.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from macrocoach.db import get_db
from macrocoach.deps import get_client_for_coach, get_current_coach
from macrocoach.models import Client, Coach
from macrocoach.schemas import (
    BMRResult,
    ClientCreate,
    ClientOut,
    ClientUpdate,
    NutritionHistoryOut,
    NutritionPlan,
    NutritionPlanRequest,
    RegenerationStatus,
    WeeklyNutritionTarget,
)
from macrocoach.services import nutrition_plans, plan_history
from macrocoach.services.bmr import calculate_bmr, profile_from_client, update_client_bmr
from macrocoach.services.estimation_client import EstimationOracle, get_oracle

router = APIRouter()

BIOMETRIC_FIELDS = {
    "gender", "date_of_birth", "height", "height_unit", "current_weight", "weight_unit", "body_fat_percentage",
}


@router.post("", response_model=ClientOut, status_code=201)
def create_client(body: ClientCreate, coach: Coach = Depends(get_current_coach), db: Session = Depends(get_db)):
    client = Client(coach_id=coach.id, **body.model_dump())
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@router.get("", response_model=List[ClientOut])
def list_clients(coach: Coach = Depends(get_current_coach), db: Session = Depends(get_db)):
    return db.query(Client).filter(Client.coach_id == coach.id).order_by(Client.name.asc()).all()


@router.get("/{client_id}", response_model=ClientOut)
def get_client(client: Client = Depends(get_client_for_coach)):
    return client


@router.patch("/{client_id}", response_model=ClientOut)
def update_client(
    body: ClientUpdate,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    changes = body.model_dump(exclude_unset=True)
    for k, v in changes.items():
        setattr(client, k, v)
    # keep an existing BMR in step with edited biometrics
    if client.bmr is not None and changes.keys() & BIOMETRIC_FIELDS:
        update_client_bmr(client, oracle)
    db.commit()
    db.refresh(client)
    return client


@router.post("/{client_id}/calculate-bmr", response_model=BMRResult)
def calculate_client_bmr(
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    result = calculate_bmr(profile_from_client(client), oracle)
    client.bmr = result.bmr
    client.tdee = result.tdee
    db.commit()
    return result


# ---------- nutrition ---------------------------------------------------------


@router.post("/{client_id}/nutrition", response_model=NutritionPlan)
def generate_nutrition(
    body: NutritionPlanRequest,
    client: Client = Depends(get_client_for_coach),
    coach: Coach = Depends(get_current_coach),
    db: Session = Depends(get_db),
):
    return nutrition_plans.generate_plan_for_client(db, client, body, coach_id=coach.id)


@router.get("/{client_id}/nutrition", response_model=NutritionPlan)
def get_nutrition(client: Client = Depends(get_client_for_coach)):
    plan = nutrition_plans.current_plan(client)
    if plan is None:
        raise HTTPException(status_code=404, detail="nutrition_plan_not_found")
    return plan


@router.get("/{client_id}/nutrition/weekly", response_model=WeeklyNutritionTarget)
def get_weekly_targets(client: Client = Depends(get_client_for_coach), db: Session = Depends(get_db)):
    weekly = nutrition_plans.weekly_targets_for_client(db, client)
    if weekly is None:
        raise HTTPException(status_code=404, detail="nutrition_plan_not_found")
    return weekly


@router.get("/{client_id}/nutrition/history", response_model=List[NutritionHistoryOut])
def get_nutrition_history(
    limit: int = Query(50, ge=1, le=200),
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
):
    return plan_history.list_history(db, client.id, limit=limit)


@router.get("/{client_id}/nutrition/regeneration", response_model=RegenerationStatus)
def get_regeneration_status(client: Client = Depends(get_client_for_coach)):
    return plan_history.regeneration_status(client)
