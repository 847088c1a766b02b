# macrocoach/routers/training.py
"""Mounted under /clients/{client_id}/training."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from macrocoach.db import get_db
from macrocoach.deps import get_client_for_coach, get_current_coach
from macrocoach.models import Client, Coach
from macrocoach.schemas import (
    ExerciseCreate,
    ExerciseUpdate,
    ExternalActivityCreate,
    ExternalActivityUpdate,
    SessionCreate,
    SessionOut,
    SessionUpdate,
    TrainingPlanCreate,
    TrainingPlanOut,
)
from macrocoach.services import training
from macrocoach.services.estimation_client import EstimationOracle, get_oracle
from macrocoach.services.nutrition_plans import active_training_plan

router = APIRouter()


@router.post("/plans", response_model=TrainingPlanOut, status_code=201)
def create_plan(
    body: TrainingPlanCreate,
    client: Client = Depends(get_client_for_coach),
    coach: Coach = Depends(get_current_coach),
    db: Session = Depends(get_db),
):
    return training.create_plan(db, client, coach.id, body)


@router.get("/plans/active", response_model=TrainingPlanOut)
def get_active_plan(client: Client = Depends(get_client_for_coach), db: Session = Depends(get_db)):
    plan = active_training_plan(db, client.id)
    if not plan:
        raise HTTPException(status_code=404, detail="training_plan_not_found")
    return plan


@router.get("/plans/{plan_id}", response_model=TrainingPlanOut)
def get_plan(plan_id: int, client: Client = Depends(get_client_for_coach), db: Session = Depends(get_db)):
    return training.get_plan(db, client.id, plan_id)


# ---------- sessions ----------------------------------------------------------


@router.post("/plans/{plan_id}/sessions", response_model=SessionOut, status_code=201)
def add_session(
    plan_id: int,
    body: SessionCreate,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
):
    plan = training.get_plan(db, client.id, plan_id)
    return training.add_session(db, plan, body)


@router.patch("/plans/{plan_id}/sessions/{session_id}", response_model=SessionOut)
def update_session(
    plan_id: int,
    session_id: int,
    body: SessionUpdate,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
):
    plan = training.get_plan(db, client.id, plan_id)
    return training.update_session(db, training.get_session(db, plan, session_id), body)


@router.delete("/plans/{plan_id}/sessions/{session_id}", status_code=204)
def delete_session(
    plan_id: int,
    session_id: int,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
):
    plan = training.get_plan(db, client.id, plan_id)
    training.delete_session(db, plan, training.get_session(db, plan, session_id))


# ---------- exercises (each change re-estimates session calories) ---------------


@router.post("/plans/{plan_id}/sessions/{session_id}/exercises", response_model=SessionOut, status_code=201)
def add_exercise(
    plan_id: int,
    session_id: int,
    body: ExerciseCreate,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    plan = training.get_plan(db, client.id, plan_id)
    session = training.get_session(db, plan, session_id)
    training.add_exercise(db, client, session, body, oracle)
    db.refresh(session)
    return session


@router.patch("/plans/{plan_id}/sessions/{session_id}/exercises/{exercise_id}", response_model=SessionOut)
def update_exercise(
    plan_id: int,
    session_id: int,
    exercise_id: int,
    body: ExerciseUpdate,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    plan = training.get_plan(db, client.id, plan_id)
    session = training.get_session(db, plan, session_id)
    exercise = training.get_exercise(db, session, exercise_id)
    training.update_exercise(db, client, session, exercise, body, oracle)
    db.refresh(session)
    return session


@router.delete("/plans/{plan_id}/sessions/{session_id}/exercises/{exercise_id}", response_model=SessionOut)
def delete_exercise(
    plan_id: int,
    session_id: int,
    exercise_id: int,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    plan = training.get_plan(db, client.id, plan_id)
    session = training.get_session(db, plan, session_id)
    exercise = training.get_exercise(db, session, exercise_id)
    return training.delete_exercise(db, client, session, exercise, oracle)


# ---------- external activities -----------------------------------------------


@router.post("/plans/{plan_id}/external-activities", response_model=SessionOut, status_code=201)
def add_external_activity(
    plan_id: int,
    body: ExternalActivityCreate,
    background_tasks: BackgroundTasks,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    plan = training.get_plan(db, client.id, plan_id)
    return training.add_external_activity(db, client, plan, body, oracle, schedule=background_tasks.add_task)


@router.patch("/plans/{plan_id}/external-activities/{session_id}", response_model=SessionOut)
def update_external_activity(
    plan_id: int,
    session_id: int,
    body: ExternalActivityUpdate,
    background_tasks: BackgroundTasks,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    plan = training.get_plan(db, client.id, plan_id)
    session = training.get_session(db, plan, session_id)
    return training.update_external_activity(db, client, session, body, oracle, schedule=background_tasks.add_task)


@router.delete("/plans/{plan_id}/external-activities/{session_id}", status_code=204)
def delete_external_activity(
    plan_id: int,
    session_id: int,
    client: Client = Depends(get_client_for_coach),
    db: Session = Depends(get_db),
):
    plan = training.get_plan(db, client.id, plan_id)
    training.delete_external_activity(db, plan, training.get_session(db, plan, session_id))
