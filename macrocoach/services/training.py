# macrocoach/services/training.py
"""
Training plan editing. Every exercise mutation re-estimates and stores the
session's calories before it is committed, so readers never see a calorie
value computed from an older exercise list.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

from sqlalchemy.orm import Session

from macrocoach.errors import InputIncompleteError, NotFoundError
from macrocoach.models import Client, TrainingExercise, TrainingPlan, TrainingSession
from macrocoach.schemas import (
    ExerciseCreate,
    ExerciseUpdate,
    ExternalActivityCreate,
    ExternalActivityUpdate,
    SessionCreate,
    SessionUpdate,
    TrainingPlanCreate,
)
from macrocoach.services.activity_energy import analyze_activity, to_metadata
from macrocoach.services.estimation_client import EstimationOracle
from macrocoach.services.session_calories import recalculate_session_calories
from macrocoach.services.units import weight_to_kg

log = logging.getLogger(__name__)


def client_weight_kg(client: Client) -> float | None:
    if not client.current_weight:
        return None
    return weight_to_kg(client.current_weight, client.weight_unit)


def _reindex(items: list) -> None:
    for i, item in enumerate(items):
        item.order_index = i


# ---------- plans -------------------------------------------------------------


def create_plan(db: Session, client: Client, coach_id: int, body: TrainingPlanCreate) -> TrainingPlan:
    """New plans become the active one; any previously active plan is archived."""
    (
        db.query(TrainingPlan)
        .filter(TrainingPlan.client_id == client.id, TrainingPlan.status == "active")
        .update({TrainingPlan.status: "archived"}, synchronize_session=False)
    )
    plan = TrainingPlan(client_id=client.id, coach_id=coach_id, name=body.name, status="active")
    db.add(plan)
    db.commit()
    db.refresh(plan)
    return plan


def get_plan(db: Session, client_id: int, plan_id: int) -> TrainingPlan:
    plan = (
        db.query(TrainingPlan)
        .filter(TrainingPlan.id == plan_id, TrainingPlan.client_id == client_id)
        .first()
    )
    if not plan:
        raise NotFoundError("Training plan")
    return plan


def get_session(db: Session, plan: TrainingPlan, session_id: int) -> TrainingSession:
    s = (
        db.query(TrainingSession)
        .filter(TrainingSession.id == session_id, TrainingSession.plan_id == plan.id)
        .first()
    )
    if not s:
        raise NotFoundError("Session")
    return s


def get_exercise(db: Session, session: TrainingSession, exercise_id: int) -> TrainingExercise:
    ex = (
        db.query(TrainingExercise)
        .filter(TrainingExercise.id == exercise_id, TrainingExercise.session_id == session.id)
        .first()
    )
    if not ex:
        raise NotFoundError("Exercise")
    return ex


# ---------- sessions ----------------------------------------------------------


def add_session(db: Session, plan: TrainingPlan, body: SessionCreate) -> TrainingSession:
    s = TrainingSession(
        plan_id=plan.id,
        order_index=len(plan.sessions),
        session_type="training",
        **body.model_dump(),
    )
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


def update_session(db: Session, session: TrainingSession, body: SessionUpdate) -> TrainingSession:
    for k, v in body.model_dump(exclude_unset=True).items():
        setattr(session, k, v)
    db.commit()
    db.refresh(session)
    return session


def delete_session(db: Session, plan: TrainingPlan, session: TrainingSession) -> None:
    db.delete(session)
    db.flush()
    db.refresh(plan)
    _reindex(plan.sessions)
    db.commit()


# ---------- exercises ---------------------------------------------------------


def add_exercise(
    db: Session,
    client: Client,
    session: TrainingSession,
    body: ExerciseCreate,
    oracle: EstimationOracle,
) -> TrainingExercise:
    ex = TrainingExercise(session_id=session.id, order_index=len(session.exercises), **body.model_dump())
    db.add(ex)
    recalculate_session_calories(db, session, client_weight_kg(client), oracle)
    db.commit()
    db.refresh(ex)
    return ex


def update_exercise(
    db: Session,
    client: Client,
    session: TrainingSession,
    exercise: TrainingExercise,
    body: ExerciseUpdate,
    oracle: EstimationOracle,
) -> TrainingExercise:
    for k, v in body.model_dump(exclude_unset=True).items():
        setattr(exercise, k, v)
    recalculate_session_calories(db, session, client_weight_kg(client), oracle)
    db.commit()
    db.refresh(exercise)
    return exercise


def delete_exercise(
    db: Session,
    client: Client,
    session: TrainingSession,
    exercise: TrainingExercise,
    oracle: EstimationOracle,
) -> TrainingSession:
    db.delete(exercise)
    db.flush()
    db.refresh(session)
    _reindex(session.exercises)
    recalculate_session_calories(db, session, client_weight_kg(client), oracle)
    db.commit()
    db.refresh(session)
    return session


# ---------- external activities -----------------------------------------------


def _require_weight(client: Client) -> float:
    weight_kg = client_weight_kg(client)
    if weight_kg is None:
        raise InputIncompleteError(
            ["Client must have a current weight recorded"],
            "Cannot estimate activity calories without client weight",
        )
    return weight_kg


def _analyze_into(
    db: Session,
    session: TrainingSession,
    client: Client,
    activity_name: str,
    intensity: str,
    duration_minutes: int,
    oracle: EstimationOracle,
    schedule: Callable[..., Any] | None,
) -> None:
    analysis = analyze_activity(
        db, activity_name, intensity, duration_minutes, _require_weight(client), oracle, schedule=schedule
    )
    session.name = activity_name
    session.estimated_duration_minutes = duration_minutes
    session.activity_metadata = to_metadata(analysis, activity_name, intensity, duration_minutes).model_dump()
    session.estimated_calories = analysis.estimated_calories
    session.calories_calculated_at = datetime.utcnow()


def add_external_activity(
    db: Session,
    client: Client,
    plan: TrainingPlan,
    body: ExternalActivityCreate,
    oracle: EstimationOracle,
    schedule: Callable[..., Any] | None = None,
) -> TrainingSession:
    s = TrainingSession(
        plan_id=plan.id,
        name=body.activity_name,
        day_of_week=body.day_of_week,
        order_index=len(plan.sessions),
        notes=body.notes,
        session_type="external_activity",
    )
    _analyze_into(db, s, client, body.activity_name, body.intensity_level, body.duration_minutes, oracle, schedule)
    db.add(s)
    db.commit()
    db.refresh(s)
    log.info("external activity %r added to plan %s: %s kcal", s.name, plan.id, s.estimated_calories)
    return s


def update_external_activity(
    db: Session,
    client: Client,
    session: TrainingSession,
    body: ExternalActivityUpdate,
    oracle: EstimationOracle,
    schedule: Callable[..., Any] | None = None,
) -> TrainingSession:
    if session.session_type != "external_activity":
        raise NotFoundError("External activity")

    changes = body.model_dump(exclude_unset=True)
    meta = session.activity_metadata or {}
    if changes.keys() & {"activity_name", "intensity_level", "duration_minutes"}:
        _analyze_into(
            db,
            session,
            client,
            changes.get("activity_name") or meta.get("activity_name") or session.name,
            changes.get("intensity_level") or meta.get("intensity_level") or "moderate",
            changes.get("duration_minutes") or meta.get("duration_minutes") or session.estimated_duration_minutes,
            oracle,
            schedule,
        )
    if "day_of_week" in changes:
        session.day_of_week = changes["day_of_week"]
    if "notes" in changes:
        session.notes = changes["notes"]

    db.commit()
    db.refresh(session)
    return session


def delete_external_activity(db: Session, plan: TrainingPlan, session: TrainingSession) -> None:
    if session.session_type != "external_activity":
        raise NotFoundError("External activity")
    delete_session(db, plan, session)
