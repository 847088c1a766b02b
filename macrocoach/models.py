# macrocoach/models.py
"""
SQLAlchemy models: Coach, Client, ActivityCatalogEntry, TrainingPlan,
TrainingSession, TrainingExercise, NutritionPlanHistory.
Compatible with SQLAlchemy 2.x Annotated Declarative (Mapped[] + mapped_column()).
"""

from __future__ import annotations

from datetime import datetime, date
from typing import Any, Optional, List

from sqlalchemy import (
    Integer, String, Float, Date, DateTime, ForeignKey,
    Index, Text, Boolean, JSON, event
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from macrocoach.db import Base


class Coach(Base):
    __tablename__ = "coaches"
    __allow_unmapped__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    clients: Mapped[List["Client"]] = relationship(
        "Client", back_populates="coach", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Coach id={self.id} email={self.email!r}>"


class Client(Base):
    __tablename__ = "clients"
    __allow_unmapped__ = True
    __table_args__ = (
        Index("ix_clients_coach", "coach_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    coach_id: Mapped[int] = mapped_column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)

    # biometrics, stored in the client's own units
    gender: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)  # male|female|other
    date_of_birth: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    height: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    height_unit: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)  # cm|in
    current_weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    goal_weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    weight_unit: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)  # kg|lbs
    body_fat_percentage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    unit_preference: Mapped[str] = mapped_column(String(16), nullable=False, default="imperial")

    bmr: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tdee: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # nutrition settings used for the current plan
    work_activity_level: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    training_volume_hours: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    protein_target_g_per_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    diet_type: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    goal_deadline: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    custom_macros_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    custom_protein_g: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    custom_carb_g: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    custom_fat_g: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # current plan
    calorie_target: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    protein_target_g: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    carb_target_g: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fat_target_g: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    adjusted_tdee: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weekly_weight_change_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    nutrition_plan_created_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    nutrition_plan_base_weight_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    coach: Mapped[Coach] = relationship("Coach", back_populates="clients")
    training_plans: Mapped[List["TrainingPlan"]] = relationship(
        "TrainingPlan", back_populates="client", cascade="all, delete-orphan", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name!r}>"


class ActivityCatalogEntry(Base):
    __tablename__ = "activity_catalog"
    __allow_unmapped__ = True
    __table_args__ = (
        Index("ix_activity_catalog_popularity", "popularity_score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    activity_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="other")
    met_low: Mapped[float] = mapped_column(Float, nullable=False)
    met_moderate: Mapped[float] = mapped_column(Float, nullable=False)
    met_vigorous: Mapped[float] = mapped_column(Float, nullable=False)
    muscle_groups: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    recovery_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    popularity_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<ActivityCatalogEntry id={self.id} name={self.activity_name!r}>"


class TrainingPlan(Base):
    __tablename__ = "training_plans"
    __allow_unmapped__ = True
    __table_args__ = (
        Index("ix_training_plan_client_status", "client_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    coach_id: Mapped[int] = mapped_column(Integer, ForeignKey("coaches.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")  # active|archived|draft

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    client: Mapped[Client] = relationship("Client", back_populates="training_plans")
    sessions: Mapped[List["TrainingSession"]] = relationship(
        "TrainingSession", back_populates="plan", cascade="all, delete-orphan", passive_deletes=True,
        order_by="TrainingSession.order_index"
    )


class TrainingSession(Base):
    __tablename__ = "training_sessions"
    __allow_unmapped__ = True
    __table_args__ = (
        Index("ix_training_session_plan", "plan_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    plan_id: Mapped[int] = mapped_column(Integer, ForeignKey("training_plans.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    day_of_week: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)  # monday..sunday
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    focus: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estimated_duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    session_type: Mapped[str] = mapped_column(String(20), nullable=False, default="training")  # training|external_activity
    activity_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    estimated_calories: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    calories_calculated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    plan: Mapped[TrainingPlan] = relationship("TrainingPlan", back_populates="sessions")
    exercises: Mapped[List["TrainingExercise"]] = relationship(
        "TrainingExercise", back_populates="session", cascade="all, delete-orphan", passive_deletes=True,
        order_by="TrainingExercise.order_index"
    )


class TrainingExercise(Base):
    __tablename__ = "training_exercises"
    __allow_unmapped__ = True
    __table_args__ = (
        Index("ix_training_exercise_session", "session_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_id: Mapped[int] = mapped_column(Integer, ForeignKey("training_sessions.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sets: Mapped[int] = mapped_column(Integer, nullable=False)
    reps_min: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reps_max: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reps_target: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    rpe_target: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rest_seconds: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_warmup: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    session: Mapped[TrainingSession] = relationship("TrainingSession", back_populates="exercises")


class NutritionPlanHistory(Base):
    __tablename__ = "nutrition_plan_history"
    __allow_unmapped__ = True
    __table_args__ = (
        Index("ix_nutrition_history_client_created", "client_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    client_id: Mapped[int] = mapped_column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    created_by_coach_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    regeneration_reason: Mapped[str] = mapped_column(String(16), nullable=False)  # initial|regenerated|custom_macros

    # snapshot of what produced the plan
    inputs: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    biometric_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    base_weight_kg: Mapped[float] = mapped_column(Float, nullable=False)
    goal_weight_kg: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    bmr: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tdee: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # resulting plan
    calorie_target: Mapped[int] = mapped_column(Integer, nullable=False)
    protein_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    carb_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    fat_target_g: Mapped[int] = mapped_column(Integer, nullable=False)
    adjusted_tdee: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weekly_weight_change_kg: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    warnings: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


@event.listens_for(NutritionPlanHistory, "before_update")
def _history_is_append_only(mapper, connection, target) -> None:
    raise ValueError("nutrition_plan_history rows are immutable")


@event.listens_for(NutritionPlanHistory, "before_delete")
def _history_is_never_deleted(mapper, connection, target) -> None:
    raise ValueError("nutrition_plan_history rows are immutable")
