# macrocoach/routers/activities.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from macrocoach.db import get_db
from macrocoach.deps import get_current_coach
from macrocoach.models import Coach
from macrocoach.schemas import ActivityAnalysis, ActivitySuggestionOut, AnalyzeActivityRequest
from macrocoach.services import activity_catalog
from macrocoach.services.activity_energy import analyze_activity
from macrocoach.services.estimation_client import EstimationOracle, get_oracle

router = APIRouter()


@router.post("/analyze", response_model=ActivityAnalysis)
def analyze(
    body: AnalyzeActivityRequest,
    background_tasks: BackgroundTasks,
    _: Coach = Depends(get_current_coach),
    db: Session = Depends(get_db),
    oracle: EstimationOracle = Depends(get_oracle),
):
    return analyze_activity(
        db,
        body.activity_name,
        body.intensity_level,
        body.duration_minutes,
        body.client_weight_kg,
        oracle,
        schedule=background_tasks.add_task,
    )


@router.get("/suggestions", response_model=List[ActivitySuggestionOut])
def suggestions(
    q: Optional[str] = Query(None, min_length=1, max_length=50),
    limit: int = Query(10, ge=1, le=20),
    _: Coach = Depends(get_current_coach),
    db: Session = Depends(get_db),
):
    return activity_catalog.search_activities(db, q, limit=limit)
