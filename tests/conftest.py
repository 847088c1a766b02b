from __future__ import annotations

from datetime import date

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from macrocoach.db import Base, get_db
from macrocoach.deps import get_current_coach
from macrocoach.errors import EstimationError
from macrocoach.main import create_app
from macrocoach.models import ActivityCatalogEntry, Client, Coach
from macrocoach.services import activity_catalog
from macrocoach.services.estimation_client import get_oracle


class FakeOracle:
    """Scripted estimation oracle: answers (dicts) or exceptions are consumed in order."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.calls = []

    def queue(self, *answers) -> "FakeOracle":
        self.answers.extend(answers)
        return self

    def estimate(self, prompt, schema, *, system, max_tokens=500):
        self.calls.append({"prompt": prompt, "schema": schema.__name__, "system": system})
        if not self.answers:
            raise EstimationError("no scripted answer")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        try:
            return schema.model_validate(answer)
        except ValidationError as e:
            raise EstimationError("scripted answer outside contract") from e


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch):
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    # background popularity updates open their own session
    monkeypatch.setattr(activity_catalog, "SessionLocal", factory)
    return factory


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def coach(db) -> Coach:
    c = Coach(email="coach@example.com", password_hash="x", name="Coach")
    db.add(c)
    db.commit()
    db.refresh(c)
    return c


@pytest.fixture
def make_client(db, coach):
    def _mk(**overrides) -> Client:
        fields = dict(
            coach_id=coach.id,
            name="Sam",
            gender="male",
            date_of_birth=date(1995, 1, 1),
            height=180.0,
            height_unit="cm",
            current_weight=80.0,
            goal_weight=None,
            weight_unit="kg",
            unit_preference="metric",
        )
        fields.update(overrides)
        c = Client(**fields)
        db.add(c)
        db.commit()
        db.refresh(c)
        return c

    return _mk


@pytest.fixture
def catalog(db):
    entries = [
        ActivityCatalogEntry(
            activity_name="Running",
            category="cardio",
            met_low=6.0,
            met_moderate=9.8,
            met_vigorous=12.3,
            muscle_groups=["legs", "cardio"],
            recovery_notes="High impact on legs.",
            popularity_score=5,
        ),
        ActivityCatalogEntry(
            activity_name="Rock Climbing",
            category="outdoor",
            met_low=5.0,
            met_moderate=8.0,
            met_vigorous=11.0,
            muscle_groups=["back", "arms", "grip"],
            recovery_notes=None,
            popularity_score=2,
        ),
        ActivityCatalogEntry(
            activity_name="Yoga",
            category="mind_body",
            met_low=2.0,
            met_moderate=2.5,
            met_vigorous=4.0,
            muscle_groups=["core"],
            recovery_notes=None,
            popularity_score=9,
        ),
    ]
    db.add_all(entries)
    db.commit()
    return {e.activity_name: e for e in entries}


@pytest.fixture
def api(session_factory, coach, oracle):
    app = create_app()

    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    coach_id = coach.id

    def _current_coach(db: Session = Depends(get_db)) -> Coach:
        return db.query(Coach).filter(Coach.id == coach_id).first()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_coach] = _current_coach
    app.dependency_overrides[get_oracle] = lambda: oracle
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
