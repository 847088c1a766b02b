from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from macrocoach.errors import InputIncompleteError
from macrocoach.models import NutritionPlanHistory
from macrocoach.schemas import NutritionPlanRequest
from macrocoach.services import nutrition_plans, plan_history
from macrocoach.services.plan_history import regeneration_status, should_show_regeneration_banner


def _request(**kw) -> NutritionPlanRequest:
    fields = dict(work_activity_level="lightly_active", protein_target_g_per_kg=2.0, diet_type="balanced")
    fields.update(kw)
    return NutritionPlanRequest(**fields)


@pytest.mark.parametrize(
    "current, base, expected",
    [(80.0, 80.0, False), (82.9, 80.0, False), (83.0, 80.0, True), (76.5, 80.0, True), (None, 80.0, False)],
)
def test_regeneration_banner(current, base, expected):
    assert should_show_regeneration_banner(current, base, 3.0) is expected


def test_regeneration_status_reports_change_in_client_units(make_client):
    client = make_client(current_weight=165.0, weight_unit="lbs", nutrition_plan_base_weight_kg=80.0)
    status = regeneration_status(client)
    assert status.show_banner is True
    assert status.change.unit == "lbs"
    assert status.change.is_loss is True
    assert status.change.value == pytest.approx(11.4, abs=0.1)


def test_missing_client_fields_are_enumerated(db, make_client):
    client = make_client(gender=None, weight_unit=None)
    with pytest.raises(InputIncompleteError) as exc:
        nutrition_plans.generate_plan_for_client(db, client, _request(), coach_id=None)
    assert exc.value.missing == [
        "Client must have BMR calculated (use Calculate BMR button)",
        "Client must have TDEE calculated (use Calculate BMR button)",
        "Client must have gender specified in profile",
        "Client must have weight unit set",
    ]
    assert db.query(NutritionPlanHistory).count() == 0


def test_each_generation_writes_one_history_row(db, make_client, coach):
    client = make_client(bmr=1780, tdee=2136, goal_weight=75.0)
    today = date(2026, 3, 1)

    first = nutrition_plans.generate_plan_for_client(
        db, client, _request(goal_deadline=today + timedelta(days=70)), coach_id=coach.id, today=today
    )
    assert client.calorie_target == first.calorie_target
    assert client.nutrition_plan_base_weight_kg == 80.0

    nutrition_plans.generate_plan_for_client(db, client, _request(diet_type="low_carb"), coach_id=coach.id)
    nutrition_plans.generate_plan_for_client(
        db,
        client,
        _request(custom_macros_enabled=True, custom_protein_g=160, custom_carb_g=200, custom_fat_g=70),
        coach_id=coach.id,
    )

    rows = plan_history.list_history(db, client.id)
    assert [r.regeneration_reason for r in rows] == ["custom_macros", "regenerated", "initial"]
    initial = rows[-1]
    assert initial.created_by_coach_id == coach.id
    assert initial.calorie_target == first.calorie_target
    assert initial.inputs["goal_deadline"] == "2026-05-10"
    assert initial.biometric_snapshot["current_weight"] == 80.0
    assert initial.goal_weight_kg == 75.0


def test_history_rows_are_immutable(db, make_client):
    client = make_client(bmr=1780, tdee=2136)
    nutrition_plans.generate_plan_for_client(db, client, _request(), coach_id=None)
    row = db.query(NutritionPlanHistory).one()

    row.calorie_target = 1
    with pytest.raises(ValueError):
        db.commit()
    db.rollback()

    with pytest.raises(ValueError):
        db.delete(row)
        db.commit()
    db.rollback()


def test_history_failure_keeps_the_plan(db, make_client, monkeypatch, caplog):
    client = make_client(bmr=1780, tdee=2136)

    real_commit = db.commit
    calls = {"n": 0}

    def flaky_commit():
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT", {}, Exception("disk full"))
        return real_commit()

    monkeypatch.setattr(db, "commit", flaky_commit)
    plan = nutrition_plans.generate_plan_for_client(db, client, _request(), coach_id=None)

    monkeypatch.setattr(db, "commit", real_commit)
    db.expire_all()
    assert client.calorie_target == plan.calorie_target
    assert db.query(NutritionPlanHistory).count() == 0
    assert "failed to record nutrition plan history" in caplog.text
