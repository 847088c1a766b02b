from __future__ import annotations

import pytest

from macrocoach.errors import EstimationError, InputIncompleteError
from macrocoach.schemas import BiometricProfile
from macrocoach.services.bmr import (
    calculate_bmr,
    katch_mcardle,
    mifflin_st_jeor,
    profile_from_client,
    update_client_bmr,
)
from tests.conftest import FakeOracle


def _profile(**kw) -> BiometricProfile:
    fields = dict(weight=80, weight_unit="kg", height=180, height_unit="cm", gender="male", age=30)
    fields.update(kw)
    return BiometricProfile(**fields)


def test_mifflin_male_scenario():
    assert mifflin_st_jeor(80, 180, 30, "male") == 1780


@pytest.mark.parametrize(
    "gender, expected",
    [("male", 1780), ("female", 1614), ("other", 1697)],
)
def test_fallback_matches_formula_for_every_gender(gender, expected):
    result = calculate_bmr(_profile(gender=gender), FakeOracle(EstimationError("timeout")))
    assert result.bmr == expected
    assert result.tdee == round(expected * 1.2)
    assert result.method == "Mifflin-St Jeor (fallback)"


def test_oracle_explains_but_formula_supplies_numbers():
    oracle = FakeOracle({"bmr": 2500, "tdee": 3000, "method": "Mifflin-St Jeor", "explanation": "No body fat given."})
    result = calculate_bmr(_profile(), oracle)
    assert result.bmr == 1780
    assert result.tdee == 2136
    assert result.method == "Mifflin-St Jeor"
    assert result.explanation == "No body fat given."


def test_katch_mcardle_used_only_with_body_fat():
    oracle = FakeOracle(
        {"bmr": 1800, "tdee": 2160, "method": "Katch-McArdle", "explanation": "Body fat available."},
        {"bmr": 1800, "tdee": 2160, "method": "Katch-McArdle", "explanation": "Body fat available."},
    )
    with_bf = calculate_bmr(_profile(body_fat_percentage=20), oracle)
    assert with_bf.method == "Katch-McArdle"
    assert with_bf.bmr == round(katch_mcardle(80, 20))  # 370 + 21.6 * 64

    without_bf = calculate_bmr(_profile(), oracle)
    assert without_bf.method == "Mifflin-St Jeor"
    assert without_bf.bmr == 1780


def test_malformed_oracle_answer_falls_back():
    result = calculate_bmr(_profile(), FakeOracle({"bmr": "lots"}))
    assert result.bmr == 1780
    assert result.method.endswith("(fallback)")


def test_unknown_age_defaults_to_thirty():
    result = calculate_bmr(_profile(age=None), FakeOracle())
    assert result.bmr == 1780


def test_imperial_units_are_converted():
    profile = _profile(weight=176.4, weight_unit="lbs", height=70.87, height_unit="in")
    result = calculate_bmr(profile, FakeOracle())
    assert abs(result.bmr - 1780) <= 1


def test_profile_refuses_missing_fields(make_client):
    client = make_client(current_weight=None, height=None, gender=None)
    with pytest.raises(InputIncompleteError) as exc:
        profile_from_client(client)
    assert len(exc.value.missing) == 3


def test_update_client_bmr_sets_fields(make_client):
    client = make_client(date_of_birth=None)
    result = update_client_bmr(client, FakeOracle())
    assert result is not None
    assert client.bmr == 1780
    assert client.tdee == 2136


def test_update_client_bmr_clears_stale_values_when_incomplete(make_client):
    client = make_client(gender=None, bmr=1780, tdee=2136)
    assert update_client_bmr(client, FakeOracle()) is None
    assert client.bmr is None
    assert client.tdee is None
