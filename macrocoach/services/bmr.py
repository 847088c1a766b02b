# macrocoach/services/bmr.py
"""
Basal Metabolic Rate for a client.

- Mifflin-St Jeor when body fat % is unknown, Katch-McArdle when it is known.
- The estimation oracle picks the formula and writes the explanation; the
  numbers always come from the formula itself.
- Any oracle failure falls back to Mifflin-St Jeor.
- Sedentary TDEE = BMR * 1.2
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from macrocoach.errors import EstimationError, InputIncompleteError
from macrocoach.models import Client
from macrocoach.schemas import BiometricProfile, BMRResult
from macrocoach.services.estimation_client import EstimationOracle
from macrocoach.services.units import age_from_dob

log = logging.getLogger(__name__)

DEFAULT_AGE = 30
SEDENTARY_MULTIPLIER = 1.2

MIFFLIN = "Mifflin-St Jeor"
KATCH = "Katch-McArdle"

# Mifflin-St Jeor gender constant; "other" is the average of male and female
_GENDER_OFFSET = {"male": 5.0, "female": -161.0, "other": -78.0}

BMR_SYSTEM_PROMPT = (
    "You are a fitness nutrition expert. Calculate BMR and TDEE accurately and return only valid JSON."
)


class _OracleBMR(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    bmr: float
    tdee: float
    method: str
    explanation: str


def mifflin_st_jeor(weight_kg: float, height_cm: float, age: int, gender: str) -> float:
    return 10.0 * weight_kg + 6.25 * height_cm - 5.0 * age + _GENDER_OFFSET.get(gender, -78.0)


def katch_mcardle(weight_kg: float, body_fat_percentage: float) -> float:
    lean_mass_kg = weight_kg * (1 - body_fat_percentage / 100.0)
    return 370.0 + 21.6 * lean_mass_kg


def _prompt(profile: BiometricProfile, age: int) -> str:
    lines = [
        "Calculate the Basal Metabolic Rate (BMR) for a person with the following characteristics:",
        f"- Weight: {profile.weight_kg:.1f} kg",
        f"- Height: {profile.height_cm:.1f} cm",
        f"- Age: {age} years",
        f"- Gender: {profile.gender}",
    ]
    if profile.body_fat_percentage:
        lines.append(f"- Body Fat Percentage: {profile.body_fat_percentage}%")
    lines += [
        "",
        "Please:",
        "1. Calculate BMR using the most appropriate formula "
        "(Mifflin-St Jeor if no body fat %, Katch-McArdle if body fat % is available)",
        "2. Calculate TDEE assuming sedentary activity level (BMR x 1.2)",
        "3. Provide a brief explanation of which formula you used and why",
        "",
        "Return your response in this exact JSON format:",
        '{"bmr": <number>, "tdee": <number>, "method": "<formula name>", '
        '"explanation": "<brief 1-2 sentence explanation>"}',
    ]
    return "\n".join(lines)


def _fallback(profile: BiometricProfile, age: int) -> BMRResult:
    bmr = mifflin_st_jeor(profile.weight_kg, profile.height_cm, age, profile.gender)
    return BMRResult(
        bmr=round(bmr),
        tdee=round(bmr * SEDENTARY_MULTIPLIER),
        method=f"{MIFFLIN} (fallback)",
        explanation="Calculated using the Mifflin-St Jeor equation, a widely accepted BMR formula.",
    )


def calculate_bmr(profile: BiometricProfile, oracle: EstimationOracle) -> BMRResult:
    age = profile.age if profile.age is not None else DEFAULT_AGE
    try:
        answer = oracle.estimate(_prompt(profile, age), _OracleBMR, system=BMR_SYSTEM_PROMPT, max_tokens=300)
    except EstimationError as e:
        log.warning("BMR oracle unavailable, using Mifflin-St Jeor: %s", e)
        return _fallback(profile, age)

    if "katch" in answer.method.lower() and profile.body_fat_percentage:
        method = KATCH
        bmr = katch_mcardle(profile.weight_kg, profile.body_fat_percentage)
    else:
        method = MIFFLIN
        bmr = mifflin_st_jeor(profile.weight_kg, profile.height_cm, age, profile.gender)

    if abs(answer.bmr - bmr) > 50:
        log.info("oracle BMR %.0f differs from %s %.0f; keeping the formula value", answer.bmr, method, bmr)

    return BMRResult(
        bmr=round(bmr),
        tdee=round(bmr * SEDENTARY_MULTIPLIER),
        method=method,
        explanation=answer.explanation,
    )


def profile_from_client(client: Client) -> BiometricProfile:
    """Build a BiometricProfile, refusing (never guessing) when a required field is missing."""
    missing = []
    if not client.current_weight:
        missing.append("Client must have a current weight recorded")
    if not client.height:
        missing.append("Client must have a height recorded")
    if not client.gender:
        missing.append("Client must have gender specified in profile")
    if missing:
        raise InputIncompleteError(missing, "Cannot calculate BMR: client biometrics incomplete")

    return BiometricProfile(
        weight=client.current_weight,
        weight_unit=client.weight_unit or "lbs",
        height=client.height,
        height_unit=client.height_unit or "in",
        gender=client.gender,
        age=age_from_dob(client.date_of_birth) if client.date_of_birth else None,
        body_fat_percentage=client.body_fat_percentage,
    )


def update_client_bmr(client: Client, oracle: EstimationOracle) -> BMRResult | None:
    """
    Recompute BMR/TDEE on the client row (caller commits). When biometrics are
    incomplete the stored values are cleared and None is returned.
    """
    try:
        profile = profile_from_client(client)
    except InputIncompleteError as e:
        log.info("clearing BMR for client %s: %s", client.id, e.missing)
        client.bmr = None
        client.tdee = None
        return None
    result = calculate_bmr(profile, oracle)
    client.bmr = result.bmr
    client.tdee = result.tdee
    return result
