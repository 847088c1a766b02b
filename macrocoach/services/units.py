# macrocoach/services/units.py
from __future__ import annotations

from datetime import date

LBS_PER_KG = 2.205
CM_PER_INCH = 2.54


def lbs_to_kg(lbs: float) -> float:
    return lbs / LBS_PER_KG


def kg_to_lbs(kg: float) -> float:
    return kg * LBS_PER_KG


def weight_to_kg(weight: float, unit: str | None) -> float:
    """Client weights default to lbs when no unit was ever recorded."""
    return lbs_to_kg(weight) if (unit or "lbs") == "lbs" else weight


def weight_from_kg(weight_kg: float, unit: str) -> float:
    return kg_to_lbs(weight_kg) if unit == "lbs" else weight_kg


def height_to_cm(height: float, unit: str | None) -> float:
    return height * CM_PER_INCH if unit == "in" else height


def age_from_dob(dob: date, today: date | None = None) -> int:
    today = today or date.today()
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))
