"""
Seed the activity catalog (MET values per intensity, muscle groups, recovery notes).
Existing rows are updated in place; popularity scores are left untouched.
Run with:  python -m scripts.seed_activities
"""

from __future__ import annotations

import sys

from macrocoach.db import Base, SessionLocal, engine
from macrocoach.models import ActivityCatalogEntry

# name, category, (MET low, moderate, vigorous), muscle groups, recovery notes
CATALOG = [
    ("Running", "cardio", (6.0, 9.8, 12.3), ["legs", "cardio"],
     "High impact on legs; allow a day before heavy squats or deadlifts."),
    ("Cycling", "cardio", (4.0, 6.8, 10.0), ["legs", "cardio"],
     "Quad-dominant fatigue; lower body lifting may feel heavier the next day."),
    ("Swimming", "cardio", (5.0, 7.0, 9.8), ["shoulders", "back", "cardio"], None),
    ("Walking", "cardio", (2.5, 3.5, 5.0), ["legs"], "Low impact; minimal effect on training."),
    ("Hiking", "outdoor", (5.3, 6.0, 7.8), ["legs", "core", "cardio"], None),
    ("Rowing", "cardio", (4.8, 7.0, 8.5), ["back", "legs", "arms", "cardio"],
     "Taxes the posterior chain and grip; pair carefully with pulling days."),
    ("Basketball", "sports", (4.5, 6.5, 8.0), ["legs", "cardio"], None),
    ("Soccer", "sports", (5.0, 7.0, 10.0), ["legs", "cardio"],
     "Sprinting and cutting load the hamstrings; avoid heavy hinge work after."),
    ("Tennis", "sports", (5.0, 7.3, 8.0), ["shoulders", "arms", "legs", "cardio"], None),
    ("Pickleball", "sports", (3.5, 4.5, 6.0), ["shoulders", "legs"], None),
    ("Golf", "sports", (3.0, 3.5, 4.8), ["core", "back"], "Rotational load on the lower back."),
    ("Yoga", "mind_body", (2.0, 2.5, 4.0), ["core", "full_body"], "Generally aids recovery."),
    ("Pilates", "mind_body", (3.0, 3.8, 5.0), ["core"], None),
    ("Rock Climbing", "outdoor", (5.0, 8.0, 11.0), ["back", "arms", "grip"],
     "Heavy grip and lat fatigue; expect weaker pulling the following day."),
    ("Boxing", "combat", (5.5, 7.8, 12.8), ["shoulders", "arms", "core", "cardio"], None),
    ("Brazilian Jiu-Jitsu", "combat", (5.0, 7.0, 10.0), ["full_body", "grip"], None),
    ("Dancing", "recreation", (3.0, 5.0, 7.3), ["legs", "cardio"], None),
    ("Skiing", "outdoor", (4.3, 5.3, 8.0), ["legs", "core"], None),
    ("Jump Rope", "cardio", (8.8, 11.8, 12.3), ["legs", "cardio"], None),
    ("Elliptical", "cardio", (4.6, 5.0, 6.5), ["legs", "cardio"], None),
]


def main() -> int:
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = updated = 0
        for name, category, (low, moderate, vigorous), muscles, notes in CATALOG:
            entry = db.query(ActivityCatalogEntry).filter(ActivityCatalogEntry.activity_name == name).first()
            if entry is None:
                entry = ActivityCatalogEntry(activity_name=name, popularity_score=0)
                db.add(entry)
                created += 1
            else:
                updated += 1
            entry.category = category
            entry.met_low = low
            entry.met_moderate = moderate
            entry.met_vigorous = vigorous
            entry.muscle_groups = muscles
            entry.recovery_notes = notes
        db.commit()
        print(f"✅ Activity catalog seeded: {created} created, {updated} updated")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
