"""
Seed script for MacroCoach (creates tables, a demo coach and one client).
Run with:  python -m scripts.dev_seed
"""

from __future__ import annotations

import sys
from datetime import date

from sqlalchemy.exc import IntegrityError

from macrocoach.auth_utils import hash_password
from macrocoach.db import Base, SessionLocal, engine
from macrocoach.models import Client, Coach

DEMO_EMAIL = "coach@macrocoach.app"
DEMO_PASSWORD = "Demo1234!"


def main() -> int:
    # 1) ensure tables exist
    Base.metadata.create_all(bind=engine)

    # 2) insert demo coach + client if not exists
    db = SessionLocal()
    try:
        coach = db.query(Coach).filter(Coach.email == DEMO_EMAIL).first()
        if coach:
            print(f"ℹ️  Coach already exists: {DEMO_EMAIL} (id={coach.id})")
            return 0

        coach = Coach(email=DEMO_EMAIL, password_hash=hash_password(DEMO_PASSWORD), name="Demo Coach")
        db.add(coach)
        db.flush()
        db.add(
            Client(
                coach_id=coach.id,
                name="Alex Demo",
                gender="male",
                date_of_birth=date(1994, 5, 12),
                height=71.0,
                height_unit="in",
                current_weight=185.0,
                goal_weight=175.0,
                weight_unit="lbs",
                unit_preference="imperial",
            )
        )
        db.commit()
        print(f"✅ Created coach: {DEMO_EMAIL} (id={coach.id})")
        print("   You can login with:")
        print(f"   email:    {DEMO_EMAIL}")
        print(f"   password: {DEMO_PASSWORD}")
        return 0
    except IntegrityError:
        db.rollback()
        print(f"ℹ️  Coach already exists: {DEMO_EMAIL}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
