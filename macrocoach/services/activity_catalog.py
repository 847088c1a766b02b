# macrocoach/services/activity_catalog.py
"""
Reference catalog of known activities (MET values per intensity, muscle groups,
recovery notes) plus the popularity counter bumped when an entry is selected.
"""

from __future__ import annotations

import difflib
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from macrocoach.db import SessionLocal
from macrocoach.models import ActivityCatalogEntry

log = logging.getLogger(__name__)

FUZZY_CUTOFF = 0.85


def _normalize(name: str) -> str:
    return " ".join((name or "").lower().split())


def find_activity(db: Session, name: str) -> ActivityCatalogEntry | None:
    """Case-insensitive exact match first, then the closest name above FUZZY_CUTOFF."""
    wanted = _normalize(name)
    if not wanted:
        return None

    exact = (
        db.query(ActivityCatalogEntry)
        .filter(func.lower(ActivityCatalogEntry.activity_name) == wanted)
        .first()
    )
    if exact:
        return exact

    entries = db.query(ActivityCatalogEntry).all()
    by_name = {_normalize(e.activity_name): e for e in entries}
    close = difflib.get_close_matches(wanted, list(by_name), n=1, cutoff=FUZZY_CUTOFF)
    if close:
        return by_name[close[0]]
    return None


def search_activities(db: Session, query: str | None = None, limit: int = 10) -> list[ActivityCatalogEntry]:
    q = db.query(ActivityCatalogEntry)
    if query:
        q = q.filter(ActivityCatalogEntry.activity_name.ilike(f"%{query}%"))
    return (
        q.order_by(ActivityCatalogEntry.popularity_score.desc(), ActivityCatalogEntry.activity_name.asc())
        .limit(limit)
        .all()
    )


def increment_popularity(entry_id: int) -> None:
    """Runs detached from the request; failures are logged and dropped."""
    db = SessionLocal()
    try:
        (
            db.query(ActivityCatalogEntry)
            .filter(ActivityCatalogEntry.id == entry_id)
            .update(
                {ActivityCatalogEntry.popularity_score: ActivityCatalogEntry.popularity_score + 1},
                synchronize_session=False,
            )
        )
        db.commit()
    except Exception as e:
        db.rollback()
        log.warning("popularity tracking skipped for activity %s: %s", entry_id, e)
    finally:
        db.close()
