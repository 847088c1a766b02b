# macrocoach/deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from macrocoach.auth_utils import decode_token
from macrocoach.db import get_db
from macrocoach.models import Client, Coach

bearer_scheme = HTTPBearer(auto_error=False)


# --- Auth dependency: current coach from Bearer token -------------------------
def get_current_coach(
    cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Coach:
    if not cred or cred.scheme.lower() != "bearer" or not cred.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    payload = decode_token(cred.credentials)
    sub = str(payload.get("sub") or "")
    if not sub.isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    coach = db.query(Coach).filter(Coach.id == int(sub)).first()
    if not coach:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Coach not found")
    return coach


# --- Client scoped to the current coach ---------------------------------------
def get_client_for_coach(
    client_id: int,
    coach: Coach = Depends(get_current_coach),
    db: Session = Depends(get_db),
) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        raise HTTPException(status_code=404, detail="client_not_found")
    if client.coach_id != coach.id:
        raise HTTPException(status_code=403, detail="forbidden")
    return client
