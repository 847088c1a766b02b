# macrocoach/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from macrocoach.auth_utils import create_access_token, hash_password, verify_password
from macrocoach.db import get_db
from macrocoach.models import Coach

router = APIRouter()


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    name: str | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/signup", response_model=TokenResponse, summary="Create coach account and return JWT")
def signup(body: SignupRequest, db: Session = Depends(get_db)):
    email = body.email.lower()
    if db.query(Coach).filter(Coach.email == email).first():
        raise HTTPException(status_code=400, detail="email_in_use")

    coach = Coach(email=email, password_hash=hash_password(body.password), name=body.name)
    db.add(coach)
    db.commit()
    db.refresh(coach)
    return TokenResponse(access_token=create_access_token(coach.id))


@router.post("/login", response_model=TokenResponse, summary="Log in and return JWT")
def login(body: LoginRequest, db: Session = Depends(get_db)):
    coach = db.query(Coach).filter(Coach.email == body.email.lower()).first()
    if not coach or not verify_password(body.password, coach.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_credentials")
    return TokenResponse(access_token=create_access_token(coach.id))


@router.post("/logout")
def logout():
    # tokens are stateless; the client drops its copy
    return {"ok": True}
