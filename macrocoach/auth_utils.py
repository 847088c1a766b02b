# macrocoach/auth_utils.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt  # PyJWT
from fastapi import HTTPException, status
from passlib.context import CryptContext

from macrocoach.config import settings

# first scheme is the default for new hashes
pwd_context = CryptContext(
    schemes=["bcrypt_sha256", "bcrypt"],
    default="bcrypt_sha256",
    deprecated="auto",
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(plain_password, password_hash)
    except ValueError:
        # unknown or corrupt hash format
        return False


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(sub: str | int, minutes: Optional[int] = None) -> str:
    """Issue a signed JWT with subject = coach id. Adds iat/exp claims."""
    if minutes is None:
        minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    now = _now_utc()
    payload = {
        "sub": str(sub),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
