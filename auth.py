"""Password hashing, bearer tokens and caller resolution"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Request

from config import settings
from errors import Unauthorized

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=10)).decode()


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode(), hashed.encode())
    except ValueError:
        return False


def create_access_token(user_id: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=settings.JWT_EXPIRES_MINUTES),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[str]:
    """Return the user id carried by the token, or None if it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug("Rejected token: %s", e)
        return None
    sub = payload.get("sub")
    return sub if isinstance(sub, str) and sub else None


def resolve_caller(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return decode_access_token(token.strip())


# --------- FastAPI dependencies ---------

def get_caller_id(request: Request) -> Optional[str]:
    return resolve_caller(request)


def require_caller(caller_id: Optional[str] = Depends(get_caller_id)) -> str:
    if not caller_id:
        raise Unauthorized()
    return caller_id
