from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from ravito.core.config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

_LIFETIMES = {
    ACCESS_TOKEN: lambda: settings.access_token_expire_minutes,
    REFRESH_TOKEN: lambda: settings.refresh_token_expire_minutes,
}

# bcrypt rounds are lowered in tests through BCRYPT_ROUNDS
password_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds)


def hash_password(password: str) -> str:
    return password_context.hash(password)


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password:
        return False
    return password_context.verify(password, hashed_password)


def create_token(user_id: int, token_type: str) -> str:
    """Signed JWT whose subject is the user id"""
    if token_type not in _LIFETIMES:
        raise ValueError(f"Unknown token type: {token_type}")
    issued_at = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "type": token_type,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=_LIFETIMES[token_type]()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_token_pair(user_id: int) -> tuple[str, str]:
    return create_token(user_id, ACCESS_TOKEN), create_token(user_id, REFRESH_TOKEN)


def decode_token(token: str, expected_type: Optional[str] = None) -> Optional[int]:
    """User id carried by a valid token of the expected type, else None"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError:
        return None
    if expected_type is not None and payload.get("type") != expected_type:
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
