# app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)

# JWT helpers
# - "type" separates access from refresh tokens
# - "role" is informational only; routes reload the user to get the live role
def create_token(
    user_id: int,
    expires_delta: timedelta,
    token_type: str = "access",
    role: Optional[str] = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + expires_delta).timestamp()),
    }
    if role:
        payload["role"] = role
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGO)

def create_token_pair(user_id: int, role: Optional[str] = None) -> tuple[str, str]:
    access = create_token(user_id, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES), "access", role)
    refresh = create_token(user_id, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS), "refresh", role)
    return access, refresh

def decode_token(token: str, token_type: Optional[str] = None) -> dict:
    """
    Decode and validate a JWT. If token_type is given, the 'type' claim must match.
    Raises ValueError on any validation problem.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGO])
    except JWTError as e:
        raise ValueError("Invalid token") from e

    if token_type is not None and payload.get("type") != token_type:
        raise ValueError("Wrong token type")

    if "sub" not in payload:
        raise ValueError("Invalid token payload (missing 'sub')")

    return payload
