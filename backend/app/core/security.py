from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from .config import settings

def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a Supabase-style access token (local development and tests)"""
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": user_id,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
    }
    return jwt.encode(to_encode, settings.SUPABASE_JWT_SECRET, algorithm=settings.ALGORITHM)

def verify_token(token: str) -> Optional[Dict[str, Any]]:
    if not settings.SUPABASE_JWT_SECRET:
        return None
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE
        )
    except JWTError:
        return None

def verify_access_token(token: str) -> Optional[str]:
    """Verify a Supabase access token and return the user id (sub claim)"""
    payload = verify_token(token)
    if not payload:
        return None
    user_id = payload.get("sub")
    return user_id if isinstance(user_id, str) and user_id else None
