from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import jwt

from app.core.config import settings
from app.models.user_model import Users

# --- JWT Token Management ---

def create_access_token(user: Users, expires_delta: Optional[timedelta] = None) -> Dict[str, Any]:
    """Creates a signed JWT for the user and returns it along with its lifetime in seconds."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "admin": bool(user.is_admin),
        "exp": expire,
    }
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return {"token": encoded_jwt, "expires_in": int(expires_delta.total_seconds())}
