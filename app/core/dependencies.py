from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import db_manager
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import settings
from app.core.exceptions import AuthError
from app.models import user_model
from app.schemas import token_schema
from app.repository.user_repository import user_repository

# Tokens are issued by /auth/login and sent as "Authorization: Bearer <token>"
bearer_scheme = HTTPBearer(auto_error=False)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in db_manager.get_db_session():
        yield session

# --- User Authentication and Authorization Dependencies ---

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> user_model.Users:
    """
    Dependency to get the current user from a JWT token.
    Decodes the token, validates the user, and returns the full user object.
    """
    if credentials is None or not credentials.credentials:
        raise AuthError("Authorization header required")

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = token_schema.TokenData(
            sub=payload.get("sub"),
            email=payload.get("email"),
            admin=payload.get("admin"),
        )
    except JWTError:
        raise AuthError("Invalid token")

    if token_data.sub is None:
        raise AuthError("Invalid token claims")

    user = await user_repository.get_user(db, user_id=int(token_data.sub))
    if user is None:
        raise AuthError("Could not validate credentials")

    return user

async def get_current_admin(current_user: user_model.Users = Depends(get_current_user)) -> user_model.Users:
    """
    Dependency to ensure the user is an admin.
    """
    if not current_user.is_admin:
        raise AuthError(
            "Admin access required. Please re-login if you were recently promoted.",
            status_code=403,
        )
    return current_user
