from pydantic import BaseModel
from typing import Optional
from app.schemas import user_schema

class Token(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: user_schema.User

class TokenData(BaseModel):
    sub: Optional[str] = None
    email: Optional[str] = None
    admin: Optional[bool] = None
