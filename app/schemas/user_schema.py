from pydantic import BaseModel, Field, EmailStr
from typing import Optional
from datetime import datetime


class UserBase(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: EmailStr


class UserSignup(UserBase):
    password: str = Field(..., min_length=6)
    # Required only when REQUIRE_EMAIL_OTP is enabled
    otp: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class OTPRequest(BaseModel):
    email: EmailStr


class GoogleLoginRequest(BaseModel):
    credential: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class PasswordResetRequest(BaseModel):
    token: str
    new_password: str = Field(..., min_length=6)


class Credits(BaseModel):
    slots_remaining: int = 0
    total_purchased: int = 0

    class Config:
        from_attributes = True


class User(UserBase):
    id: int
    is_admin: bool = False

    class Config:
        from_attributes = True


class AdminUser(User):
    created_at: Optional[datetime] = None
    credits: Optional[Credits] = None
