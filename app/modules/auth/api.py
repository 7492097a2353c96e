from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_db, get_current_user
from app.models import user_model
from app.modules.auth import service as user_service
from app.schemas import user_schema, token_schema
from app.utils import auth

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)


def _token_response(user: user_model.Users) -> dict:
    token_data = auth.create_access_token(user)
    return {
        "token": token_data["token"],
        "token_type": "bearer",
        "expires_in": token_data["expires_in"],
        "user": user,
    }


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: user_schema.UserSignup,
    db: AsyncSession = Depends(get_db),
):
    await user_service.register_user(db, user_data=user_data)
    return {"message": "User created successfully"}


@router.post("/otp")
async def send_signup_otp(
    payload: user_schema.OTPRequest,
    db: AsyncSession = Depends(get_db),
):
    return await user_service.request_otp(db, email=payload.email)


@router.post("/login", response_model=token_schema.Token)
async def login(
    data: user_schema.UserLogin,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticates a user by email and password and returns a JWT token.
    """
    user = await user_service.authenticate_user(db, email=data.email, password=data.password)
    return _token_response(user)


@router.post("/google", response_model=token_schema.Token)
async def google_login(
    payload: user_schema.GoogleLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.authenticate_google_user(db, credential=payload.credential)
    return _token_response(user)


@router.get("/me", response_model=user_schema.User)
async def read_users_me(current_user: user_model.Users = Depends(get_current_user)):
    """
    Retrieves the current user's profile.
    """
    return current_user


@router.post("/forgot-password")
async def forgot_password(
    payload: user_schema.ForgotPasswordRequest,
    db: AsyncSession = Depends(get_db),
):
    return await user_service.request_password_reset(db, email=payload.email)


@router.post("/reset-password")
async def reset_password(
    payload: user_schema.PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
):
    return await user_service.reset_password(db, token=payload.token, new_password=payload.new_password)
