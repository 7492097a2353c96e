from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from typing import Optional
from datetime import datetime, timedelta
import logging

import httpx

from app.core.config import settings
from app.core.exceptions import AuthError, ValidationError
from app.models import user_model
from app.models.verification_model import PasswordResetToken, VerificationCode
from app.repository.user_repository import user_repository
from app.schemas import user_schema
from app.utils.email_sender import send_brevo_email
from app.utils.generators import generate_otp_code, generate_reset_token
from app.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = "If an account with that email exists, a password reset link has been sent."


def _is_admin_email(email: str) -> bool:
    return bool(settings.ADMIN_EMAIL) and email.lower() == settings.ADMIN_EMAIL.lower()


async def _consume_otp(db: AsyncSession, email: str, code: Optional[str]) -> None:
    if not code:
        raise ValidationError("Verification code is required")

    result = await db.execute(
        select(VerificationCode)
        .filter(
            VerificationCode.email == email.lower(),
            VerificationCode.code == code.strip(),
            VerificationCode.expires_at > datetime.utcnow(),
        )
        .limit(1)
    )
    if result.scalar_one_or_none() is None:
        raise ValidationError("Invalid or expired verification code")

    await db.execute(delete(VerificationCode).where(VerificationCode.email == email.lower()))


async def request_otp(db: AsyncSession, email: str) -> dict:
    """
    Emails a 6-digit signup verification code. Requesting a new code
    invalidates any earlier one for the same address.
    """
    email = email.lower()
    code = generate_otp_code()
    await db.execute(delete(VerificationCode).where(VerificationCode.email == email))
    db.add(
        VerificationCode(
            email=email,
            code=code,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        )
    )
    await db.commit()

    html_content = f"""
    <html>
    <body>
        <p>Your {settings.APP_NAME} verification code is:</p>
        <h2 style="letter-spacing: 4px;">{code}</h2>
        <p>This code expires in {settings.OTP_EXPIRE_MINUTES} minutes.</p>
    </body>
    </html>
    """
    await send_brevo_email(
        to_email=email,
        subject=f"Your {settings.APP_NAME} verification code",
        html_content=html_content,
    )
    return {"message": "Verification code sent"}


async def register_user(db: AsyncSession, user_data: user_schema.UserSignup) -> user_model.Users:
    existing = await user_repository.get_user_by_email(db, email=user_data.email)
    if existing:
        raise ValidationError("Email is already registered")

    if settings.REQUIRE_EMAIL_OTP:
        await _consume_otp(db, user_data.email, user_data.otp)

    db_user = user_model.Users(
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        email=user_data.email.lower(),
        password=get_password_hash(user_data.password),
        is_admin=_is_admin_email(user_data.email),
    )
    try:
        user = await user_repository.create_user(db, user=db_user)
    except IntegrityError:
        await db.rollback()
        raise ValidationError("Failed to create user (email might be taken)")

    logger.info(f"User {user.id} registered{' as admin' if user.is_admin else ''}")
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> user_model.Users:
    """
    Returns the user for valid credentials. Accounts registered under
    ADMIN_EMAIL are promoted here, so a fresh token carries the admin claim.
    """
    user = await user_repository.get_user_by_email(db, email=email)
    if not user or not verify_password(password, user.password):
        raise ValidationError("Invalid email or password")

    if not user.is_admin and _is_admin_email(user.email):
        user.is_admin = True
        await db.commit()
        await db.refresh(user)
        logger.info(f"Promoted {user.email} to admin on login")
    return user


async def verify_google_credential(credential: str) -> dict:
    """Validates a Google Identity Services ID token and returns its claims."""
    if not settings.GOOGLE_CLIENT_ID:
        raise ValidationError("Google sign-in is not configured")

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(settings.GOOGLE_TOKENINFO_URL, params={"id_token": credential})
    except httpx.HTTPError as e:
        logger.error(f"Google token verification failed: {e}")
        raise AuthError("Could not verify Google credential")

    if response.status_code != 200:
        raise AuthError("Invalid Google credential")

    try:
        claims = response.json()
    except ValueError:
        logger.warning("Google tokeninfo returned a non-JSON body")
        raise AuthError("Invalid Google credential")
    if not isinstance(claims, dict):
        raise AuthError("Invalid Google credential")
    if claims.get("aud") != settings.GOOGLE_CLIENT_ID:
        logger.warning("Google credential issued for a different client")
        raise AuthError("Invalid Google credential")
    if str(claims.get("email_verified", "")).lower() != "true" or not claims.get("email"):
        raise AuthError("Google account email is not verified")
    return claims


async def authenticate_google_user(db: AsyncSession, credential: str) -> user_model.Users:
    claims = await verify_google_credential(credential)
    email = claims["email"].lower()

    user = await user_repository.get_user_by_email(db, email=email)
    if user:
        if not user.is_admin and _is_admin_email(email):
            user.is_admin = True
            await db.commit()
            await db.refresh(user)
        return user

    db_user = user_model.Users(
        first_name=claims.get("given_name"),
        last_name=claims.get("family_name"),
        email=email,
        password=None,
        is_admin=_is_admin_email(email),
    )
    user = await user_repository.create_user(db, user=db_user)
    logger.info(f"User {user.id} registered with Google sign-in")
    return user


async def request_password_reset(db: AsyncSession, email: str) -> dict:
    """
    Emails a reset link when the account exists. The response is the same
    either way so the endpoint cannot be used to discover accounts.
    """
    user = await user_repository.get_user_by_email(db, email=email)
    if not user:
        logger.warning(f"Password reset requested for unknown email: {email}")
        return {"message": GENERIC_RESET_MESSAGE}

    token = generate_reset_token()
    db.add(
        PasswordResetToken(
            email=user.email,
            token=token,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        )
    )
    await db.commit()

    reset_link = f"{settings.APP_BASE_URL}reset-password?token={token}"
    html_content = f"""
    <html>
    <body>
        <p>Hello {user.name or user.email},</p>
        <p>We received a request to reset your password.</p>
        <p><a href="{reset_link}" style="color: #007bff; text-decoration: none;">Reset your password</a></p>
        <p>This link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>
        <p>If you did not request a password reset, please ignore this email.</p>
        <p>Thanks,<br>The {settings.APP_NAME} team</p>
    </body>
    </html>
    """
    await send_brevo_email(
        to_email=user.email,
        subject=f"Reset your {settings.APP_NAME} password",
        html_content=html_content,
    )
    return {"message": GENERIC_RESET_MESSAGE}


async def reset_password(db: AsyncSession, token: str, new_password: str) -> dict:
    result = await db.execute(
        select(PasswordResetToken).filter(
            PasswordResetToken.token == token,
            PasswordResetToken.expires_at > datetime.utcnow(),
        )
    )
    reset_token = result.scalar_one_or_none()
    if not reset_token:
        raise ValidationError("Invalid or expired reset link")

    user = await user_repository.get_user_by_email(db, email=reset_token.email)
    if not user:
        raise ValidationError("Invalid or expired reset link")

    user.password = get_password_hash(new_password)
    # Every outstanding link for the account dies with the reset
    await db.execute(delete(PasswordResetToken).where(PasswordResetToken.email == reset_token.email))
    await db.commit()

    logger.info(f"Password reset for user {user.id}")
    return {"message": "Password has been reset successfully"}
