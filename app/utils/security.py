import hashlib
import logging
import bcrypt as bcrypt_lib

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes, longer secrets are pre-hashed
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > _BCRYPT_MAX_BYTES:
        password_bytes = hashlib.sha256(password_bytes).hexdigest().encode('utf-8')
    return password_bytes


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against a hashed password"""
    if not hashed_password:
        # Accounts created through Google sign-in have no password
        return False
    try:
        if isinstance(hashed_password, str):
            hashed_password = hashed_password.encode('utf-8')
        return bcrypt_lib.checkpw(_password_bytes(plain_password), hashed_password)
    except ValueError as e:
        logger.warning(f"Password verification error: {e}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt_lib.gensalt(rounds=10)
    return bcrypt_lib.hashpw(_password_bytes(password), salt).decode('utf-8')
