import secrets
import string

def generate_otp_code(length=6):
    """Generates a numeric one-time code for email verification."""
    return ''.join(secrets.choice(string.digits) for _ in range(length))

def generate_reset_token(length=32):
    """Generates a random, secure token for password reset."""
    alphabet = string.ascii_letters + string.digits
    return ''.join(secrets.choice(alphabet) for _ in range(length))
