from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    DATABASE_URL: str = "sqlite+aiosqlite:///./checkmate.db"

    # Authentication settings
    SECRET_KEY: str = "secret-key"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30
    # Signing up with this email promotes the account to admin
    ADMIN_EMAIL: Optional[str] = None
    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_TOKENINFO_URL: str = "https://oauth2.googleapis.com/tokeninfo"
    OTP_EXPIRE_MINUTES: int = 10
    REQUIRE_EMAIL_OTP: bool = False
    RESET_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS, comma separated
    ALLOWED_ORIGINS: str = "http://localhost:5173"

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE_MB: int = 10
    ORDER_RETENTION_HOURS: int = 5

    # Daily system-wide upload cap
    DAILY_UPLOAD_DEFAULT: int = 0
    QUOTA_TIMEZONE: Optional[str] = None  # IANA name, empty means server-local time

    # M-Pesa Daraja settings
    MPESA_ENV: str = "sandbox"  # sandbox or production
    MPESA_CONSUMER_KEY: str = ""
    MPESA_CONSUMER_SECRET: str = ""
    MPESA_SHORTCODE: str = ""
    MPESA_PASSKEY: str = ""
    MPESA_CALLBACK_URL: Optional[str] = None
    MPESA_ACCOUNT_REFERENCE: str = "Checkmate"
    MPESA_AUTH_TIMEOUT_SEC: float = 10.0
    MPESA_STK_TIMEOUT_SEC: float = 30.0

    # Web push
    VAPID_PUBLIC_KEY: Optional[str] = None
    VAPID_PRIVATE_KEY: Optional[str] = None
    VAPID_SUBJECT: str = "mailto:admin@checkmateturnit.icu"

    # Brevo settings
    BREVO_API_KEY: str = ""
    DEFAULT_SENDER_EMAIL: str = "noreply@checkmateturnit.icu"

    # Application base URL for links
    APP_BASE_URL: str = "http://localhost:5173/"
    APP_NAME: str = "Checkmate"

    # Redis settings for Celery
    REDIS_URL: str = "redis://localhost:6379/0"

    @property
    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    @property
    def mpesa_base_url(self) -> str:
        if self.MPESA_ENV == "production":
            return "https://api.safaricom.co.ke"
        return "https://sandbox.safaricom.co.ke"

def get_settings():
    return Settings()

settings = get_settings()
