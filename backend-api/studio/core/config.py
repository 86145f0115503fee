"""
Application settings
"""

from pydantic_settings import BaseSettings
from typing import Optional, List
from pathlib import Path
from dotenv import load_dotenv


""".env loading order
1) OS environment variables (hosting dashboard, CI, ...)
2) .env at the repository root (repo/.env)
3) .env in the backend-api directory (repo/backend-api/.env)
"""

# Preload .env files without overriding the OS environment
_here = Path(__file__).resolve()
_repo_root_env = _here.parents[3] / ".env"  # repo/.env
_backend_env = _here.parents[2] / ".env"    # backend-api/.env
for _p in (_repo_root_env, _backend_env):
    try:
        if _p.exists():
            load_dotenv(dotenv_path=str(_p), override=False)
    except Exception:
        pass


class Settings(BaseSettings):
    """Application settings"""
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # Remote store (hosted Postgres, e.g. Supabase) / SQLite for development
    DATABASE_URL: str = "sqlite+aiosqlite:///./studio.db"
    REDIS_URL: str = "redis://localhost:6379/0"

    # Local cache keys are "<prefix>_config" and "<prefix>_leads"
    CACHE_KEY_PREFIX: str = "lino"

    # JWT sessions issued by the store's auth API
    JWT_SECRET_KEY: str = "your-super-secret-jwt-key-change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # Admin access
    # ADMIN_ACCESS_KEY enables the legacy shared-key unlock; unset disables it
    ADMIN_ACCESS_KEY: Optional[str] = None
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    # Lead enrichment (Gemini). Without a key leads keep the local reference code
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    ENRICHMENT_TIMEOUT_SECONDS: float = 20.0

    # Reference code suffix length (6..8)
    REFERENCE_CODE_LENGTH: int = 6

    # Notification relay
    NOTIFY_RELAY_URL: Optional[str] = None
    NOTIFY_TIMEOUT_SECONDS: float = 15.0

    # Email / SMTP (used when no relay is configured)
    SMTP_HOST: Optional[str] = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False
    EMAIL_FROM_ADDRESS: str = "no-reply@linostudio.local"
    EMAIL_FROM_NAME: str = "Lino Studio NG"
    STUDIO_INBOX_EMAIL: Optional[str] = None  # receives lead notifications

    FRONTEND_BASE_URL: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

settings = Settings()


def validate_settings():
    """Validate settings for the current environment"""
    if settings.ENVIRONMENT == "production":
        if settings.JWT_SECRET_KEY == "your-super-secret-jwt-key-change-this-in-production":
            raise ValueError("JWT_SECRET_KEY must be changed in production.")
    if not 6 <= settings.REFERENCE_CODE_LENGTH <= 8:
        raise ValueError("REFERENCE_CODE_LENGTH must be between 6 and 8.")
    return True


validate_settings()
