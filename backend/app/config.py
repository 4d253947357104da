"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "Sandbox Payments API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"   # development | test | production

    # --- Database (audit trail + settled payments) ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'sandbox_payments.db'}"

    # --- HTTP ---
    CORS_ORIGINS: list[str] = ["*"]
    RATE_LIMIT_REQUESTS: int = 20
    RATE_LIMIT_WINDOW_SECONDS: int = 60

    # --- Payment sessions ---
    PAYMENT_SESSION_TTL_SECONDS: int = 300
    DEFAULT_CURRENCY: str = "INR"
    EXPOSE_OTP_HINT: bool = True   # ignored when ENVIRONMENT == "production"

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def otp_hint_enabled(self) -> bool:
        """The OTP is echoed back to the caller only outside production."""
        return self.EXPOSE_OTP_HINT and not self.is_production


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
