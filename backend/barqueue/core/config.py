"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. This ensures:
1. Type validation at startup
2. Centralized configuration
3. Documentation of available settings
4. Proper defaults
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Database - relative path for local runs, override via env for Postgres
    database_url: str = "sqlite:///./data/barqueue.db"

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # ==========================================================================
    # SMS (Twilio REST API)
    # ==========================================================================
    sms_enabled: bool = False
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_messaging_service_sid: Optional[str] = None
    twilio_api_base: str = "https://api.twilio.com/2010-04-01"
    sms_country_code: str = "55"
    sms_timeout_seconds: float = 15.0

    # ==========================================================================
    # Order lifecycle
    # ==========================================================================
    reminder_cooldown_minutes: int = 10
    ready_window_minutes: int = 15

    # Read-model refresh intervals (seconds)
    bar_poll_seconds: int = 20
    guest_poll_seconds: int = 20
    log_poll_seconds: int = 60

    # ==========================================================================
    # Avatar storage
    # ==========================================================================
    avatar_storage_dir: str = "./data/avatars"
    avatar_public_base_url: str = "/avatars"
    avatar_max_bytes: int = 1024 * 1024  # 1MB after client-side compression

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_prefix: str = "/api"

    # Rate limiting
    rate_limit_enabled: bool = True

    @field_validator("sms_country_code")
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        digits = "".join(ch for ch in v if ch.isdigit())
        if not digits:
            raise ValueError("SMS_COUNTRY_CODE must contain at least one digit")
        return digits

    @field_validator("reminder_cooldown_minutes", "ready_window_minutes")
    @classmethod
    def validate_positive_minutes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("minute intervals must be positive")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def sms_sender(self) -> Optional[str]:
        """Sender identity: messaging service sid wins over a plain number."""
        return self.twilio_messaging_service_sid or self.twilio_phone_number

    @property
    def sms_configured(self) -> bool:
        """True when credentials and a sender identity are all present."""
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.sms_sender)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
