# backend/app/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"  # Goes up to backend/.env
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


_DEFAULT_SECRET_KEY = SecretStr("mentormatch-development-secret-key")


class Settings(BaseSettings):
    environment: Literal["development", "test", "production"] = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment",
    )
    debug: bool = Field(
        default=False,
        alias="DEBUG",
        description="Expose internal error details and diagnostic routes",
    )

    database_url: str = Field(
        default="sqlite:///./mentormatch.db",
        alias="DATABASE_URL",
        description="SQLAlchemy database URL",
    )

    # JWT
    secret_key: SecretStr = Field(
        default=_DEFAULT_SECRET_KEY,
        alias="SECRET_KEY",
        description="Secret key for JWT tokens",
    )
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # External calendar (Cal.com)
    calcom_api_key: Optional[SecretStr] = Field(
        default=None,
        alias="CALCOM_API_KEY",
        description="Cal.com API key; remote availability is disabled without it",
    )
    calcom_api_url: str = Field(default="https://api.cal.com/v1", alias="CALCOM_API_URL")
    calcom_timeout_seconds: float = Field(default=10.0, alias="CALCOM_TIMEOUT_SECONDS")

    # Payments
    stripe_secret_key: Optional[SecretStr] = Field(
        default=None,
        alias="STRIPE_SECRET_KEY",
        description="Stripe secret key; the mock gateway is used without it",
    )
    default_currency: str = Field(default="INR", alias="DEFAULT_CURRENCY")

    # Email
    email_provider: Literal["console", "resend"] = Field(
        default="console",
        alias="EMAIL_PROVIDER",
        description="Email provider name",
    )
    resend_api_key: Optional[str] = Field(
        default=None,
        alias="RESEND_API_KEY",
        description="API key for Resend provider (optional)",
    )
    email_from_address: str = Field(
        default="MentorMatch <bookings@mentormatch.app>",
        alias="EMAIL_FROM_ADDRESS",
    )

    # Booking rules
    min_lead_time_hours: int = Field(
        default=2,
        alias="MIN_LEAD_TIME_HOURS",
        description="Minimum gap between now and the start of a bookable slot",
    )
    mentor_acceptance_window_hours: int = Field(
        default=24,
        alias="MENTOR_ACCEPTANCE_WINDOW_HOURS",
        description="Hours a mentor has to accept a pending booking",
    )
    require_mentor_acceptance: bool = Field(
        default=True,
        alias="REQUIRE_MENTOR_ACCEPTANCE",
        description="Create bookings as pending_mentor_acceptance instead of confirmed",
    )
    session_type: str = Field(default="video", alias="SESSION_TYPE")

    # Celery
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("default_currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("min_lead_time_hours", "mentor_acceptance_window_hours")
    @classmethod
    def _non_negative_hours(cls, value: int) -> int:
        if value < 0:
            raise ValueError("hour settings must be non-negative")
        return value

    @property
    def calcom_enabled(self) -> bool:
        return bool(self.calcom_api_key and self.calcom_api_key.get_secret_value())

    @property
    def stripe_enabled(self) -> bool:
        return bool(self.stripe_secret_key and self.stripe_secret_key.get_secret_value())

    def get_database_url(self) -> str:
        return self.database_url


settings = Settings()
