"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ratewatch.config.constants import DEFAULT_RATE_SERIES, FRED_OBSERVATIONS_URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Rate source (FRED)
    fred_api_key: str | None = None
    fred_api_url: str = FRED_OBSERVATIONS_URL
    rate_series_id: str = DEFAULT_RATE_SERIES
    rate_fetch_timeout_seconds: float = Field(
        default=10.0, gt=0, le=120, description="Timeout for one rate fetch (seconds)"
    )

    # Email (Resend)
    resend_api_key: str | None = None
    email_from: str = "Rate Watch <alerts@ratewatch.local>"
    email_timeout_seconds: float = Field(
        default=15.0, gt=0, le=120, description="Timeout for one provider call (seconds)"
    )
    app_url: str = "http://localhost:3000"

    # Evaluation
    evaluation_cooldown_hours: int = Field(
        default=0,
        ge=0,
        description="Minimum spacing between scheduled cycles of one session (0 = off)",
    )
    batch_concurrency: int = Field(
        default=1, ge=1, le=32, description="Sessions evaluated in parallel by the batch runner"
    )

    # Scheduler (UTC)
    daily_check_hour: int = Field(default=14, ge=0, le=23)
    daily_check_minute: int = Field(default=0, ge=0, le=59)

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    health_check_port: int = Field(
        default=8080, ge=1, le=65535, description="Health check HTTP server port"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if not self.resend_api_key:
                raise ValueError(
                    "RESEND_API_KEY is required in production. "
                    "Alerts cannot be delivered without it."
                )
            if not self.fred_api_key:
                logger.warning(
                    "FRED_API_KEY is not set. FRED allows limited anonymous access; "
                    "set a key to avoid throttling."
                )
        return self

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(("postgresql://", "postgresql+asyncpg://")):
            raise ValueError(
                "DATABASE_URL must start with postgresql:// or postgresql+asyncpg://"
            )
        return v

    @property
    def async_database_url(self) -> str:
        """Database URL with the asyncpg driver."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url

    @property
    def dashboard_url(self) -> str:
        """Status page link used in alert emails."""
        return f"{self.app_url.rstrip('/')}/status"


# Global settings instance
settings = Settings()
