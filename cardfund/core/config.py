"""CardFund Billing - Core Configuration."""

from functools import lru_cache

from pydantic import Field, MySQLDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "CardFund Billing"
    debug: bool = False

    # Database
    database_url: MySQLDsn = Field(..., description="MySQL connection string with aiomysql driver")

    # Redis (task queue broker and per-user billing locks)
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="Redis connection URL for task queue",
    )

    # Internal API
    internal_api_token: str = Field(
        default="", description="Bearer token required by the internal read API"
    )

    # Card issuer
    card_issuer_base_url: str = Field(
        default="https://api.admediacards.com/v1", description="Card issuing API base URL"
    )
    card_issuer_api_key: str = Field(default="", description="Card issuing API key")
    card_issuer_timeout_seconds: float = Field(default=10.0, description="HTTP timeout")

    # Billing
    billing_due_day: int = Field(
        default=5, ge=1, le=28, description="Day of the billing month a monthly fee falls due"
    )
    monthly_fee_lock_timeout: int = Field(
        default=120, description="Per-user billing lock timeout in seconds"
    )
    enable_scheduled_jobs: bool = Field(
        default=True, description="Register periodic billing and reconciliation jobs"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()  # type: ignore[call-arg]
