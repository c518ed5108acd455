"""Application settings loaded from environment variables.

Environment Configuration:
    QUOTARY_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (required)
    QUOTARY_INTERNAL_SECRET: Internal API secret (required in staging/prod)

Redis / Celery Configuration:
    REDIS_URL: Redis connection string (required for worker)
    CELERY_BROKER_URL: Celery broker URL (defaults to REDIS_URL)
    CELERY_RESULT_BACKEND: Celery result backend URL (defaults to REDIS_URL)

Auth Configuration (required in all environments):
    AUTH_JWKS_URL: Full URL to the identity provider's JWKS endpoint
    AUTH_ISSUER: Expected JWT issuer (trailing slash stripped)
    AUTH_AUDIENCES: Comma-separated list of allowed audiences

Engagement Configuration:
    RELATION_LIST_MAX_LIMIT: Page size ceiling for relation listings
    RELATION_BATCH_MAX_IDS: Max ids accepted by the batch status route
    DAILY_SELECTION_EXCLUSION_DAYS: Lookback window for repeat avoidance
    DAILY_SELECTION_UTC_OFFSET_MINUTES: Fixed offset of the rotation calendar
    DAILY_SELECTION_HISTORY_MAX_LIMIT: Ceiling for history reads
    DAILY_SELECTION_ROTATE_CRON_HOUR_UTC: Hour (UTC) the beat job rotates
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Validation rules:
    - DATABASE_URL is always required
    - AUTH_JWKS_URL, AUTH_ISSUER, AUTH_AUDIENCES are required in all environments
    - QUOTARY_INTERNAL_SECRET is required in staging and prod only
    """

    quotary_env: Environment = Field(default=Environment.LOCAL, alias="QUOTARY_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]
    quotary_internal_secret: str | None = Field(default=None, alias="QUOTARY_INTERNAL_SECRET")

    # Redis / Celery settings
    redis_url: str | None = Field(default=None, alias="REDIS_URL")
    celery_broker_url: str | None = Field(default=None, alias="CELERY_BROKER_URL")
    celery_result_backend: str | None = Field(default=None, alias="CELERY_RESULT_BACKEND")

    # Auth settings (required in all environments)
    auth_jwks_url: str | None = Field(default=None, alias="AUTH_JWKS_URL")
    auth_issuer: str | None = Field(default=None, alias="AUTH_ISSUER")
    auth_audiences: str | None = Field(default=None, alias="AUTH_AUDIENCES")

    # Relation counters
    relation_list_max_limit: int = Field(default=50, gt=0, alias="RELATION_LIST_MAX_LIMIT")
    relation_batch_max_ids: int = Field(default=100, gt=0, alias="RELATION_BATCH_MAX_IDS")

    # Daily selection rotation
    daily_selection_exclusion_days: int = Field(
        default=30, gt=0, alias="DAILY_SELECTION_EXCLUSION_DAYS"
    )
    # UTC+4, applied as a fixed offset (no DST)
    daily_selection_utc_offset_minutes: int = Field(
        default=240, ge=-720, le=840, alias="DAILY_SELECTION_UTC_OFFSET_MINUTES"
    )
    daily_selection_history_max_limit: int = Field(
        default=100, gt=0, alias="DAILY_SELECTION_HISTORY_MAX_LIMIT"
    )
    daily_selection_rotate_cron_hour_utc: int = Field(
        default=20, ge=0, le=23, alias="DAILY_SELECTION_ROTATE_CRON_HOUR_UTC"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @model_validator(mode="after")
    def validate_required_settings(self) -> "Settings":
        """Ensure required settings are set for all environments."""
        missing_auth = []
        if not self.auth_jwks_url:
            missing_auth.append("AUTH_JWKS_URL")
        if not self.auth_issuer:
            missing_auth.append("AUTH_ISSUER")
        if not self.auth_audiences:
            missing_auth.append("AUTH_AUDIENCES")

        if missing_auth:
            raise ValueError(
                f"Missing required auth settings: {', '.join(missing_auth)}. "
                "Set these environment variables or add them to .env."
            )

        if self.quotary_env in (Environment.STAGING, Environment.PROD):
            if not self.quotary_internal_secret:
                raise ValueError(
                    f"QUOTARY_INTERNAL_SECRET is required for QUOTARY_ENV={self.quotary_env.value}"
                )

        return self

    @property
    def requires_internal_header(self) -> bool:
        """Whether requests must include the internal secret header."""
        return self.quotary_env in (Environment.STAGING, Environment.PROD)

    @property
    def audience_list(self) -> list[str]:
        """Parse comma-separated audiences into a list."""
        if self.auth_audiences:
            return [a.strip() for a in self.auth_audiences.split(",") if a.strip()]
        return []

    @property
    def normalized_issuer(self) -> str | None:
        """Return issuer with trailing slash stripped."""
        if self.auth_issuer:
            return self.auth_issuer.rstrip("/")
        return None

    @property
    def effective_celery_broker_url(self) -> str | None:
        """Return Celery broker URL, falling back to REDIS_URL if not set."""
        return self.celery_broker_url or self.redis_url

    @property
    def effective_celery_result_backend(self) -> str | None:
        """Return Celery result backend URL, falling back to REDIS_URL if not set."""
        return self.celery_result_backend or self.redis_url


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
