"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from environment variables."""

    PROJECT_NAME: str = "PtvAlert"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "production"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = Field("INFO", description="Minimum level for the loguru stderr sink")

    KV_BACKEND: Literal["redis", "memory"] = Field(
        "redis", description="Key-value backend for markers, subscriptions and user flags"
    )
    REDIS_URL: AnyUrl = Field(
        "redis://localhost:6379/0", description="Redis connection string for the KV store and Celery"
    )
    MARKERS_NAMESPACE: str = "markers"
    SUBSCRIPTIONS_NAMESPACE: str = "subscriptions"
    ADMIN_USERS_NAMESPACE: str = "admin_users"
    BANNED_USERS_NAMESPACE: str = "banned_users"
    NOTIFIED_NAMESPACE: str = "notified_markers"

    VAPID_PUBLIC_KEY: Optional[str] = None
    VAPID_PRIVATE_KEY: Optional[str] = None
    VAPID_SUBJECT: str = Field(
        "mailto:admin@ptvalert.com", description="Contact URI sent in the VAPID claims"
    )
    PUSH_TTL_SECONDS: int = Field(86400, ge=0, description="TTL header for push messages")
    PUSH_DELIVERY_TIMEOUT_SECONDS: float = Field(
        10.0, gt=0, description="Upper bound for a single push delivery"
    )

    APP_BASE_PATH: str = Field(
        "/ptvalert-pwa", description="Path prefix of the PWA used for icons and deep links"
    )
    NOTIFY_ON_MARKER_CREATE: bool = True

    SWEEP_WINDOW_HOURS: int = Field(24, ge=1, description="Trailing window scanned by the sweep")
    SWEEP_INTERVAL_MINUTES: int = Field(30, ge=1, description="Celery beat period for the sweep")

    CELERY_BROKER_URL: Optional[AnyUrl] = None
    CELERY_RESULT_BACKEND: Optional[AnyUrl] = None

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def vapid_configured(self) -> bool:
        return bool(self.VAPID_PUBLIC_KEY and self.VAPID_PRIVATE_KEY)


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
