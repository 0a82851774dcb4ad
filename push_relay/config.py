"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global relay settings loaded from environment variables."""

    PROJECT_NAME: str = "Push Relay"
    API_PREFIX: str = "/api"
    HOST: str = "127.0.0.1"
    PORT: int = 8085
    LOG_LEVEL: str = Field("INFO", description="Minimum level for the stderr log sink")

    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost", "http://localhost:3000"],
        description="Allowed CORS origins",
    )

    VAPID_PUBLIC_KEY: Optional[str] = None
    VAPID_PRIVATE_KEY: Optional[str] = None
    VAPID_SUBJECT: str = Field(
        "mailto:admin@example.com", description="Contact claim sent with VAPID signatures"
    )
    PUSH_TTL_SECONDS: int = Field(86400, description="How long the push service keeps undelivered messages")

    DELIVERY_TIMEOUT_SECONDS: float = Field(10.0, description="Timeout for a single delivery attempt")
    MAX_CONCURRENT_DELIVERIES: int = Field(
        50, description="Upper bound on simultaneous outbound deliveries per broadcast"
    )
    PRUNE_GONE_SUBSCRIPTIONS: bool = Field(
        True,
        description="Remove subscriptions the push service reports as gone; when false they are only flagged",
    )

    REDIS_URL: AnyUrl = Field(
        "redis://localhost:6379/0", description="Redis connection string for Celery"
    )
    CELERY_BROKER_URL: Optional[AnyUrl] = None
    CELERY_RESULT_BACKEND: Optional[AnyUrl] = None
    HEARTBEAT_INTERVAL_SECONDS: float = Field(300.0, description="Period of the scheduled heartbeat broadcast")
    RELAY_BASE_URL: str = Field(
        "http://127.0.0.1:8085", description="Base URL the heartbeat task uses to reach the relay"
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


settings = get_settings()
