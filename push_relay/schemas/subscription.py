"""Subscription request and response schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionChangeResponse(BaseModel):
    """Result of a subscribe or unsubscribe call."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    total_subscriptions: int = Field(alias="totalSubscriptions")


class SubscriptionStatsResponse(BaseModel):
    total: int
    active: int
    oldest: datetime | None = None
    newest: datetime | None = None


class ClearSubscriptionsResponse(BaseModel):
    success: bool = True
    removed: int
    remaining: int = 0


class VapidPublicKeyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    public_key: str | None = Field(alias="publicKey")


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: datetime
    subscriptions: int
    uptime: float = Field(description="Seconds since the relay started")
