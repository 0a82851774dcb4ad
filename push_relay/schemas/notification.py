"""Notification payload and broadcast response schemas."""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_TITLE = "Push Relay"
DEFAULT_BODY = "New notification received"


class NotificationStatus(str, Enum):
    NEW = "new"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    MEDIUM = "medium"
    HIGH = "high"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationPayload(BaseModel):
    """Message broadcast to every subscribed device.

    ``title`` and ``body`` fall back to non-empty defaults when missing or blank.
    ``message`` is accepted as a legacy name for ``body``.
    """

    model_config = ConfigDict(frozen=True)

    title: str = DEFAULT_TITLE
    body: str = DEFAULT_BODY
    status: NotificationStatus | None = None
    priority: NotificationPriority = NotificationPriority.NORMAL
    timestamp: datetime = Field(default_factory=_utcnow)
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_message(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("body") and values.get("message"):
            values = {**values, "body": values["message"]}
        return values

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_TITLE
        return value

    @field_validator("body", mode="before")
    @classmethod
    def _default_body(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_BODY
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _default_priority(cls, value: Any) -> Any:
        return NotificationPriority.NORMAL if value is None else value

    def serialize(self) -> bytes:
        """Encode the payload once; every target receives these bytes."""

        return self.model_dump_json(exclude_none=True).encode("utf-8")


class TestNotificationRequest(BaseModel):
    """Per-field overrides for a templated test notification."""

    __test__ = False

    title: str | None = None
    message: str | None = None
    priority: NotificationPriority | None = None
    data: dict[str, Any] | None = None


class NotifyRequest(BaseModel):
    """Ordered batch of payloads for a bulk broadcast."""

    notifications: list[NotificationPayload]


class BroadcastResponse(BaseModel):
    success: bool = True
    sent: int
    failed: int
    total: int
    pruned: int = 0


class TestNotificationResponse(BaseModel):
    __test__ = False

    success: bool = True
    sent: int
    failed: int
    notification: NotificationPayload


class NotifyResponse(BaseModel):
    success: bool = True
    sent: int
    failed: int
    notifications: int
