"""Pydantic schemas package."""

from push_relay.schemas.notification import (
    BroadcastResponse,
    NotificationPayload,
    NotificationPriority,
    NotificationStatus,
    NotifyRequest,
    NotifyResponse,
    TestNotificationRequest,
    TestNotificationResponse,
)
from push_relay.schemas.subscription import (
    ClearSubscriptionsResponse,
    HealthResponse,
    SubscriptionChangeResponse,
    SubscriptionStatsResponse,
    VapidPublicKeyResponse,
)

__all__ = [
    "BroadcastResponse",
    "NotificationPayload",
    "NotificationPriority",
    "NotificationStatus",
    "NotifyRequest",
    "NotifyResponse",
    "TestNotificationRequest",
    "TestNotificationResponse",
    "ClearSubscriptionsResponse",
    "HealthResponse",
    "SubscriptionChangeResponse",
    "SubscriptionStatsResponse",
    "VapidPublicKeyResponse",
]
