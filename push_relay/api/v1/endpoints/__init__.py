"""API endpoint modules."""

from push_relay.api.v1.endpoints import health, notifications, subscriptions

__all__ = ["health", "notifications", "subscriptions"]
