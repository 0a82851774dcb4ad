"""Client-side background agent: offline caching and notification lifecycle."""

from push_relay.agent.cache import CacheBucket, CacheStorage
from push_relay.agent.config import AgentConfig
from push_relay.agent.events import (
    ActivateEvent,
    ExtendableEvent,
    FetchEvent,
    InstallEvent,
    MessageEvent,
    NotificationCloseEvent,
    NotificationEvent,
    PushEvent,
    PushSubscriptionChangeEvent,
)
from push_relay.agent.network import AgentRequest, AgentResponse, HttpxFetcher, RelayClient
from push_relay.agent.notifications import NotificationDescriptor, NotificationLifecycleController
from push_relay.agent.offline import OfflineCacheManager
from push_relay.agent.worker import ServiceAgent

__all__ = [
    "CacheBucket",
    "CacheStorage",
    "AgentConfig",
    "ActivateEvent",
    "ExtendableEvent",
    "FetchEvent",
    "InstallEvent",
    "MessageEvent",
    "NotificationCloseEvent",
    "NotificationEvent",
    "PushEvent",
    "PushSubscriptionChangeEvent",
    "AgentRequest",
    "AgentResponse",
    "HttpxFetcher",
    "RelayClient",
    "NotificationDescriptor",
    "NotificationLifecycleController",
    "OfflineCacheManager",
    "ServiceAgent",
]
