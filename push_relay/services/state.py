"""Composition root for the relay's shared server state."""
from __future__ import annotations

import time
from dataclasses import dataclass, field

from push_relay.config import Settings
from push_relay.services.broadcast import BroadcastEngine
from push_relay.services.registry import SubscriptionRegistry
from push_relay.services.transport import PushTransport, WebPushTransport


@dataclass
class RelayState:
    """Registry and broadcast engine shared by every request handler."""

    registry: SubscriptionRegistry
    engine: BroadcastEngine
    started_at: float = field(default_factory=time.monotonic)

    @property
    def uptime(self) -> float:
        return time.monotonic() - self.started_at


def build_relay_state(settings: Settings, transport: PushTransport | None = None) -> RelayState:
    """Wire a fresh registry to a broadcast engine using ``settings``."""

    registry = SubscriptionRegistry()
    if transport is None:
        transport = WebPushTransport(
            vapid_private_key=settings.VAPID_PRIVATE_KEY,
            vapid_subject=settings.VAPID_SUBJECT,
            ttl=settings.PUSH_TTL_SECONDS,
            request_timeout=settings.DELIVERY_TIMEOUT_SECONDS,
        )
    engine = BroadcastEngine(
        registry,
        transport,
        timeout=settings.DELIVERY_TIMEOUT_SECONDS,
        max_concurrency=settings.MAX_CONCURRENT_DELIVERIES,
        prune_gone=settings.PRUNE_GONE_SUBSCRIPTIONS,
    )
    return RelayState(registry=registry, engine=engine)
