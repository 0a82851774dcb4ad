"""Service layer package."""

from push_relay.services.broadcast import BroadcastEngine, BroadcastResult, DeliveryOutcome
from push_relay.services.registry import Subscription, SubscriptionRegistry
from push_relay.services.state import RelayState, build_relay_state
from push_relay.services.transport import FailureCause, PushTransport, WebPushTransport

__all__ = [
    "BroadcastEngine",
    "BroadcastResult",
    "DeliveryOutcome",
    "Subscription",
    "SubscriptionRegistry",
    "RelayState",
    "build_relay_state",
    "FailureCause",
    "PushTransport",
    "WebPushTransport",
]
