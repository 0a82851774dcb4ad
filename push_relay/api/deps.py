"""Shared API dependencies."""
from __future__ import annotations

from fastapi import Depends, Request

from push_relay.services.broadcast import BroadcastEngine
from push_relay.services.registry import SubscriptionRegistry
from push_relay.services.state import RelayState


def get_relay_state(request: Request) -> RelayState:
    """Return the relay state owned by the application instance."""

    return request.app.state.relay


def get_registry(state: RelayState = Depends(get_relay_state)) -> SubscriptionRegistry:
    return state.registry


def get_broadcast_engine(state: RelayState = Depends(get_relay_state)) -> BroadcastEngine:
    return state.engine
