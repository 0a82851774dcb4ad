"""Relay API routers."""

from push_relay.api.v1.api import api_router, health_router

__all__ = ["api_router", "health_router"]
