"""API router for the relay."""
from fastapi import APIRouter

from push_relay.api.v1.endpoints import health, notifications, subscriptions


api_router = APIRouter()
api_router.include_router(subscriptions.router)
api_router.include_router(notifications.router)

health_router = health.router
