"""Subscription registration endpoints."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from push_relay.api import deps
from push_relay.config import settings
from push_relay.schemas import (
    ClearSubscriptionsResponse,
    SubscriptionChangeResponse,
    SubscriptionStatsResponse,
    VapidPublicKeyResponse,
)
from push_relay.services.registry import SubscriptionRegistry
from push_relay.utils.exceptions import (
    InvalidInputError,
    NotFoundError,
    handle_invalid_input,
    handle_not_found,
)

router = APIRouter(tags=["subscriptions"])


@router.get("/vapid-public-key", response_model=VapidPublicKeyResponse)
def get_vapid_public_key() -> VapidPublicKeyResponse:
    return VapidPublicKeyResponse(public_key=settings.VAPID_PUBLIC_KEY)


@router.post("/subscribe", response_model=SubscriptionChangeResponse)
def subscribe(
    subscription: dict[str, Any] = Body(...),
    registry: SubscriptionRegistry = Depends(deps.get_registry),
) -> SubscriptionChangeResponse:
    """Register a push subscription, refreshing it when the endpoint is known."""

    try:
        total = registry.subscribe(subscription)
    except InvalidInputError as exc:
        raise handle_invalid_input(exc) from exc
    return SubscriptionChangeResponse(total_subscriptions=total)


@router.post("/unsubscribe", response_model=SubscriptionChangeResponse)
def unsubscribe(
    payload: dict[str, Any] = Body(...),
    registry: SubscriptionRegistry = Depends(deps.get_registry),
) -> SubscriptionChangeResponse:
    endpoint = payload.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint:
        raise handle_invalid_input(
            InvalidInputError("Subscription endpoint is required", details={"field": "endpoint"})
        )
    try:
        registry.unsubscribe(endpoint)
    except NotFoundError as exc:
        raise handle_not_found(exc) from exc
    return SubscriptionChangeResponse(total_subscriptions=len(registry))


@router.get("/subscriptions/stats", response_model=SubscriptionStatsResponse)
def subscription_stats(
    registry: SubscriptionRegistry = Depends(deps.get_registry),
) -> SubscriptionStatsResponse:
    stats = registry.stats()
    return SubscriptionStatsResponse(
        total=stats.total,
        active=stats.active,
        oldest=stats.oldest,
        newest=stats.newest,
    )


@router.post("/subscriptions/clear", response_model=ClearSubscriptionsResponse)
def clear_subscriptions(
    registry: SubscriptionRegistry = Depends(deps.get_registry),
) -> ClearSubscriptionsResponse:
    """Remove every subscription. Irreversible."""

    removed = registry.clear()
    return ClearSubscriptionsResponse(removed=removed, remaining=len(registry))
