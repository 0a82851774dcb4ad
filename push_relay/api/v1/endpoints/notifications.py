"""Broadcast endpoints: heartbeat, templated test deliveries and bulk notify."""
from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from push_relay.api import deps
from push_relay.schemas import (
    BroadcastResponse,
    NotifyRequest,
    NotifyResponse,
    TestNotificationRequest,
    TestNotificationResponse,
)
from push_relay.services.broadcast import BroadcastEngine
from push_relay.services.templates import build_heartbeat_notification, build_test_notification
from push_relay.utils.exceptions import InvalidInputError, handle_invalid_input

router = APIRouter(tags=["notifications"])


@router.post("/heartbeat", response_model=BroadcastResponse)
async def heartbeat(
    engine: BroadcastEngine = Depends(deps.get_broadcast_engine),
) -> BroadcastResponse:
    """Broadcast the heartbeat payload to every device."""

    result = await engine.broadcast(build_heartbeat_notification())
    return BroadcastResponse(
        sent=result.sent,
        failed=result.failed,
        total=result.total,
        pruned=result.pruned,
    )


@router.post("/test-notification/{status}", response_model=TestNotificationResponse)
async def test_notification(
    status: str,
    overrides: TestNotificationRequest | None = Body(default=None),
    engine: BroadcastEngine = Depends(deps.get_broadcast_engine),
) -> TestNotificationResponse:
    try:
        payload = build_test_notification(status, overrides)
    except InvalidInputError as exc:
        raise handle_invalid_input(exc) from exc

    result = await engine.broadcast(payload)
    return TestNotificationResponse(sent=result.sent, failed=result.failed, notification=payload)


@router.post("/notify", response_model=NotifyResponse)
async def notify(
    request: NotifyRequest,
    engine: BroadcastEngine = Depends(deps.get_broadcast_engine),
) -> NotifyResponse:
    """Broadcast each payload in turn to the full registry."""

    bulk = await engine.broadcast_many(request.notifications)
    return NotifyResponse(
        sent=bulk.sent,
        failed=bulk.failed,
        notifications=len(request.notifications),
    )
