"""Liveness endpoint."""
from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from push_relay.api import deps
from push_relay.schemas import HealthResponse
from push_relay.services.state import RelayState

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(state: RelayState = Depends(deps.get_relay_state)) -> HealthResponse:
    return HealthResponse(
        timestamp=datetime.now(timezone.utc),
        subscriptions=len(state.registry),
        uptime=round(state.uptime, 3),
    )
