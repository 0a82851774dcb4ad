"""Scheduled heartbeat broadcast."""
from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from push_relay.celery_app import celery_app
from push_relay.config import settings


@celery_app.task(name="push_relay.tasks.heartbeat.trigger_heartbeat")
def trigger_heartbeat() -> dict[str, Any]:
    """Ask the running relay to broadcast its heartbeat payload.

    The registry lives in the web process, so the worker goes through the
    HTTP surface rather than touching it directly.
    """

    url = f"{settings.RELAY_BASE_URL.rstrip('/')}{settings.API_PREFIX}/heartbeat"
    try:
        response = httpx.post(url, timeout=settings.DELIVERY_TIMEOUT_SECONDS * 2)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("Heartbeat trigger failed", url=url, error=str(exc))
        return {"success": False, "sent": 0, "failed": 0, "total": 0}

    result = response.json()
    logger.info(
        "Heartbeat broadcast triggered",
        sent=result.get("sent", 0),
        failed=result.get("failed", 0),
        total=result.get("total", 0),
    )
    return {
        "success": bool(result.get("success", True)),
        "sent": result.get("sent", 0),
        "failed": result.get("failed", 0),
        "total": result.get("total", 0),
    }
