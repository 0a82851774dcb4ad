"""Celery application instance and configuration."""
from __future__ import annotations

from celery import Celery

from push_relay.config import settings


def _resolve_broker_url() -> str:
    if settings.CELERY_BROKER_URL is not None:
        return str(settings.CELERY_BROKER_URL)
    return str(settings.REDIS_URL)


def _resolve_result_backend() -> str:
    if settings.CELERY_RESULT_BACKEND is not None:
        return str(settings.CELERY_RESULT_BACKEND)
    return str(settings.REDIS_URL)


celery_app = Celery(
    "push_relay",
    broker=_resolve_broker_url(),
    backend=_resolve_result_backend(),
    include=["push_relay.tasks.heartbeat"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=5 * 60,
    worker_prefetch_multiplier=1,
)

celery_app.conf.beat_schedule = {
    "send-heartbeat": {
        "task": "push_relay.tasks.heartbeat.trigger_heartbeat",
        "schedule": settings.HEARTBEAT_INTERVAL_SECONDS,
    },
}

__all__ = ["celery_app"]
