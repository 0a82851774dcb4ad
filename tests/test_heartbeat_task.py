"""Tests for the scheduled heartbeat Celery task."""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import httpx

from push_relay.celery_app import celery_app
from push_relay.tasks.heartbeat import trigger_heartbeat


def test_heartbeat_is_scheduled() -> None:
    entry = celery_app.conf.beat_schedule["send-heartbeat"]

    assert entry["task"] == "push_relay.tasks.heartbeat.trigger_heartbeat"


def test_trigger_heartbeat_posts_to_relay() -> None:
    response = MagicMock()
    response.json.return_value = {"success": True, "sent": 2, "failed": 1, "total": 3}

    with patch("push_relay.tasks.heartbeat.httpx.post", return_value=response) as post:
        result = trigger_heartbeat.run()

    assert post.call_args.args[0].endswith("/api/heartbeat")
    assert result == {"success": True, "sent": 2, "failed": 1, "total": 3}


def test_trigger_heartbeat_reports_unreachable_relay() -> None:
    with patch(
        "push_relay.tasks.heartbeat.httpx.post", side_effect=httpx.ConnectError("refused")
    ):
        result = trigger_heartbeat.run()

    assert result["success"] is False
    assert result["sent"] == 0
