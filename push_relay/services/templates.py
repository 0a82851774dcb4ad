"""Canned notification payloads for heartbeat and test deliveries."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from push_relay.schemas.notification import (
    NotificationPayload,
    NotificationPriority,
    NotificationStatus,
    TestNotificationRequest,
)
from push_relay.utils.exceptions import InvalidStatusError

HEARTBEAT_TITLE = "Heartbeat"
HEARTBEAT_BODY = "This is a heartbeat notification to all devices."


@dataclass(frozen=True)
class StatusTemplate:
    title: str
    body: str
    priority: NotificationPriority


STATUS_TEMPLATES: dict[NotificationStatus, StatusTemplate] = {
    NotificationStatus.NEW: StatusTemplate(
        title="New Notification",
        body="You have a new notification waiting.",
        priority=NotificationPriority.NORMAL,
    ),
    NotificationStatus.PENDING: StatusTemplate(
        title="Approval Required",
        body="A request is waiting for your approval.",
        priority=NotificationPriority.HIGH,
    ),
    NotificationStatus.APPROVED: StatusTemplate(
        title="Request Approved",
        body="Your request has been approved.",
        priority=NotificationPriority.NORMAL,
    ),
    NotificationStatus.REJECTED: StatusTemplate(
        title="Request Rejected",
        body="Your request has been rejected.",
        priority=NotificationPriority.MEDIUM,
    ),
}

VALID_STATUSES = [status.value for status in NotificationStatus]


def parse_status(raw: str) -> NotificationStatus:
    try:
        return NotificationStatus(raw)
    except ValueError as exc:
        raise InvalidStatusError(
            f"Invalid status '{raw}'", details={"validStatuses": VALID_STATUSES}
        ) from exc


def build_test_notification(
    status: str, overrides: TestNotificationRequest | None = None
) -> NotificationPayload:
    """Build the templated payload for ``status`` with caller overrides applied."""

    parsed = parse_status(status)
    template = STATUS_TEMPLATES[parsed]
    overrides = overrides or TestNotificationRequest()

    data: dict[str, Any] = {"type": "test", "status": parsed.value}
    if overrides.data:
        data.update(overrides.data)

    return NotificationPayload(
        title=overrides.title or template.title,
        body=overrides.message or template.body,
        status=parsed,
        priority=overrides.priority or template.priority,
        data=data,
    )


def build_heartbeat_notification() -> NotificationPayload:
    return NotificationPayload(
        title=HEARTBEAT_TITLE,
        body=HEARTBEAT_BODY,
        data={"type": "heartbeat"},
    )
