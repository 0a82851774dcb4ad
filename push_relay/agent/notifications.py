"""Display of inbound pushes and reactions to notification clicks and closes."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping
from urllib.parse import urlsplit

from loguru import logger

from push_relay.agent.config import AgentConfig
from push_relay.agent.events import (
    NotificationCloseEvent,
    NotificationEvent,
    PushEvent,
    PushSubscriptionChangeEvent,
)
from push_relay.agent.host import AgentHost
from push_relay.agent.network import RelayClient
from push_relay.utils.exceptions import PayloadParseError

DISMISS_ACTION = "dismiss"


@dataclass(frozen=True)
class NotificationAction:
    action: str
    title: str
    icon: str | None = None


@dataclass
class NotificationDescriptor:
    """Everything the notification surface needs to display one notification.

    Defaults, field by field:

    * ``body`` -- the agent's default body when the payload carries neither
      ``body`` nor the legacy ``message``.
    * ``icon`` / ``badge`` -- the agent's default artwork.
    * ``tag`` -- ``"default"`` for the fallback descriptor, otherwise
      ``notification-<epoch ms>`` so distinct pushes do not replace each other.
    * ``data`` -- the decoded payload; routing fields live here.
    * ``actions`` -- empty for the fallback descriptor.
    * ``require_interaction`` -- only for ``high`` priority.
    * ``silent`` -- only for ``low`` priority.
    """

    title: str
    body: str
    icon: str
    badge: str
    tag: str = "default"
    data: dict[str, Any] = field(default_factory=dict)
    actions: list[NotificationAction] = field(default_factory=list)
    require_interaction: bool = False
    silent: bool = False


def actions_for_status(status: str | None, icon: str | None = None) -> list[NotificationAction]:
    if status in ("new", "pending"):
        return [
            NotificationAction("approve", "Approve", icon),
            NotificationAction("reject", "Reject", icon),
            NotificationAction("view", "View", icon),
        ]
    if status in ("approved", "rejected"):
        return [NotificationAction("view", "View", icon)]
    return [
        NotificationAction("view", "View", icon),
        NotificationAction(DISMISS_ACTION, "Dismiss", icon),
    ]


def resolve_target(data: Mapping[str, Any] | None) -> str:
    """Pick the location a click should open from the notification's data."""

    if not data:
        return "/"
    sources = [data]
    nested = data.get("data")
    if isinstance(nested, Mapping):
        sources.append(nested)
    for source in sources:
        if source.get("notificationId"):
            return f"/?notification={source['notificationId']}"
        if source.get("jobOrderId"):
            return f"/?joborder={source['jobOrderId']}"
        if isinstance(source.get("url"), str) and source["url"]:
            return source["url"]
    return "/"


def client_matches(client_url: str, target: str) -> bool:
    client = urlsplit(client_url)
    wanted = urlsplit(target)
    if wanted.netloc and wanted.netloc != client.netloc:
        return False
    path = client.path or "/"
    wanted_path = wanted.path or "/"
    if wanted_path == "/":
        return True
    return path == wanted_path or path.startswith(wanted_path.rstrip("/") + "/")


class NotificationBuilder:
    def __init__(self, config: AgentConfig, clock: Callable[[], float] = time.time) -> None:
        self.config = config
        self._clock = clock

    def fallback(self) -> NotificationDescriptor:
        return NotificationDescriptor(
            title=self.config.default_title,
            body=self.config.default_body,
            icon=self.config.default_icon,
            badge=self.config.default_badge,
        )

    def build(self, payload: Mapping[str, Any] | None) -> NotificationDescriptor:
        if not isinstance(payload, Mapping):
            return self.fallback()

        priority = payload.get("priority")
        return NotificationDescriptor(
            title=payload.get("title") or self.config.default_title,
            body=payload.get("body") or payload.get("message") or self.config.default_body,
            icon=payload.get("icon") or self.config.default_icon,
            badge=payload.get("badge") or self.config.default_badge,
            tag=payload.get("tag") or f"notification-{int(self._clock() * 1000)}",
            data=dict(payload),
            actions=actions_for_status(payload.get("status"), self.config.default_badge),
            require_interaction=priority == "high",
            silent=priority == "low",
        )

    def from_push(self, event: PushEvent) -> NotificationDescriptor:
        """Decode the push payload; malformed data yields the fallback descriptor."""

        try:
            payload = event.json()
        except PayloadParseError as exc:
            logger.error("Error parsing push data", error=str(exc))
            return self.fallback()
        return self.build(payload)


class NotificationLifecycleController:
    """Reacts to push, click, close and subscription-change events."""

    def __init__(
        self,
        config: AgentConfig,
        host: AgentHost,
        relay: RelayClient,
        builder: NotificationBuilder | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self.relay = relay
        self.builder = builder or NotificationBuilder(config)

    async def display(self, descriptor: NotificationDescriptor) -> bool:
        try:
            await self.host.notifications.show_notification(descriptor)
        except Exception as exc:
            logger.error("Failed to show notification", tag=descriptor.tag, error=str(exc))
            return False
        logger.info("Notification displayed", tag=descriptor.tag, title=descriptor.title)
        return True

    def on_push(self, event: PushEvent) -> None:
        descriptor = self.builder.from_push(event)
        event.wait_until(self.display(descriptor))

    async def show_test(self, payload: Mapping[str, Any] | None) -> bool:
        merged = {"title": "Test Notification", "body": "This is a test notification."}
        if isinstance(payload, Mapping):
            merged.update(payload)
        return await self.display(self.builder.build(merged))

    def on_click(self, event: NotificationEvent) -> None:
        notification = event.notification
        notification.close()
        logger.info("Notification clicked", tag=notification.tag, action=event.action or "default")
        if event.action == DISMISS_ACTION:
            return
        target = resolve_target(notification.data)
        event.wait_until(self._focus_or_open(target, notification.data, event.action))

    async def _focus_or_open(self, target: str, data: Mapping[str, Any], action: str) -> None:
        clients = await self.host.clients.match_all(include_uncontrolled=True)
        for client in clients:
            if client_matches(client.url, target):
                await client.focus()
                client.post_message(
                    {
                        "type": "NOTIFICATION_CLICKED",
                        "action": action or "default",
                        "data": dict(data or {}),
                        "url": target,
                    }
                )
                return
        await self.host.clients.open_window(target)

    def on_close(self, event: NotificationCloseEvent) -> None:
        event.wait_until(self._announce_close(event.notification.tag, event.notification.data))

    async def _announce_close(self, tag: str, data: Mapping[str, Any]) -> None:
        clients = await self.host.clients.match_all(include_uncontrolled=True)
        for client in clients:
            client.post_message({"type": "NOTIFICATION_CLOSED", "tag": tag, "data": dict(data or {})})
        logger.debug("Notification dismissed", tag=tag, clients=len(clients))

    def on_subscription_change(self, event: PushSubscriptionChangeEvent) -> None:
        event.wait_until(self.resubscribe())

    async def resubscribe(self) -> bool:
        """Re-subscribe and forward the new descriptor to the relay.

        Any failure is logged and abandoned; the next change signal retries.
        """

        try:
            key = self.config.vapid_public_key or await self.relay.fetch_public_key()
            if not key:
                logger.error("Resubscription skipped, no application server key")
                return False
            subscription = await self.host.push_manager.subscribe(application_server_key=key)
            await self.relay.subscribe(subscription)
        except Exception as exc:
            logger.error("Resubscription failed", error=str(exc))
            return False

        clients = await self.host.clients.match_all(include_uncontrolled=True)
        for client in clients:
            client.post_message(
                {"type": "PUSH_SUBSCRIPTION_CHANGED", "endpoint": subscription.get("endpoint")}
            )
        return True
