"""Tests for the agent's notification lifecycle controller."""
from __future__ import annotations

import json

import httpx
import pytest

from push_relay.agent.events import (
    NotificationCloseEvent,
    NotificationEvent,
    PushEvent,
    PushSubscriptionChangeEvent,
)
from push_relay.agent.network import RelayClient
from push_relay.agent.notifications import (
    NotificationBuilder,
    NotificationLifecycleController,
    client_matches,
    resolve_target,
)

from tests.conftest import FakeForegroundClient, FakeNotification


class RelayStub:
    """Stands in for the relay's HTTP API behind an ``httpx.MockTransport``."""

    def __init__(self, public_key: str | None = "relay-key", fail_subscribe: bool = False) -> None:
        self.public_key = public_key
        self.fail_subscribe = fail_subscribe
        self.subscribed: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/vapid-public-key":
            return httpx.Response(200, json={"publicKey": self.public_key})
        if request.url.path == "/api/subscribe":
            if self.fail_subscribe:
                return httpx.Response(500, json={"detail": "boom"})
            self.subscribed.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True, "totalSubscriptions": len(self.subscribed)})
        return httpx.Response(404)


def make_controller(config, host, stub: RelayStub) -> NotificationLifecycleController:
    client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    relay = RelayClient("https://relay.example.com", client=client)
    builder = NotificationBuilder(config, clock=lambda: 1_700_000_000.0)
    return NotificationLifecycleController(config, host, relay, builder=builder)


@pytest.fixture()
def relay_stub() -> RelayStub:
    return RelayStub()


@pytest.fixture()
def controller(agent_config, host, relay_stub) -> NotificationLifecycleController:
    return make_controller(agent_config, host, relay_stub)


async def push(controller, host, payload) -> object:
    data = payload if isinstance(payload, (bytes, type(None))) else json.dumps(payload)
    event = PushEvent(data)
    controller.on_push(event)
    await event.settled()
    return host.notifications.shown[-1]


@pytest.mark.asyncio
async def test_high_priority_requires_interaction(controller, host) -> None:
    shown = await push(controller, host, {"title": "T", "body": "B", "priority": "high"})

    assert shown.title == "T"
    assert shown.body == "B"
    assert shown.require_interaction is True
    assert shown.silent is False


@pytest.mark.asyncio
async def test_low_priority_is_silent(controller, host) -> None:
    shown = await push(controller, host, {"title": "T", "body": "B", "priority": "low"})

    assert shown.require_interaction is False
    assert shown.silent is True


@pytest.mark.asyncio
async def test_malformed_payload_shows_default_notification(controller, host, agent_config) -> None:
    shown = await push(controller, host, b"{not json")

    assert shown.title == agent_config.default_title
    assert shown.body == agent_config.default_body
    assert shown.tag == "default"


@pytest.mark.asyncio
async def test_empty_push_shows_default_notification(controller, host, agent_config) -> None:
    shown = await push(controller, host, None)

    assert shown.title == agent_config.default_title


@pytest.mark.asyncio
async def test_legacy_message_field_and_generated_tag(controller, host) -> None:
    shown = await push(controller, host, {"title": "T", "message": "legacy"})

    assert shown.body == "legacy"
    assert shown.tag == "notification-1700000000000"
    assert shown.data["title"] == "T"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, expected",
    [
        ("pending", ["approve", "reject", "view"]),
        ("new", ["approve", "reject", "view"]),
        ("approved", ["view"]),
        ("rejected", ["view"]),
        (None, ["view", "dismiss"]),
    ],
)
async def test_actions_follow_status(controller, host, status, expected) -> None:
    shown = await push(controller, host, {"title": "T", "status": status})

    assert [action.action for action in shown.actions] == expected


@pytest.mark.asyncio
async def test_display_failure_is_contained(controller, host) -> None:
    host.notifications.error = RuntimeError("permission denied")
    event = PushEvent(json.dumps({"title": "T"}))

    controller.on_push(event)
    await event.settled()

    assert host.notifications.shown == []


def test_resolve_target_prefers_explicit_ids() -> None:
    assert resolve_target({"notificationId": 7, "jobOrderId": 9}) == "/?notification=7"
    assert resolve_target({"jobOrderId": 9}) == "/?joborder=9"
    assert resolve_target({"data": {"url": "/orders/3"}}) == "/orders/3"
    assert resolve_target({}) == "/"
    assert resolve_target(None) == "/"


@pytest.mark.asyncio
async def test_dismiss_action_only_closes(controller, host) -> None:
    notification = FakeNotification(data={"notificationId": 1})
    event = NotificationEvent(notification, action="dismiss")

    controller.on_click(event)
    await event.settled()

    assert notification.closed is True
    assert host.clients.opened == []


@pytest.mark.asyncio
async def test_click_focuses_matching_client(controller, host) -> None:
    open_client = FakeForegroundClient("https://app.example.com/")
    host.clients.clients = [open_client]
    notification = FakeNotification(data={"notificationId": 42})
    event = NotificationEvent(notification, action="approve")

    controller.on_click(event)
    await event.settled()

    assert notification.closed is True
    assert open_client.focused is True
    message = open_client.messages[0]
    assert message["type"] == "NOTIFICATION_CLICKED"
    assert message["action"] == "approve"
    assert message["url"] == "/?notification=42"
    assert host.clients.opened == []


@pytest.mark.asyncio
async def test_click_opens_window_when_no_client_matches(controller, host) -> None:
    host.clients.clients = [FakeForegroundClient("https://app.example.com/settings")]
    event = NotificationEvent(FakeNotification(data={"url": "/orders/3"}))

    controller.on_click(event)
    await event.settled()

    assert host.clients.opened == ["/orders/3"]


def test_client_matches_whole_path_segments() -> None:
    assert client_matches("https://app.example.com/orders/3", "/orders/3")
    assert client_matches("https://app.example.com/orders/3/items", "/orders/3")
    assert not client_matches("https://app.example.com/orders/30", "/orders/3")
    assert not client_matches("https://other.example.com/orders/3", "https://app.example.com/orders/3")
    assert client_matches("https://app.example.com/settings", "/")


@pytest.mark.asyncio
async def test_click_does_not_focus_client_on_sibling_path(controller, host) -> None:
    neighbour = FakeForegroundClient("https://app.example.com/orders/30")
    host.clients.clients = [neighbour]
    event = NotificationEvent(FakeNotification(data={"url": "/orders/3"}))

    controller.on_click(event)
    await event.settled()

    assert not neighbour.focused
    assert host.clients.opened == ["/orders/3"]


@pytest.mark.asyncio
async def test_close_is_announced_to_every_client(controller, host) -> None:
    host.clients.clients = [
        FakeForegroundClient("https://app.example.com/"),
        FakeForegroundClient("https://app.example.com/inbox"),
    ]
    event = NotificationCloseEvent(FakeNotification(tag="n-1", data={"jobOrderId": 5}))

    controller.on_close(event)
    await event.settled()

    for client in host.clients.clients:
        assert client.messages == [
            {"type": "NOTIFICATION_CLOSED", "tag": "n-1", "data": {"jobOrderId": 5}}
        ]


@pytest.mark.asyncio
async def test_subscription_change_resubscribes_and_forwards(agent_config, host, relay_stub) -> None:
    agent_config.vapid_public_key = "configured-key"
    controller = make_controller(agent_config, host, relay_stub)
    host.clients.clients = [FakeForegroundClient("https://app.example.com/")]
    event = PushSubscriptionChangeEvent()

    controller.on_subscription_change(event)
    await event.settled()

    assert host.push_manager.keys_used == ["configured-key"]
    assert relay_stub.subscribed[0]["endpoint"] == "https://push.example.com/send/renewed"
    assert host.clients.clients[0].messages[0]["type"] == "PUSH_SUBSCRIPTION_CHANGED"


@pytest.mark.asyncio
async def test_resubscribe_fetches_key_from_relay_when_unset(controller, host) -> None:
    assert await controller.resubscribe() is True
    assert host.push_manager.keys_used == ["relay-key"]


@pytest.mark.asyncio
async def test_resubscribe_failure_is_abandoned(agent_config, host) -> None:
    stub = RelayStub(fail_subscribe=True)
    controller = make_controller(agent_config, host, stub)
    host.clients.clients = [FakeForegroundClient("https://app.example.com/")]

    assert await controller.resubscribe() is False
    assert host.clients.clients[0].messages == []


@pytest.mark.asyncio
async def test_resubscribe_without_any_key_gives_up(agent_config, host) -> None:
    controller = make_controller(agent_config, host, RelayStub(public_key=None))

    assert await controller.resubscribe() is False
    assert host.push_manager.keys_used == []
