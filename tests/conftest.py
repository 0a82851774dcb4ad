"""Pytest fixtures for relay and agent tests."""

import asyncio
import os
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

os.environ.setdefault("VAPID_PUBLIC_KEY", "test-public-key")

import pytest
from fastapi.testclient import TestClient

from push_relay.agent.config import AgentConfig
from push_relay.agent.network import AgentRequest, AgentResponse
from push_relay.main import create_app
from push_relay.services.broadcast import BroadcastEngine
from push_relay.services.registry import Subscription, SubscriptionRegistry
from push_relay.services.state import RelayState
from push_relay.utils.exceptions import DeliveryFailure


class FakeClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeTransport:
    """Records every attempt; per-endpoint failures and delays are configurable."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, bytes]] = []
        self.failures: dict[str, Exception] = {}
        self.delays: dict[str, float] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    def fail(self, endpoint: str, cause: str = "rejected", status_code: int | None = 500) -> None:
        self.failures[endpoint] = DeliveryFailure("failed", cause=cause, status_code=status_code)

    async def send(self, subscription: Subscription, payload: bytes) -> None:
        self.calls.append((subscription.endpoint, payload))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(subscription.endpoint, 0))
            error = self.failures.get(subscription.endpoint)
            if error is not None:
                raise error
        finally:
            self.in_flight -= 1


def make_subscription(index: int) -> dict[str, Any]:
    return {
        "endpoint": f"https://push.example.com/send/{index}",
        "keys": {"p256dh": f"p256dh-{index}", "auth": f"auth-{index}"},
    }


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def registry(clock: FakeClock) -> SubscriptionRegistry:
    return SubscriptionRegistry(clock=clock)


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def engine(registry: SubscriptionRegistry, transport: FakeTransport) -> BroadcastEngine:
    return BroadcastEngine(registry, transport, timeout=1.0, max_concurrency=10, prune_gone=True)


@pytest.fixture()
def relay_state(registry: SubscriptionRegistry, engine: BroadcastEngine) -> RelayState:
    return RelayState(registry=registry, engine=engine)


@pytest.fixture()
def client(relay_state: RelayState) -> Generator[TestClient, None, None]:
    app = create_app(relay_state)
    with TestClient(app) as test_client:
        yield test_client


# --- agent host fakes -------------------------------------------------------


class FakePort:
    def __init__(self) -> None:
        self.messages: list[Mapping[str, Any]] = []

    def post_message(self, message: Mapping[str, Any]) -> None:
        self.messages.append(message)


class FakeForegroundClient:
    def __init__(self, url: str) -> None:
        self.url = url
        self.focused = False
        self.messages: list[Mapping[str, Any]] = []

    async def focus(self) -> None:
        self.focused = True

    def post_message(self, message: Mapping[str, Any]) -> None:
        self.messages.append(message)


class FakeClientRegistry:
    def __init__(self) -> None:
        self.clients: list[FakeForegroundClient] = []
        self.opened: list[str] = []
        self.claimed = 0

    async def match_all(self, include_uncontrolled: bool = False) -> list[FakeForegroundClient]:
        return list(self.clients)

    async def open_window(self, url: str) -> FakeForegroundClient:
        self.opened.append(url)
        opened = FakeForegroundClient(url)
        self.clients.append(opened)
        return opened

    async def claim(self) -> None:
        self.claimed += 1


class FakeNotificationSurface:
    def __init__(self) -> None:
        self.shown: list[Any] = []
        self.error: Exception | None = None

    async def show_notification(self, descriptor: Any) -> None:
        if self.error is not None:
            raise self.error
        self.shown.append(descriptor)


class FakePushManager:
    def __init__(self) -> None:
        self.keys_used: list[str] = []
        self.error: Exception | None = None

    async def subscribe(self, application_server_key: str) -> Mapping[str, Any]:
        if self.error is not None:
            raise self.error
        self.keys_used.append(application_server_key)
        return {
            "endpoint": "https://push.example.com/send/renewed",
            "keys": {"p256dh": "renewed", "auth": "renewed"},
        }


class FakeHost:
    def __init__(self) -> None:
        self.clients = FakeClientRegistry()
        self.notifications = FakeNotificationSurface()
        self.push_manager = FakePushManager()
        self.skipped_waiting = 0

    async def skip_waiting(self) -> None:
        self.skipped_waiting += 1


class FakeNotification:
    def __init__(self, tag: str = "tag-1", data: Mapping[str, Any] | None = None) -> None:
        self.tag = tag
        self.data = dict(data or {})
        self.closed = False

    def close(self) -> None:
        self.closed = True


class FakeFetcher:
    """Serves canned responses by URL; unknown URLs raise like an offline network."""

    def __init__(self) -> None:
        self.responses: dict[str, AgentResponse] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.offline = False
        self.delay = 0.0

    def serve(self, url: str, body: bytes = b"ok", status: int = 200) -> None:
        self.responses[url] = AgentResponse(status=status, body=body, url=url)

    async def fetch(self, request: AgentRequest) -> AgentResponse:
        self.calls.append(request.url)
        await asyncio.sleep(self.delay)
        if self.offline:
            raise ConnectionError("network unreachable")
        if request.url in self.errors:
            raise self.errors[request.url]
        if request.url not in self.responses:
            raise ConnectionError(f"no route to {request.url}")
        return self.responses[request.url]


@pytest.fixture()
def agent_config() -> AgentConfig:
    return AgentConfig(
        version="v2",
        origin="https://app.example.com",
        server_url="https://relay.example.com",
        precache=["/", "/index.html", "/manifest.json", "https://cdn.tailwindcss.com"],
    )


@pytest.fixture()
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher()
