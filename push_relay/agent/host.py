"""Capabilities the host environment exposes to the agent."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol

if TYPE_CHECKING:
    from push_relay.agent.notifications import NotificationDescriptor


class MessagePort(Protocol):
    def post_message(self, message: Mapping[str, Any]) -> None: ...


class ForegroundClient(Protocol):
    """An open, user-visible instance of the application."""

    url: str

    async def focus(self) -> None: ...

    def post_message(self, message: Mapping[str, Any]) -> None: ...


class ClientRegistry(Protocol):
    async def match_all(self, include_uncontrolled: bool = False) -> list[ForegroundClient]: ...

    async def open_window(self, url: str) -> ForegroundClient | None: ...

    async def claim(self) -> None: ...


class DisplayedNotification(Protocol):
    """A notification the platform is currently displaying."""

    tag: str
    data: Mapping[str, Any]

    def close(self) -> None: ...


class NotificationSurface(Protocol):
    async def show_notification(self, descriptor: "NotificationDescriptor") -> None: ...


class PushManager(Protocol):
    async def subscribe(self, application_server_key: str) -> Mapping[str, Any]:
        """Create a push subscription and return its descriptor (endpoint, keys)."""
        ...


class AgentHost(Protocol):
    clients: ClientRegistry
    notifications: NotificationSurface
    push_manager: PushManager

    async def skip_waiting(self) -> None: ...
