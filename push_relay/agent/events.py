"""Lifecycle events delivered to the agent by its host.

Handlers never block the host: they register work with
:meth:`ExtendableEvent.wait_until` and the host awaits :meth:`ExtendableEvent.settled`
before tearing the event context down.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, ClassVar, Mapping, Sequence

from loguru import logger

from push_relay.agent.host import DisplayedNotification, MessagePort
from push_relay.agent.network import AgentRequest, AgentResponse
from push_relay.utils.exceptions import PayloadParseError


class ExtendableEvent:
    type: ClassVar[str] = "extendable"

    def __init__(self) -> None:
        self._pending: list[asyncio.Future] = []

    def wait_until(self, awaitable: Awaitable[Any]) -> asyncio.Future:
        """Keep the event alive until ``awaitable`` settles."""

        task = asyncio.ensure_future(awaitable)
        self._pending.append(task)
        return task

    @property
    def pending(self) -> int:
        return sum(1 for task in self._pending if not task.done())

    async def settled(self) -> None:
        """Wait for every registered unit of work, including work added while waiting."""

        while True:
            outstanding = [task for task in self._pending if not task.done()]
            if not outstanding:
                break
            await asyncio.gather(*outstanding, return_exceptions=True)
        for task in self._pending:
            if task.cancelled():
                continue
            error = task.exception()
            if error is not None:
                logger.opt(exception=error).error("Unhandled error in agent event", event=self.type)

    def cancel(self) -> None:
        """Abandon outstanding work, as a host teardown would."""

        for task in self._pending:
            if not task.done():
                task.cancel()


class InstallEvent(ExtendableEvent):
    type = "install"


class ActivateEvent(ExtendableEvent):
    type = "activate"


class FetchEvent(ExtendableEvent):
    type = "fetch"

    def __init__(self, request: AgentRequest) -> None:
        super().__init__()
        self.request = request
        self._response: asyncio.Future | None = None

    @property
    def handled(self) -> bool:
        return self._response is not None

    def respond_with(self, response: Awaitable[AgentResponse]) -> None:
        if self._response is not None:
            raise RuntimeError("respond_with() already called for this fetch")
        self._response = self.wait_until(response)

    async def response(self) -> AgentResponse | None:
        """The intercepted response, or None when the request passes through."""

        if self._response is None:
            return None
        return await self._response


class PushEvent(ExtendableEvent):
    type = "push"

    def __init__(self, data: bytes | str | None = None) -> None:
        super().__init__()
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = data

    def json(self) -> Any:
        if self.data is None:
            return None
        try:
            return json.loads(self.data)
        except (ValueError, UnicodeDecodeError) as exc:
            raise PayloadParseError("Push payload is not valid JSON") from exc


class NotificationEvent(ExtendableEvent):
    type = "notificationclick"

    def __init__(self, notification: DisplayedNotification, action: str = "") -> None:
        super().__init__()
        self.notification = notification
        self.action = action


class NotificationCloseEvent(NotificationEvent):
    type = "notificationclose"


class MessageEvent(ExtendableEvent):
    type = "message"

    def __init__(self, data: Any, ports: Sequence[MessagePort] = ()) -> None:
        super().__init__()
        self.data = data
        self.ports = list(ports)


class PushSubscriptionChangeEvent(ExtendableEvent):
    type = "pushsubscriptionchange"

    def __init__(self, old_subscription: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self.old_subscription = old_subscription
