"""Agent runtime: routes host events to the cache and notification managers."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Mapping

from loguru import logger

from push_relay.agent.cache import CacheStorage
from push_relay.agent.config import AgentConfig
from push_relay.agent.events import (
    ActivateEvent,
    ExtendableEvent,
    FetchEvent,
    InstallEvent,
    MessageEvent,
    NotificationCloseEvent,
    NotificationEvent,
    PushEvent,
    PushSubscriptionChangeEvent,
)
from push_relay.agent.host import AgentHost
from push_relay.agent.network import AgentRequest, AgentResponse, Fetcher, HttpxFetcher, RelayClient
from push_relay.agent.notifications import NotificationLifecycleController
from push_relay.agent.offline import OfflineCacheManager


class ServiceAgent:
    """Background agent for one release (``config.version``) of the client."""

    def __init__(
        self,
        config: AgentConfig,
        host: AgentHost,
        *,
        caches: CacheStorage | None = None,
        fetcher: Fetcher | None = None,
        relay: RelayClient | None = None,
    ) -> None:
        self.config = config
        self.host = host
        self.caches = caches or CacheStorage()
        self._owned: list[HttpxFetcher | RelayClient] = []
        if fetcher is None:
            fetcher = HttpxFetcher(timeout=config.network_timeout)
            self._owned.append(fetcher)
        if relay is None:
            relay = RelayClient(
                config.server_url, api_prefix=config.api_prefix, timeout=config.network_timeout
            )
            self._owned.append(relay)
        self.fetcher = fetcher
        self.relay = relay
        self.offline = OfflineCacheManager(config, self.caches, self.fetcher, host)
        self.notifications = NotificationLifecycleController(config, host, self.relay)
        self._handlers: dict[str, Callable[[ExtendableEvent], None]] = {
            InstallEvent.type: self._on_install,
            ActivateEvent.type: self._on_activate,
            FetchEvent.type: self._on_fetch,
            PushEvent.type: self.notifications.on_push,
            NotificationEvent.type: self.notifications.on_click,
            NotificationCloseEvent.type: self.notifications.on_close,
            PushSubscriptionChangeEvent.type: self.notifications.on_subscription_change,
            MessageEvent.type: self._on_message,
        }
        logger.info("Agent loaded", version=config.version)

    def dispatch(self, event: ExtendableEvent) -> ExtendableEvent:
        """Hand ``event`` to its handler; the host then awaits ``event.settled()``."""

        handler = self._handlers.get(event.type)
        if handler is None:
            logger.debug("No handler for event", event=event.type)
            return event
        try:
            handler(event)
        except Exception as exc:
            logger.opt(exception=exc).error("Agent handler failed", event=event.type)
        return event

    async def run(self, event: ExtendableEvent) -> ExtendableEvent:
        """Dispatch ``event`` and wait until all of its work has settled."""

        self.dispatch(event)
        await event.settled()
        return event

    async def fetch(self, request: AgentRequest) -> tuple[AgentResponse | None, FetchEvent]:
        """Intercept ``request``.

        A None response means the host should fetch it itself. The returned
        event still holds background work (cache refreshes); the host awaits
        ``event.settled()`` before tearing it down.
        """

        event = self.dispatch(FetchEvent(request))
        return await event.response(), event

    async def aclose(self) -> None:
        """Close the network clients this agent created itself."""

        for owned in self._owned:
            await owned.aclose()
        self._owned.clear()

    def _on_install(self, event: InstallEvent) -> None:
        event.wait_until(self.offline.install())

    def _on_activate(self, event: ActivateEvent) -> None:
        event.wait_until(self.offline.activate())

    def _on_fetch(self, event: FetchEvent) -> None:
        if not self.offline.should_handle(event.request):
            return
        event.respond_with(self.offline.handle_fetch(event.request, event))

    def _on_message(self, event: MessageEvent) -> None:
        data = event.data
        # extension traffic and other non-app messages carry no type tag
        if not isinstance(data, Mapping) or not data.get("type"):
            return

        kind = data["type"]
        if kind == "SKIP_WAITING":
            event.wait_until(self.host.skip_waiting())
        elif kind == "CLAIM_CLIENTS":
            event.wait_until(self.host.clients.claim())
        elif kind == "GET_VERSION":
            if event.ports:
                event.ports[0].post_message(
                    {
                        "version": self.config.version,
                        "timestamp": datetime.now(timezone.utc).isoformat(),
                    }
                )
        elif kind == "CLEAR_CACHE":
            event.wait_until(self._clear_caches(event))
        elif kind == "TEST_NOTIFICATION":
            event.wait_until(self.notifications.show_test(data.get("data")))
        else:
            logger.info("Unknown message type", type=kind)

    async def _clear_caches(self, event: MessageEvent) -> None:
        names = await self.caches.keys()
        for name in names:
            await self.caches.delete(name)
        logger.info("Caches cleared", buckets=len(names))
        if event.ports:
            event.ports[0].post_message({"success": True})
