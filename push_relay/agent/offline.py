"""Install, activate and fetch-interception policies for the agent's caches."""
from __future__ import annotations

import asyncio
from urllib.parse import urlsplit

from loguru import logger

from push_relay.agent.cache import CacheBucket, CacheStorage
from push_relay.agent.config import AgentConfig
from push_relay.agent.events import ExtendableEvent
from push_relay.agent.host import AgentHost
from push_relay.agent.network import AgentRequest, AgentResponse, Fetcher

OFFLINE_MARKER = "data-offline-page"

OFFLINE_PAGE = f"""<!DOCTYPE html>
<html {OFFLINE_MARKER}>
<head>
  <title>Offline</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    body {{ font-family: system-ui; text-align: center; padding: 2rem; }}
    .offline {{ color: #666; }}
  </style>
</head>
<body>
  <h1>Offline</h1>
  <p class="offline">You're currently offline. Please check your connection and try again.</p>
  <button onclick="location.reload()">Retry</button>
</body>
</html>
"""

HANDLED_SCHEMES = frozenset({"http", "https"})


def offline_page() -> AgentResponse:
    return AgentResponse(
        status=200,
        body=OFFLINE_PAGE.encode("utf-8"),
        headers={"content-type": "text/html; charset=utf-8"},
        status_text="OK",
    )


def service_unavailable() -> AgentResponse:
    return AgentResponse(
        status=503,
        body=b"Network error occurred",
        headers={"content-type": "text/plain"},
        status_text="Service Unavailable",
    )


class OfflineCacheManager:
    """Keeps the current static and runtime buckets and answers intercepted fetches."""

    def __init__(
        self,
        config: AgentConfig,
        caches: CacheStorage,
        fetcher: Fetcher,
        host: AgentHost,
    ) -> None:
        self.config = config
        self.caches = caches
        self.fetcher = fetcher
        self.host = host
        self._own_host = (urlsplit(config.origin).hostname or "").lower()
        self._approved = frozenset(origin.lower() for origin in config.approved_origins)

    async def _precache(self, bucket: CacheBucket, url: str) -> bool:
        target = self.config.resolve(url)
        try:
            response = await self.fetcher.fetch(AgentRequest(url=target))
        except Exception as exc:
            logger.warning("Failed to cache asset", url=target, error=str(exc))
            return False
        if not response.ok:
            logger.warning("Failed to cache asset", url=target, status=response.status)
            return False
        await bucket.put(target, response)
        return True

    async def install(self) -> int:
        """Populate the static bucket; returns how many assets were cached.

        Each asset is fetched independently and a missing asset never fails
        the install.
        """

        await self.host.skip_waiting()
        bucket = await self.caches.open(self.config.static_bucket)
        results = await asyncio.gather(*(self._precache(bucket, url) for url in self.config.precache))
        cached = sum(1 for ok in results if ok)
        logger.info(
            "Agent installed",
            bucket=bucket.name,
            cached=cached,
            failed=len(results) - cached,
        )
        return cached

    async def activate(self) -> list[str]:
        """Evict stale buckets, claim open clients and tell them activation finished."""

        current = self.config.current_buckets
        stale = [name for name in await self.caches.keys() if name not in current]
        for name in stale:
            logger.info("Deleting old cache", bucket=name)
            await self.caches.delete(name)

        await self.host.clients.claim()
        clients = await self.host.clients.match_all()
        for client in clients:
            client.post_message(
                {
                    "type": "SW_ACTIVATED",
                    "message": "Service Worker activated successfully",
                    "version": self.config.version,
                }
            )
        logger.info("Agent activated", evicted=len(stale), clients=len(clients))
        return stale

    def should_handle(self, request: AgentRequest) -> bool:
        return request.method.upper() == "GET" and request.scheme in HANDLED_SCHEMES

    def is_cacheable_origin(self, request: AgentRequest) -> bool:
        host = request.hostname
        return host == self._own_host or host in self._approved

    async def handle_fetch(self, request: AgentRequest, event: ExtendableEvent) -> AgentResponse:
        """Answer ``request``; never raises."""

        try:
            if request.is_navigation:
                return await self._network_first(request)
            return await self._cache_first(request, event)
        except Exception as exc:
            logger.error("Fetch failed", url=request.url, error=str(exc))
            cached = await self.caches.match(request.url)
            if cached is not None:
                return cached
            return service_unavailable()

    async def _store(self, bucket_name: str, url: str, response: AgentResponse) -> None:
        bucket = await self.caches.open(bucket_name)
        await bucket.put(url, response)

    async def _network_first(self, request: AgentRequest) -> AgentResponse:
        try:
            response = await self.fetcher.fetch(request)
        except Exception as exc:
            logger.info("Navigation offline, serving fallback", url=request.url, error=str(exc))
            return await self._offline_fallback()
        if response.status == 200:
            await self._store(self.config.runtime_bucket, request.url, response)
        return response

    async def _offline_fallback(self) -> AgentResponse:
        for document in self.config.root_documents:
            cached = await self.caches.match(self.config.resolve(document))
            if cached is not None:
                return cached
        return offline_page()

    async def _cache_first(self, request: AgentRequest, event: ExtendableEvent) -> AgentResponse:
        hit = await self.caches.match_with_bucket(request.url)
        if hit is not None:
            bucket, cached = hit
            event.wait_until(self._revalidate(request, bucket))
            return cached

        response = await self.fetcher.fetch(request)
        if response.status == 200 and self.is_cacheable_origin(request):
            await self._store(self.config.runtime_bucket, request.url, response)
        return response

    async def _revalidate(self, request: AgentRequest, bucket: CacheBucket) -> None:
        try:
            response = await self.fetcher.fetch(request)
        except Exception as exc:
            logger.debug("Background refresh failed", url=request.url, error=str(exc))
            return
        if response.status == 200:
            await bucket.put(request.url, response)
