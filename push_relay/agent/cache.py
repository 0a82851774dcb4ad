"""Named, versioned buckets of cached responses."""
from __future__ import annotations

from loguru import logger

from push_relay.agent.network import AgentResponse


class CacheBucket:
    """URL -> response store. Concurrent writers to one key: the last put wins."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, AgentResponse] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CacheBucket(name={self.name!r}, entries={len(self._entries)})"

    async def put(self, url: str, response: AgentResponse) -> None:
        self._entries[url] = response

    async def match(self, url: str) -> AgentResponse | None:
        return self._entries.get(url)

    async def delete(self, url: str) -> bool:
        return self._entries.pop(url, None) is not None

    def keys(self) -> list[str]:
        return list(self._entries)


class CacheStorage:
    """All buckets owned by the agent, searched in creation order."""

    def __init__(self) -> None:
        self._buckets: dict[str, CacheBucket] = {}

    async def open(self, name: str) -> CacheBucket:
        bucket = self._buckets.get(name)
        if bucket is None:
            bucket = self._buckets[name] = CacheBucket(name)
            logger.debug("Cache bucket created", bucket=name)
        return bucket

    async def has(self, name: str) -> bool:
        return name in self._buckets

    async def keys(self) -> list[str]:
        return list(self._buckets)

    async def delete(self, name: str) -> bool:
        return self._buckets.pop(name, None) is not None

    async def match_with_bucket(self, url: str) -> tuple[CacheBucket, AgentResponse] | None:
        for bucket in list(self._buckets.values()):
            cached = await bucket.match(url)
            if cached is not None:
                return bucket, cached
        return None

    async def match(self, url: str) -> AgentResponse | None:
        hit = await self.match_with_bucket(url)
        return hit[1] if hit else None
