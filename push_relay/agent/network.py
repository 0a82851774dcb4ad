"""Requests, responses and live network access for the agent."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol
from urllib.parse import urlsplit

import httpx
from loguru import logger


@dataclass(frozen=True)
class AgentRequest:
    url: str
    method: str = "GET"
    mode: str = "cors"
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme.lower()

    @property
    def hostname(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()


@dataclass(frozen=True)
class AgentResponse:
    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""
    status_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class Fetcher(Protocol):
    async def fetch(self, request: AgentRequest) -> AgentResponse: ...


class HttpxFetcher:
    """Perform live fetches with ``httpx``; network errors propagate to the caller."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 10.0) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def fetch(self, request: AgentRequest) -> AgentResponse:
        response = await self._client.request(
            request.method, request.url, headers=dict(request.headers)
        )
        return AgentResponse(
            status=response.status_code,
            body=response.content,
            headers=dict(response.headers),
            url=str(response.url),
            status_text=response.reason_phrase,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


class RelayClient:
    """Talks to the push relay's HTTP API on behalf of the agent."""

    def __init__(
        self,
        base_url: str,
        *,
        api_prefix: str = "/api",
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._base = f"{base_url.rstrip('/')}{api_prefix}"

    async def fetch_public_key(self) -> str | None:
        response = await self._client.get(f"{self._base}/vapid-public-key")
        response.raise_for_status()
        return response.json().get("publicKey")

    async def subscribe(self, descriptor: Mapping[str, Any]) -> int:
        """Register ``descriptor`` with the relay; returns the relay's subscription total."""

        response = await self._client.post(f"{self._base}/subscribe", json=dict(descriptor))
        response.raise_for_status()
        total = response.json().get("totalSubscriptions", 0)
        logger.info("Subscription forwarded to relay", endpoint=descriptor.get("endpoint"), total=total)
        return total

    async def aclose(self) -> None:
        await self._client.aclose()
