"""Client agent configuration."""
from __future__ import annotations

from urllib.parse import urljoin

from pydantic import BaseModel, Field

DEFAULT_PRECACHE = [
    "/",
    "/index.html",
    "/manifest.json",
    "/browserconfig.xml",
    "/icons/android/android-launchericon-192-192.png",
    "/icons/android/android-launchericon-512-512.png",
    "/icons/ios/180.png",
    "/icons/ios/32.png",
    "/icons/ios/16.png",
    "https://cdn.tailwindcss.com",
    "https://fonts.googleapis.com/icon?family=Material+Icons",
    "https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap",
    "https://cdnjs.cloudflare.com/ajax/libs/mqtt/5.7.0/mqtt.min.js",
]

DEFAULT_APPROVED_ORIGINS = [
    "cdn.tailwindcss.com",
    "fonts.googleapis.com",
    "cdnjs.cloudflare.com",
]


class AgentConfig(BaseModel):
    """Settings baked into one release of the client agent."""

    version: str = Field("v2.1.0", description="Release tag; part of every bucket name")
    origin: str = Field("http://localhost:8080", description="Origin the agent is installed on")
    server_url: str = Field("http://127.0.0.1:8085", description="Base URL of the push relay")
    api_prefix: str = "/api"
    vapid_public_key: str | None = Field(
        None, description="Application server key; fetched from the relay when unset"
    )
    precache: list[str] = Field(default_factory=lambda: list(DEFAULT_PRECACHE))
    approved_origins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_APPROVED_ORIGINS),
        description="Third-party hosts whose responses may be cached on a miss",
    )
    root_documents: list[str] = Field(default_factory=lambda: ["/index.html", "/"])
    default_title: str = "Push Relay"
    default_body: str = "New notification received"
    default_icon: str = "/icons/icon-192.png"
    default_badge: str = "/icons/icon-96.png"
    network_timeout: float = 10.0

    @property
    def static_bucket(self) -> str:
        return f"{self.version}-static"

    @property
    def runtime_bucket(self) -> str:
        return f"{self.version}-runtime"

    @property
    def current_buckets(self) -> frozenset[str]:
        return frozenset({self.static_bucket, self.runtime_bucket})

    def resolve(self, url: str) -> str:
        """Return ``url`` made absolute against the agent's origin."""

        return urljoin(self.origin.rstrip("/") + "/", url)
