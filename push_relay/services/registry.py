"""In-memory subscription registry keyed by push endpoint."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from loguru import logger

from push_relay.utils.exceptions import InvalidSubscriptionError, SubscriptionNotFoundError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Subscription:
    """One device's push endpoint and the key material the transport needs."""

    endpoint: str
    keys: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    expiration_time: int | None = None
    gone_at: datetime | None = field(default=None, compare=False)

    def as_subscription_info(self) -> dict[str, Any]:
        """Return the descriptor shape expected by ``pywebpush``."""

        return {"endpoint": self.endpoint, "keys": dict(self.keys)}


@dataclass(frozen=True)
class RegistryStats:
    total: int
    active: int
    oldest: datetime | None
    newest: datetime | None


class SubscriptionRegistry:
    """Single shared mapping of endpoint -> :class:`Subscription`.

    Every read and write goes through one lock; snapshots hand out immutable
    copies, so broadcasts never observe later mutations.
    """

    def __init__(self, clock: Callable[[], datetime] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, Subscription] = {}
        self._clock = clock or _utcnow

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, endpoint: object) -> bool:
        with self._lock:
            return endpoint in self._entries

    def get(self, endpoint: str) -> Subscription | None:
        with self._lock:
            return self._entries.get(endpoint)

    def subscribe(self, descriptor: Mapping[str, Any]) -> int:
        """Insert or refresh a subscription and return the new total."""

        endpoint = descriptor.get("endpoint") if isinstance(descriptor, Mapping) else None
        if not isinstance(endpoint, str) or not endpoint.strip():
            raise InvalidSubscriptionError(
                "Subscription endpoint is required", details={"field": "endpoint"}
            )
        keys = descriptor.get("keys") or {}
        if not isinstance(keys, Mapping):
            raise InvalidSubscriptionError(
                "Subscription keys must be an object", details={"field": "keys"}
            )
        expiration_time = descriptor.get("expirationTime")

        now = self._clock()
        with self._lock:
            existing = self._entries.get(endpoint)
            if existing is not None:
                self._entries[endpoint] = replace(
                    existing,
                    keys=dict(keys),
                    updated_at=now,
                    expiration_time=expiration_time,
                    gone_at=None,
                )
                created = False
            else:
                self._entries[endpoint] = Subscription(
                    endpoint=endpoint,
                    keys=dict(keys),
                    created_at=now,
                    updated_at=now,
                    expiration_time=expiration_time,
                )
                created = True
            total = len(self._entries)

        logger.info(
            "Subscription added" if created else "Subscription refreshed",
            endpoint=endpoint,
            total=total,
        )
        return total

    def unsubscribe(self, endpoint: str) -> int:
        """Remove the entry for ``endpoint``; returns the number removed."""

        with self._lock:
            removed = self._entries.pop(endpoint, None)
            total = len(self._entries)
        if removed is None:
            raise SubscriptionNotFoundError(
                "Subscription not found", details={"endpoint": endpoint}
            )
        logger.info("Subscription removed", endpoint=endpoint, total=total)
        return 1

    def stats(self) -> RegistryStats:
        with self._lock:
            entries = list(self._entries.values())
        if not entries:
            return RegistryStats(total=0, active=0, oldest=None, newest=None)
        return RegistryStats(
            total=len(entries),
            active=sum(1 for entry in entries if entry.gone_at is None),
            oldest=min(entry.created_at for entry in entries),
            newest=max(entry.created_at for entry in entries),
        )

    def clear(self) -> int:
        """Drop every subscription and return how many there were."""

        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.warning("Subscription registry cleared", removed=count)
        return count

    def snapshot(self) -> list[Subscription]:
        with self._lock:
            return list(self._entries.values())

    def prune(self, candidates: Iterable[Subscription]) -> int:
        """Remove ``candidates`` unless they were re-registered since the snapshot."""

        removed = 0
        with self._lock:
            for candidate in candidates:
                current = self._entries.get(candidate.endpoint)
                if current is None or current.updated_at != candidate.updated_at:
                    continue
                del self._entries[candidate.endpoint]
                removed += 1
            total = len(self._entries)
        if removed:
            logger.info("Pruned gone subscriptions", removed=removed, total=total)
        return removed

    def mark_gone(self, candidates: Iterable[Subscription]) -> int:
        """Flag ``candidates`` as gone without removing them."""

        now = self._clock()
        flagged = 0
        with self._lock:
            for candidate in candidates:
                current = self._entries.get(candidate.endpoint)
                if current is None or current.updated_at != candidate.updated_at:
                    continue
                self._entries[candidate.endpoint] = replace(current, gone_at=now)
                flagged += 1
        return flagged
