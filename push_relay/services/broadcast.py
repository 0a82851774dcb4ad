"""Concurrent fan-out of one payload to every registered subscription."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from loguru import logger

from push_relay.schemas.notification import NotificationPayload
from push_relay.services.registry import Subscription, SubscriptionRegistry
from push_relay.services.transport import FailureCause, PushTransport
from push_relay.utils.exceptions import DeliveryFailure


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of the single delivery attempt made for one target."""

    subscription: Subscription
    delivered: bool
    cause: str | None = None
    status_code: int | None = None

    @property
    def endpoint(self) -> str:
        return self.subscription.endpoint

    @property
    def is_gone(self) -> bool:
        return self.cause == FailureCause.GONE.value


@dataclass
class BroadcastResult:
    outcomes: list[DeliveryOutcome] = field(default_factory=list)
    pruned: int = 0

    @property
    def sent(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.delivered)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.delivered)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def prune_candidates(self) -> list[Subscription]:
        return [outcome.subscription for outcome in self.outcomes if outcome.is_gone]


@dataclass
class BulkBroadcastResult:
    broadcasts: list[BroadcastResult] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(result.sent for result in self.broadcasts)

    @property
    def failed(self) -> int:
        return sum(result.failed for result in self.broadcasts)

    @property
    def total(self) -> int:
        return sum(result.total for result in self.broadcasts)

    @property
    def pruned(self) -> int:
        return sum(result.pruned for result in self.broadcasts)


class BroadcastEngine:
    """Deliver payloads to registry snapshots through a :class:`PushTransport`.

    Each target gets exactly one attempt per broadcast, bounded by ``timeout``.
    At most ``max_concurrency`` attempts are in flight at once. Targets the
    transport reports as gone are removed from the registry when
    ``prune_gone`` is set, otherwise they are only flagged.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        transport: PushTransport,
        *,
        timeout: float = 10.0,
        max_concurrency: int = 50,
        prune_gone: bool = True,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.registry = registry
        self.transport = transport
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self.prune_gone = prune_gone

    async def _attempt(
        self, semaphore: asyncio.Semaphore, subscription: Subscription, body: bytes
    ) -> DeliveryOutcome:
        async with semaphore:
            try:
                await asyncio.wait_for(self.transport.send(subscription, body), timeout=self.timeout)
            except DeliveryFailure as exc:
                return DeliveryOutcome(
                    subscription, delivered=False, cause=exc.cause, status_code=exc.status_code
                )
            except asyncio.TimeoutError:
                logger.warning("Delivery timed out", endpoint=subscription.endpoint, timeout=self.timeout)
                return DeliveryOutcome(subscription, delivered=False, cause=FailureCause.TIMEOUT.value)
            except Exception as exc:
                logger.error("Delivery raised unexpectedly", endpoint=subscription.endpoint, error=str(exc))
                return DeliveryOutcome(
                    subscription, delivered=False, cause=FailureCause.TRANSPORT_ERROR.value
                )
        return DeliveryOutcome(subscription, delivered=True)

    def _settle_gone(self, candidates: list[Subscription]) -> int:
        if not candidates:
            return 0
        if self.prune_gone:
            return self.registry.prune(candidates)
        flagged = self.registry.mark_gone(candidates)
        logger.info(
            "Gone subscriptions kept (pruning disabled)",
            candidates=len(candidates),
            flagged=flagged,
        )
        return 0

    async def broadcast(
        self,
        payload: NotificationPayload,
        targets: Iterable[Subscription] | None = None,
    ) -> BroadcastResult:
        """Send ``payload`` once to each target; ``targets`` defaults to a registry snapshot."""

        snapshot = list(targets) if targets is not None else self.registry.snapshot()
        if not snapshot:
            logger.info("Broadcast skipped, no subscriptions", title=payload.title)
            return BroadcastResult()

        body = payload.serialize()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(self._attempt(semaphore, subscription, body) for subscription in snapshot)
        )
        result = BroadcastResult(outcomes=list(outcomes))
        result.pruned = self._settle_gone(result.prune_candidates)

        logger.info(
            "Broadcast complete",
            title=payload.title,
            sent=result.sent,
            failed=result.failed,
            total=result.total,
            pruned=result.pruned,
        )
        return result

    async def broadcast_many(self, payloads: Sequence[NotificationPayload]) -> BulkBroadcastResult:
        """Broadcast each payload in order, each to the then-current registry."""

        bulk = BulkBroadcastResult()
        for payload in payloads:
            bulk.broadcasts.append(await self.broadcast(payload))
        return bulk
