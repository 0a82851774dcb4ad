"""Push delivery transports."""
from __future__ import annotations

import asyncio
from enum import Enum
from typing import Protocol

from loguru import logger
from pywebpush import WebPushException, webpush

from push_relay.services.registry import Subscription
from push_relay.utils.exceptions import DeliveryFailure


class FailureCause(str, Enum):
    """Machine readable reasons a delivery attempt failed."""

    GONE = "gone"
    REJECTED = "rejected"
    TIMEOUT = "timeout"
    NOT_CONFIGURED = "not_configured"
    TRANSPORT_ERROR = "transport_error"


GONE_STATUS_CODES = frozenset({404, 410})


class PushTransport(Protocol):
    """Delivers one payload to one subscription, raising :class:`DeliveryFailure` on error."""

    async def send(self, subscription: Subscription, payload: bytes) -> None:  # pragma: no cover - interface definition
        """Attempt a single delivery."""


class WebPushTransport:
    """Deliver payloads through the Web Push protocol using ``pywebpush``."""

    def __init__(
        self,
        *,
        vapid_private_key: str | None,
        vapid_subject: str,
        ttl: int = 86400,
        request_timeout: float = 10.0,
    ) -> None:
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self.ttl = ttl
        self.request_timeout = request_timeout

    def _deliver(self, subscription: Subscription, payload: bytes) -> None:
        webpush(
            subscription_info=subscription.as_subscription_info(),
            data=payload,
            vapid_private_key=self.vapid_private_key,
            vapid_claims={"sub": self.vapid_subject},
            ttl=self.ttl,
            timeout=self.request_timeout,
        )

    async def send(self, subscription: Subscription, payload: bytes) -> None:
        if not self.vapid_private_key:
            raise DeliveryFailure(
                "VAPID keys not configured", cause=FailureCause.NOT_CONFIGURED.value
            )
        try:
            # pywebpush is blocking; keep the event loop free for the rest of the fan-out
            await asyncio.to_thread(self._deliver, subscription, payload)
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            if status_code in GONE_STATUS_CODES:
                raise DeliveryFailure(
                    "Subscription is no longer valid",
                    cause=FailureCause.GONE.value,
                    status_code=status_code,
                ) from exc
            logger.warning(
                "WebPush rejected delivery",
                endpoint=subscription.endpoint,
                status=status_code,
                error=str(exc),
            )
            raise DeliveryFailure(
                f"Push service rejected delivery: {exc}",
                cause=FailureCause.REJECTED.value,
                status_code=status_code,
            ) from exc
