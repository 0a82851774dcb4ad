"""Tests for the pywebpush-backed transport."""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from pywebpush import WebPushException

from push_relay.services.registry import Subscription
from push_relay.services.transport import FailureCause, WebPushTransport
from push_relay.utils.exceptions import DeliveryFailure


@pytest.fixture()
def subscription() -> Subscription:
    now = datetime.now(timezone.utc)
    return Subscription(
        endpoint="https://push.example.com/send/1",
        keys={"p256dh": "key", "auth": "auth"},
        created_at=now,
        updated_at=now,
    )


@pytest.fixture()
def web_transport() -> WebPushTransport:
    return WebPushTransport(
        vapid_private_key="private-key", vapid_subject="mailto:ops@example.com", ttl=60
    )


def _push_error(status_code: int) -> WebPushException:
    response = MagicMock()
    response.status_code = status_code
    return WebPushException("Push failed", response=response)


@pytest.mark.asyncio
async def test_send_passes_subscription_and_vapid_claims(web_transport, subscription) -> None:
    with patch("push_relay.services.transport.webpush") as webpush:
        await web_transport.send(subscription, b'{"title":"T"}')

    kwargs = webpush.call_args.kwargs
    assert kwargs["subscription_info"] == {
        "endpoint": subscription.endpoint,
        "keys": {"p256dh": "key", "auth": "auth"},
    }
    assert kwargs["data"] == b'{"title":"T"}'
    assert kwargs["vapid_claims"] == {"sub": "mailto:ops@example.com"}
    assert kwargs["ttl"] == 60


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [404, 410])
async def test_expired_subscription_is_reported_gone(web_transport, subscription, status_code) -> None:
    with patch("push_relay.services.transport.webpush", side_effect=_push_error(status_code)):
        with pytest.raises(DeliveryFailure) as excinfo:
            await web_transport.send(subscription, b"{}")

    assert excinfo.value.cause == FailureCause.GONE.value
    assert excinfo.value.status_code == status_code


@pytest.mark.asyncio
async def test_other_push_errors_are_rejections(web_transport, subscription) -> None:
    with patch("push_relay.services.transport.webpush", side_effect=_push_error(429)):
        with pytest.raises(DeliveryFailure) as excinfo:
            await web_transport.send(subscription, b"{}")

    assert excinfo.value.cause == FailureCause.REJECTED.value
    assert excinfo.value.status_code == 429


@pytest.mark.asyncio
async def test_missing_vapid_key_fails_without_calling_push_service(subscription) -> None:
    transport = WebPushTransport(vapid_private_key=None, vapid_subject="mailto:ops@example.com")

    with patch("push_relay.services.transport.webpush") as webpush:
        with pytest.raises(DeliveryFailure) as excinfo:
            await transport.send(subscription, b"{}")

    assert excinfo.value.cause == FailureCause.NOT_CONFIGURED.value
    webpush.assert_not_called()
