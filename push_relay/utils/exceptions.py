"""Custom exception classes and error handling utilities."""
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from loguru import logger


class PushRelayError(Exception):
    """Base exception for the relay."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(PushRelayError):
    """A request is missing a mandatory field or carries an unusable value."""


class InvalidSubscriptionError(InvalidInputError):
    """Subscription descriptor without a usable endpoint."""


class InvalidStatusError(InvalidInputError):
    """Unknown notification status for a templated notification."""


class NotFoundError(PushRelayError):
    """The target of an operation does not exist."""


class SubscriptionNotFoundError(NotFoundError):
    """No subscription is registered under the given endpoint."""


class DeliveryFailure(PushRelayError):
    """A single delivery attempt failed.

    ``cause`` is machine readable (see :class:`push_relay.services.transport.FailureCause`);
    ``status_code`` is the push service's HTTP status when one was received.
    """

    def __init__(
        self,
        message: str,
        *,
        cause: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.cause = cause
        self.status_code = status_code


class PayloadParseError(PushRelayError):
    """An inbound push payload could not be decoded."""


def handle_invalid_input(error: InvalidInputError) -> HTTPException:
    """Handle rejected requests."""
    logger.warning(f"Invalid input: {error.message}")
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "message": error.message,
            "details": error.details,
        },
    )


def handle_not_found(error: NotFoundError) -> HTTPException:
    """Handle operations whose target is absent."""
    logger.info(f"Not found: {error.message}")
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "message": error.message,
            "details": error.details,
        },
    )
