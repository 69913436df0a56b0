"""
Error taxonomy for the order bot, plus safe HTTP error factories.

PRINCIPLE: Don't expose internal details to the provider or the customer.
Use generic error bodies externally, detailed logging internally.

Taxonomy:
- ParseError:        order line doesn't match the grammar. Recoverable,
                     answered with a clarification message.
- UpstreamError:     WhatsApp / catalog call failed. Logged and swallowed.
- StoreError:        persistence failure. Fatal to the event only when a
                     later step depends on the write.
- VerificationError: webhook handshake token mismatch. 403, no retry.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class OrderBotError(Exception):
    """Base class for all order bot errors."""


class ParseError(OrderBotError):
    """Order-line text doesn't match `Order: <name>, qty: <n>`."""

    MISSING_PREFIX = "missing_prefix"
    MISSING_QTY = "missing_qty"
    EMPTY_NAME = "empty_name"
    INVALID_QUANTITY = "invalid_quantity"

    def __init__(self, reason: str, text: str = ""):
        super().__init__(f"Could not parse order line ({reason}): {text!r}")
        self.reason = reason
        self.text = text


class UpstreamError(OrderBotError):
    """Messaging or catalog provider call failed or returned non-success."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StoreError(OrderBotError):
    """Database read/write failed."""


class VerificationError(OrderBotError):
    """Webhook handshake mode or verify token mismatch."""


class WebhookError:
    """HTTP exceptions for the webhook surface with safe (non-leaky) bodies."""

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        """
        403 for failed handshake verification.

        The provider does not retry a rejected handshake, so no detail is
        needed beyond the status.
        """
        logger.warning(f"Webhook verification failed: {reason}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden",
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from the provider.

        Only raised when a write that later steps depend on failed (customer
        creation, order promotion). The provider will redeliver the event.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )
