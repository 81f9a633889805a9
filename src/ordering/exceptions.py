"""Error taxonomy for the storefront.

Domain code raises these (or Protean's ``ValidationError`` for malformed
input); the API layer maps each one onto an HTTP status and the JSON
envelope via ``ordering.api.errors``.
"""

from typing import Any


class StorefrontError(Exception):
    """Base class for all expected business failures."""

    status_code = 500

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(StorefrontError):
    status_code = 404


class Unauthorized(StorefrontError):
    status_code = 401


class Forbidden(StorefrontError):
    status_code = 403


class InsufficientInventory(StorefrontError):
    """Requested quantity exceeds the stock of a tracked product."""

    status_code = 400

    def __init__(self, product_id: str, product_name: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient inventory for {product_name}. Available: {available}",
            product_id=product_id,
            available=available,
            requested=requested,
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class ProductUnavailable(StorefrontError):
    status_code = 400


class InvalidQuantity(StorefrontError):
    status_code = 400


class InvalidTransition(StorefrontError):
    """An order or payment status change not permitted by the lifecycle."""

    status_code = 400


class EmptyCart(StorefrontError):
    status_code = 400


class PaymentProviderError(StorefrontError):
    """The payment provider failed, timed out or rejected the request."""

    status_code = 500


class SignatureInvalid(StorefrontError):
    status_code = 400
