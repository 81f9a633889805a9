"""Payment gateway port (abstract interface).

Defines the contract every payment provider adapter implements, so the
FakeGateway (dev/test) and the StripeGateway (production) are
interchangeable behind the payment bridge.

Amounts cross this interface in major currency units (dollars); adapters
convert to whatever the provider expects. Adapters raise
``PaymentProviderError`` for any provider failure or timeout and
``SignatureInvalid`` for a webhook that fails verification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

PAYMENT_SUCCEEDED = "payment_succeeded"
PAYMENT_FAILED = "payment_failed"


@dataclass(frozen=True)
class IntentResult:
    """A payment intent the client can complete with its client secret."""

    intent_id: str
    client_secret: str


@dataclass(frozen=True)
class ConfirmationResult:
    """Provider-side state of a payment intent, e.g. ``succeeded`` or ``requires_payment_method``."""

    status: str
    amount: float


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    amount: float
    status: str


@dataclass(frozen=True)
class WebhookEvent:
    """A verified provider notification, normalized to ``PAYMENT_SUCCEEDED`` / ``PAYMENT_FAILED``.

    Other provider event types keep their original name.
    """

    event_id: str
    type: str
    intent_id: str | None = None
    order_id: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_intent(self, amount: float, currency: str, metadata: dict) -> IntentResult:
        """Create a payment intent for ``amount``."""
        ...

    @abstractmethod
    def confirm_intent(self, intent_id: str) -> ConfirmationResult:
        """Fetch the current state of a payment intent."""
        ...

    @abstractmethod
    def refund(self, intent_id: str, amount: float | None = None) -> RefundResult:
        """Refund a captured intent, fully when ``amount`` is omitted."""
        ...

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str) -> WebhookEvent:
        """Authenticate and parse a webhook delivery."""
        ...
